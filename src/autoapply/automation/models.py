"""Shared models for automation module."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ApplicantProfile(BaseModel):
    """Canonical applicant data, immutable for the lifetime of a submission.

    Platform strategies translate this into platform-specific field names
    (see ``autoapply.automation.strategies``).
    """

    model_config = ConfigDict(frozen=True)

    full_name: str
    email: str
    phone: str
    linkedin: str | None = None
    github: str | None = None
    location: str | None = None
    resume_file_url: str | None = None

    @property
    def first_name(self) -> str:
        """Part of the full name before the first whitespace boundary."""
        parts = self.full_name.strip().split(maxsplit=1)
        return parts[0] if parts else ""

    @property
    def last_name(self) -> str:
        """Remainder of the full name; empty for single-word names."""
        parts = self.full_name.strip().split(maxsplit=1)
        return parts[1] if len(parts) > 1 else ""


class FieldType(str, Enum):
    """Input types for form field mappings."""

    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    SELECT = "select"
    FILE = "file"


class FieldMapping(BaseModel):
    """Selector hint passed to backends alongside the field values."""

    field_name: str
    field_type: FieldType = FieldType.TEXT
    selector: str
    value: str = ""
    alternatives: list[str] = Field(default_factory=list)


class JobPosting(BaseModel):
    """Target job posting for one submission."""

    job_id: str
    application_url: str
    company_name: str = ""
    role_title: str = ""
    description: str = ""


class SuggestionAction(str, Enum):
    """How a suggested project is applied to the resume."""

    REPLACE = "replace"
    ADD = "add"
    SKIP = "skip"


class ProjectSuggestion(BaseModel):
    """AI-proposed project that would improve the match score."""

    project_title: str
    project_summary: str
    tech_stack: list[str] = Field(default_factory=list)
    github_link: str | None = None
    live_demo_link: str | None = None
    code_snippet: str | None = None
    impact_description: str | None = None
    match_score_delta: float | None = None


class ProjectSuggestionSet(BaseModel):
    """Suggestions produced for one low-scoring submission."""

    projects: list[ProjectSuggestion] = Field(default_factory=list)
    match_score_improvement: float = 0
    reasoning: str = ""

    def delta_for(self, suggestion: ProjectSuggestion) -> float:
        """Score delta for a suggestion, falling back to the set-level improvement."""
        if suggestion.match_score_delta is not None:
            return suggestion.match_score_delta
        return self.match_score_improvement
