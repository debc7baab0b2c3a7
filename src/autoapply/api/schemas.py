"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from autoapply.automation.models import (
    ApplicantProfile,
    JobPosting,
    ProjectSuggestionSet,
    SuggestionAction,
)
from autoapply.automation.orchestrator import OutcomeCode, SubmissionOutcome
from autoapply.automation.session_vault import SessionData


# ============================================================================
# Auto-apply Schemas
# ============================================================================


class StartAutoApplyRequest(BaseModel):
    """Schema for starting an auto-apply submission."""

    user_id: str = Field(min_length=1)
    job: JobPosting
    profile: ApplicantProfile
    resume_text: str = ""
    match_score: float | None = Field(default=None, ge=0, le=100)


class ResumeAutoApplyRequest(BaseModel):
    """Schema for continuing a submission after project selection."""

    continuation_token: str
    action: SuggestionAction
    suggestion_index: int | None = None


class AutoApplyResponse(BaseModel):
    """Schema for start/resume responses."""

    application_id: str
    status: str
    success: bool = False
    code: OutcomeCode | None = None
    message: str = ""
    match_score: float | None = None
    continuation_token: str | None = None
    project_suggestions: ProjectSuggestionSet | None = None
    error: str | None = None

    @classmethod
    def accepted(cls, application_id: str, match_score: float | None = None) -> "AutoApplyResponse":
        return cls(
            application_id=application_id,
            status="processing",
            success=True,
            message="Application submission started",
            match_score=match_score,
        )

    @classmethod
    def from_outcome(cls, outcome: SubmissionOutcome) -> "AutoApplyResponse":
        continuation = outcome.continuation
        return cls(
            application_id=outcome.application_id,
            status=outcome.status.value,
            success=outcome.success,
            code=outcome.code,
            message=outcome.message,
            match_score=outcome.match_score,
            continuation_token=continuation.token if continuation else None,
            project_suggestions=continuation.suggestions if continuation else None,
            error=outcome.error,
        )


class CancelResponse(BaseModel):
    cancelled: bool


class ApplicationSummary(BaseModel):
    """Schema for a persisted application in listings."""

    application_id: str
    job_posting_id: str
    platform: str
    status: str
    progress: int
    current_step: str | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ============================================================================
# Platform Schemas
# ============================================================================


class FieldMappingResponse(BaseModel):
    """Schema for a field-mapping preview."""

    platform: str
    fields: dict[str, str]


# ============================================================================
# Session Vault Schemas
# ============================================================================


class StoreSessionRequest(BaseModel):
    """Schema for storing a platform session."""

    user_id: str = Field(min_length=1)
    platform: str = Field(min_length=1)
    platform_url: str
    session_data: SessionData
    metadata: dict[str, Any] = Field(default_factory=dict)


class StoreSessionResponse(BaseModel):
    session_id: str
    platform: str
    message: str = "Session stored"


class SessionStatusResponse(BaseModel):
    platform: str
    has_valid_session: bool
    expires_at: datetime | None = None
    last_used_at: datetime | None = None


class DeletedResponse(BaseModel):
    deleted: int
