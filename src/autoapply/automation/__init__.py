"""Automation orchestration for auto-apply.

Components, leaf to root:
- strategies / classifier: URL -> platform strategy, profile -> form fields
- session_vault: encrypted per-platform authentication sessions
- backends: managed browser, external service or simulation behind one gateway
- orchestrator: per-job state machine with project-suggestion suspension
- status / poller: client-facing status contract and adaptive polling
"""

from autoapply.automation.models import (
    ApplicantProfile,
    FieldMapping,
    JobPosting,
    ProjectSuggestion,
    ProjectSuggestionSet,
    SuggestionAction,
)

__all__ = [
    "ApplicantProfile",
    "FieldMapping",
    "JobPosting",
    "ProjectSuggestion",
    "ProjectSuggestionSet",
    "SuggestionAction",
]
