"""Human decision point between suspension and continuation.

A suspended submission carries project suggestions. The user (or
``auto_select``) picks one and decides whether to replace an existing
project, add it, or skip; the gate applies the choice and resumes the job.
"""

import logging

from pydantic import BaseModel

from autoapply.automation.collaborators import MarkdownResumeEditor, ResumeEditor
from autoapply.automation.models import SuggestionAction
from autoapply.automation.orchestrator import (
    ProgressCallback,
    SubmissionContinuation,
    SubmissionJob,
    SubmissionOrchestrator,
)
from autoapply.config import Settings, get_settings

logger = logging.getLogger(__name__)

MAX_MATCH_SCORE = 100.0


class SuggestionSelection(BaseModel):
    """Resume text and score that result from one decision."""

    suggestion_index: int | None
    action: SuggestionAction
    resume_text: str
    match_score: float | None


class ProjectSuggestionGate:
    """Applies a project selection and resumes the suspended submission."""

    def __init__(
        self,
        orchestrator: SubmissionOrchestrator,
        editor: ResumeEditor | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.editor = editor or MarkdownResumeEditor()
        self.settings = settings or get_settings()

    def preview(
        self,
        continuation: SubmissionContinuation,
        suggestion_index: int | None,
        action: SuggestionAction,
    ) -> SuggestionSelection:
        """Compute the resume and score a decision would produce.

        Raises:
            ValueError: If the index does not name a suggestion
        """
        resume_text = continuation.request.resume_text
        if action == SuggestionAction.SKIP:
            return SuggestionSelection(
                suggestion_index=suggestion_index,
                action=action,
                resume_text=resume_text,
                match_score=continuation.match_score,
            )

        projects = continuation.suggestions.projects
        if suggestion_index is None or not 0 <= suggestion_index < len(projects):
            raise ValueError(f"Suggestion index {suggestion_index} is out of range (0-{len(projects) - 1})")

        suggestion = projects[suggestion_index]
        base_score = (
            continuation.match_score
            if continuation.match_score is not None
            else self.settings.baseline_match_score
        )
        score = min(base_score + continuation.suggestions.delta_for(suggestion), MAX_MATCH_SCORE)
        return SuggestionSelection(
            suggestion_index=suggestion_index,
            action=action,
            resume_text=self.editor.apply(resume_text, suggestion, action),
            match_score=score,
        )

    async def select(
        self,
        continuation: SubmissionContinuation,
        suggestion_index: int | None,
        action: SuggestionAction,
        on_progress: ProgressCallback | None = None,
    ) -> SubmissionJob:
        selection = self.preview(continuation, suggestion_index, action)
        logger.info(
            f"Project selection for {continuation.application_id}: "
            f"{action.value} #{suggestion_index} -> score {selection.match_score}"
        )
        return await self.orchestrator.resume(
            continuation,
            resume_text=selection.resume_text,
            match_score=selection.match_score,
            on_progress=on_progress,
        )

    async def auto_select(
        self, continuation: SubmissionContinuation, on_progress: ProgressCallback | None = None
    ) -> SubmissionJob:
        """Add the suggestion with the highest score delta (skip if there are none)."""
        suggestions = continuation.suggestions
        if not suggestions.projects:
            return await self.select(continuation, None, SuggestionAction.SKIP, on_progress)

        best = max(
            range(len(suggestions.projects)),
            key=lambda i: suggestions.delta_for(suggestions.projects[i]),
        )
        return await self.select(continuation, best, SuggestionAction.ADD, on_progress)
