"""Submission orchestration.

Runs one state machine per (user, job posting):

    analyzing -> [suggesting_projects] -> optimizing -> generating_pdf
              -> submitting -> completed | failed   (or cancelled)

A low match score suspends the job at ``suggesting_projects`` and returns a
``SubmissionContinuation``; the job re-enters at ``optimizing`` through
``resume`` once the user has picked a project (see ``suggestion_gate``).
"""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, Field

from autoapply.automation.application_store import ApplicationStore
from autoapply.automation.backends.gateway import AutomationBackendGateway, AutomationSession, get_gateway
from autoapply.automation.channel import ProgressChannel
from autoapply.automation.classifier import PlatformClassifier
from autoapply.automation.collaborators import (
    MatchScorer,
    ProjectSuggestionProvider,
    ResumeOptimizer,
    ResumeRenderer,
)
from autoapply.automation.models import ApplicantProfile, JobPosting, ProjectSuggestionSet
from autoapply.automation.session_vault import SessionVault
from autoapply.config import Settings, get_settings
from autoapply.db.models import ApplicationState, AuthEventType, utcnow
from autoapply.exceptions import (
    AutoApplyError,
    ConfigurationError,
    ContinuationError,
    FormFillError,
    NavigationError,
    SessionExpiredError,
    SubmissionError,
)

logger = logging.getLogger(__name__)


class SubmissionPhase(str, Enum):
    """Phases of a submission job."""

    ANALYZING = "analyzing"
    SUGGESTING_PROJECTS = "suggesting_projects"
    OPTIMIZING = "optimizing"
    GENERATING_PDF = "generating_pdf"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_PHASES = frozenset(
    {SubmissionPhase.COMPLETED, SubmissionPhase.FAILED, SubmissionPhase.CANCELLED}
)

PHASE_PROGRESS = {
    SubmissionPhase.ANALYZING: 10,
    SubmissionPhase.SUGGESTING_PROJECTS: 30,
    SubmissionPhase.OPTIMIZING: 50,
    SubmissionPhase.GENERATING_PDF: 70,
    SubmissionPhase.SUBMITTING: 85,
    SubmissionPhase.COMPLETED: 100,
}


class OutcomeCode(str, Enum):
    """Machine-readable reason attached to non-successful outcomes."""

    PROJECT_SUGGESTIONS_REQUIRED = "PROJECT_SUGGESTIONS_REQUIRED"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    NAVIGATION_FAILED = "NAVIGATION_FAILED"
    FORM_FILL_FAILED = "FORM_FILL_FAILED"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    CANCELLED = "CANCELLED"
    AUTO_APPLY_FAILED = "AUTO_APPLY_FAILED"


class ProgressUpdate(BaseModel):
    """One progress report on a job's channel."""

    application_id: str
    job_id: str
    step: SubmissionPhase
    progress: int
    message: str
    current_action: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)


class SubmissionRequest(BaseModel):
    """Everything needed to submit one application."""

    user_id: str = Field(min_length=1)
    job: JobPosting
    profile: ApplicantProfile
    resume_text: str = ""
    match_score: float | None = None


class SubmissionContinuation(BaseModel):
    """Saved state of a job suspended for project selection.

    Consumed by exactly one ``resume`` call.
    """

    token: str = Field(default_factory=lambda: uuid.uuid4().hex)
    application_id: str
    request: SubmissionRequest
    suggestions: ProjectSuggestionSet
    match_score: float | None = None
    created_at: datetime = Field(default_factory=utcnow)


class SubmissionOutcome(BaseModel):
    """Terminal (or suspended) result of a submission job."""

    application_id: str
    status: SubmissionPhase
    success: bool = False
    code: OutcomeCode | None = None
    message: str = ""
    platform: str | None = None
    match_score: float | None = None
    confirmation_text: str | None = None
    redirect_url: str | None = None
    screenshot: str | None = None
    fields_filled: dict[str, str] = Field(default_factory=dict)
    fields_skipped: list[str] = Field(default_factory=list)
    resume_reference: str | None = None
    continuation: SubmissionContinuation | None = None
    error: str | None = None

    @property
    def requires_suggestions(self) -> bool:
        return self.code == OutcomeCode.PROJECT_SUGGESTIONS_REQUIRED


ProgressCallback = Callable[[ProgressUpdate], None]


class SubmissionJob:
    """Runtime handle of one submission.

    Progress is monotonically non-decreasing while the job is active.
    """

    def __init__(
        self,
        application_id: str,
        request: SubmissionRequest,
        continuation: SubmissionContinuation | None = None,
    ) -> None:
        self.application_id = application_id
        self.request = request
        self.continuation = continuation
        self.key = (request.user_id, request.job.job_id)
        self.channel = ProgressChannel(f"{request.user_id}:{request.job.job_id}")

        self.phase = SubmissionPhase.OPTIMIZING if continuation else SubmissionPhase.ANALYZING
        self.progress = 0
        self.message = ""
        self.current_action: str | None = None
        self.resume_text = request.resume_text
        self.match_score = request.match_score
        self.platform: str | None = None

        self.task: asyncio.Task | None = None
        self.continuation_token: str | None = None
        self.suspension: SubmissionContinuation | None = None
        self.automation_session: AutomationSession | None = None
        self.analyzed = asyncio.Event()
        self.cancel_requested = False
        self.started_at = utcnow()

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()

    async def result(self) -> SubmissionOutcome:
        """Wait for the job's outcome (shared by every joined caller)."""
        if self.task is None:
            raise RuntimeError("Job has not been started")
        return await asyncio.shield(self.task)

    async def wait_analyzed(self) -> None:
        """Wait until the job has either suspended or passed the score gate."""
        await self.analyzed.wait()


class SubmissionOrchestrator:
    """Sequences classification, field mapping and backend calls per job.

    At most one job is active per (user_id, job_id). A second ``start``
    for the same key joins the running job, and a suspended key returns the
    saved suspension until it is older than ``suspension_ttl_minutes``.

    Usage:
        orchestrator = SubmissionOrchestrator(scorer=scorer, suggestion_provider=provider)
        job = await orchestrator.start(request, on_progress=print)
        outcome = await job.result()
        if outcome.requires_suggestions:
            ...  # hand outcome.continuation to the ProjectSuggestionGate
    """

    def __init__(
        self,
        gateway: AutomationBackendGateway | None = None,
        classifier: PlatformClassifier | None = None,
        vault: SessionVault | None = None,
        scorer: MatchScorer | None = None,
        suggestion_provider: ProjectSuggestionProvider | None = None,
        optimizer: ResumeOptimizer | None = None,
        renderer: ResumeRenderer | None = None,
        store: ApplicationStore | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.settings = settings or get_settings()
        self.clock = clock
        self._gateway = gateway
        self.classifier = classifier or PlatformClassifier()
        self.vault = vault
        self.scorer = scorer
        self.suggestion_provider = suggestion_provider
        self.optimizer = optimizer
        self.renderer = renderer
        self.store = store

        self._lock = asyncio.Lock()
        self._active: dict[tuple[str, str], SubmissionJob] = {}
        self._suspended: dict[tuple[str, str], SubmissionJob] = {}
        self._continuations: dict[str, SubmissionJob] = {}
        self._by_application: dict[str, SubmissionJob] = {}

    @property
    def gateway(self) -> AutomationBackendGateway:
        """Gateway in use.

        Resolved by the first ``start`` or ``resume`` (or eagerly by the API
        lifespan), so a process without a usable backend fails before any
        job does work.
        """
        if self._gateway is None:
            self._gateway = get_gateway()
        return self._gateway

    # =========================================================================
    # Public API
    # =========================================================================

    async def start(
        self, request: SubmissionRequest, on_progress: ProgressCallback | None = None
    ) -> SubmissionJob:
        """Start (or join) the submission for ``request``'s (user, job) key."""
        mode = self.gateway.mode
        key = (request.user_id, request.job.job_id)
        async with self._lock:
            expired = self._expire_suspensions()
            existing = self._active.get(key) or self._suspended.get(key)
            if existing is not None:
                logger.info(f"Joining existing submission {existing.application_id} for job {key[1]}")
                if on_progress:
                    existing.channel.add_listener(on_progress)
                job = existing
            else:
                job = SubmissionJob(str(uuid.uuid4()), request)
                self._register(job, on_progress)

        await self._discard_expired(expired)
        if existing is None:
            logger.info(f"Started submission {job.application_id} for job {key[1]} ({mode.value} backend)")
        return job

    async def run(
        self, request: SubmissionRequest, on_progress: ProgressCallback | None = None
    ) -> SubmissionOutcome:
        """Start (or join) a submission and wait for its outcome."""
        job = await self.start(request, on_progress)
        return await job.result()

    async def resume(
        self,
        continuation: SubmissionContinuation,
        resume_text: str,
        match_score: float | None,
        on_progress: ProgressCallback | None = None,
    ) -> SubmissionJob:
        """Re-enter a suspended job at ``optimizing``.

        Raises:
            ContinuationError: If the continuation is unknown, expired or already used
            ConfigurationError: If no automation backend is available
        """
        mode = self.gateway.mode
        async with self._lock:
            expired = self._expire_suspensions()
            suspended = self._continuations.pop(continuation.token, None)
            if suspended is not None:
                self._suspended.pop(suspended.key, None)
                request = continuation.request.model_copy(
                    update={"resume_text": resume_text, "match_score": match_score}
                )
                job = SubmissionJob(continuation.application_id, request, continuation=continuation)
                self._register(job, on_progress)

        await self._discard_expired(expired)
        if suspended is None:
            raise ContinuationError("Continuation is unknown or has already been used")
        logger.info(f"Resumed submission {job.application_id} after project selection ({mode.value} backend)")
        return job

    async def cancel(self, user_id: str, job_id: str) -> bool:
        """Cancel the active (or suspended) submission for a key.

        The automation session is closed exactly once and no further
        progress is published. A job that has already reached a terminal
        phase is left alone and False is returned.
        """
        key = (user_id, job_id)
        async with self._lock:
            job = self._active.get(key)
            if job is not None and job.phase in TERMINAL_PHASES:
                logger.info(f"Submission {job.application_id} already {job.phase.value}; not cancelling")
                return False
            if job is None:
                suspended = self._suspended.pop(key, None)
                if suspended is None:
                    return False
                if suspended.continuation_token:
                    self._continuations.pop(suspended.continuation_token, None)
                self._by_application.pop(suspended.application_id, None)

        if job is None:
            await self._record(suspended, status=ApplicationState.CANCELLED, current_step="Cancelled")
            logger.info(f"Discarded suspended submission {suspended.application_id}")
            return True

        job.cancel_requested = True
        job.channel.close()
        if job.task is not None and not job.task.done():
            job.task.cancel()
            try:
                await job.task
            except asyncio.CancelledError:
                # Cancelled before the pipeline started running
                await self._close_session(job)
                if job.phase not in TERMINAL_PHASES:
                    await self._record(job, status=ApplicationState.CANCELLED, current_step="Cancelled")
        await self._release(job)
        logger.info(f"Cancelled submission {job.application_id}")
        return True

    async def cancel_application(self, application_id: str) -> bool:
        job = self._by_application.get(application_id)
        if job is None:
            return False
        return await self.cancel(*job.key)

    def get_job(self, application_id: str) -> SubmissionJob | None:
        """Active or suspended job for an application id."""
        return self._by_application.get(application_id)

    def get_continuation(self, token: str) -> SubmissionContinuation | None:
        """Saved continuation for a suspended job, if it has not been used."""
        job = self._continuations.get(token)
        return job.suspension if job else None

    def active_jobs(self) -> list[SubmissionJob]:
        return list(self._active.values())

    async def shutdown(self) -> None:
        """Cancel every active job and discard suspended ones (used on application shutdown)."""
        for job in list(self._active.values()) + list(self._suspended.values()):
            await self.cancel(*job.key)

    # =========================================================================
    # Registry
    # =========================================================================

    def _register(self, job: SubmissionJob, on_progress: ProgressCallback | None) -> None:
        """Must be called with the lock held."""
        if on_progress:
            job.channel.add_listener(on_progress)
        self._active[job.key] = job
        self._by_application[job.application_id] = job
        job.task = asyncio.create_task(self._run(job), name=f"submission-{job.application_id}")

    async def _release(self, job: SubmissionJob) -> None:
        job.channel.close()
        job.analyzed.set()
        async with self._lock:
            if self._active.get(job.key) is job:
                del self._active[job.key]
            if self._suspended.get(job.key) is not job and self._by_application.get(job.application_id) is job:
                del self._by_application[job.application_id]

    def _expire_suspensions(self) -> list[SubmissionJob]:
        """Unregister suspensions older than the TTL. Must be called with the lock held."""
        cutoff = self.clock() - timedelta(minutes=self.settings.suspension_ttl_minutes)
        expired = [
            job for job in self._suspended.values() if job.suspension and job.suspension.created_at < cutoff
        ]
        for job in expired:
            del self._suspended[job.key]
            if job.continuation_token:
                self._continuations.pop(job.continuation_token, None)
            if self._by_application.get(job.application_id) is job:
                del self._by_application[job.application_id]
        return expired

    async def _discard_expired(self, expired: list[SubmissionJob]) -> None:
        for job in expired:
            logger.info(f"Project selection for {job.application_id} expired; discarding submission")
            await self._record(
                job,
                status=ApplicationState.CANCELLED,
                current_step="Project selection expired",
            )

    async def _suspend(self, job: SubmissionJob, continuation: SubmissionContinuation) -> None:
        async with self._lock:
            job.continuation_token = continuation.token
            job.suspension = continuation
            self._suspended[job.key] = job
            self._continuations[continuation.token] = job

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def _run(self, job: SubmissionJob) -> SubmissionOutcome:
        try:
            if job.continuation is None:
                if self.store:
                    await self.store.create(
                        job.application_id,
                        job.request.user_id,
                        job.request.job.job_id,
                        job.request.job.application_url,
                    )
                suspension = await self._analyze(job)
                if suspension is not None:
                    return suspension
            job.analyzed.set()

            await self._optimize(job)
            resume_reference = await self._generate_pdf(job)
            return await self._submit(job, resume_reference)

        except asyncio.CancelledError:
            if job.phase in TERMINAL_PHASES:
                raise
            logger.info(f"Submission {job.application_id} cancelled during {job.phase.value}")
            job.phase = SubmissionPhase.CANCELLED
            await self._record(job, status=ApplicationState.CANCELLED, current_step="Cancelled")
            return SubmissionOutcome(
                application_id=job.application_id,
                status=SubmissionPhase.CANCELLED,
                code=OutcomeCode.CANCELLED,
                message="Application cancelled",
                platform=job.platform,
            )
        except AutoApplyError as e:
            return await self._fail(job, _failure_code(e), str(e))
        except Exception as e:
            logger.exception(f"Unexpected error in submission {job.application_id}")
            return await self._fail(job, OutcomeCode.AUTO_APPLY_FAILED, str(e) or e.__class__.__name__)
        finally:
            # Cleanup runs to completion even if this task is cancelled again
            await asyncio.shield(self._finish(job))

    async def _finish(self, job: SubmissionJob) -> None:
        await self._close_session(job)
        await self._release(job)

    async def _analyze(self, job: SubmissionJob) -> SubmissionOutcome | None:
        await self._advance(
            job,
            SubmissionPhase.ANALYZING,
            "Analyzing your resume against job requirements...",
            "Calculating match score",
        )
        if job.match_score is None and self.scorer is not None:
            job.match_score = await self.scorer.score(job.resume_text, job.request.job)

        threshold = self.settings.match_score_threshold
        if job.match_score is None or job.match_score >= threshold or self.suggestion_provider is None:
            return None

        await self._advance(
            job,
            SubmissionPhase.SUGGESTING_PROJECTS,
            f"Match score: {job.match_score:.0f}%. Generating AI project suggestions...",
            "Creating personalized projects",
        )
        suggestions = await self.suggestion_provider.suggest(job.resume_text, job.request.job, job.match_score)
        if not suggestions.projects:
            logger.info(f"No project suggestions for {job.application_id}; continuing")
            return None

        continuation = SubmissionContinuation(
            application_id=job.application_id,
            request=job.request,
            suggestions=suggestions,
            match_score=job.match_score,
            created_at=self.clock(),
        )
        await self._suspend(job, continuation)
        await self._record(
            job,
            status=ApplicationState.PENDING,
            current_step="Waiting for project selection",
        )
        logger.info(f"Submission {job.application_id} suspended for project selection (score {job.match_score})")
        return SubmissionOutcome(
            application_id=job.application_id,
            status=SubmissionPhase.SUGGESTING_PROJECTS,
            code=OutcomeCode.PROJECT_SUGGESTIONS_REQUIRED,
            message="Project suggestions available to improve your match score",
            match_score=job.match_score,
            continuation=continuation,
        )

    async def _optimize(self, job: SubmissionJob) -> None:
        await self._advance(
            job,
            SubmissionPhase.OPTIMIZING,
            "Optimizing resume for this job...",
            "Optimizing resume structure",
        )
        if self.optimizer is not None and job.resume_text:
            job.resume_text = await self.optimizer.optimize(job.resume_text, job.request.job)

    async def _generate_pdf(self, job: SubmissionJob) -> str | None:
        await self._advance(
            job,
            SubmissionPhase.GENERATING_PDF,
            "Generating optimized resume PDF...",
            "Creating PDF document",
        )
        if self.renderer is None or not job.resume_text:
            return job.request.profile.resume_file_url
        return await self.renderer.render(job.resume_text, job.request.profile, job.request.job)

    async def _submit(self, job: SubmissionJob, resume_reference: str | None) -> SubmissionOutcome:
        await self._advance(
            job,
            SubmissionPhase.SUBMITTING,
            "Submitting application...",
            "Filling out application form",
        )
        request = job.request
        url = request.job.application_url
        detection = self.classifier.classify(url)
        strategy = self.classifier.strategy_for(url)
        job.platform = detection.platform
        await self._record(job, platform=detection.platform)

        if detection.requires_auth and self.vault is not None:
            if not await self.vault.has_valid(request.user_id, detection.platform):
                await self.vault.log_event(
                    request.user_id,
                    detection.platform,
                    AuthEventType.LOGIN_REQUIRED,
                    {"login_url": detection.login_url, "application_id": job.application_id},
                )
                raise SessionExpiredError(request.user_id, detection.platform)

        values = strategy.map_fields(request.profile)
        hints = strategy.field_mappings(values)

        session = await self.gateway.open_session()
        job.automation_session = session

        navigation = await session.navigate(url)
        navigation.raise_for_status()

        job.current_action = "Filling out application form"
        fill = await session.fill(url, values, hints)
        fill.raise_for_status()

        upload_reference = self._upload_reference(job, resume_reference)
        if upload_reference:
            upload = await session.upload_resume(upload_reference, strategy.resume_selector)
            if not upload.success:
                logger.warning(f"Resume upload failed for {job.application_id}: {upload.error}")

        submit = await session.submit()
        submit.raise_for_status()

        screenshot = submit.screenshot or fill.screenshot
        outcome = SubmissionOutcome(
            application_id=job.application_id,
            status=SubmissionPhase.COMPLETED,
            success=True,
            message="Application submitted successfully!",
            platform=detection.platform,
            match_score=job.match_score,
            confirmation_text=submit.confirmation_text,
            redirect_url=submit.redirect_url,
            screenshot=screenshot,
            fields_filled=fill.fields_filled,
            fields_skipped=fill.fields_skipped,
            resume_reference=resume_reference,
        )
        await self._advance(job, SubmissionPhase.COMPLETED, outcome.message, "Done", record=False)
        await self._record(
            job,
            status=ApplicationState.SUBMITTED,
            progress=100,
            current_step="Application submitted successfully",
            screenshot=screenshot,
            confirmation_text=submit.confirmation_text,
            redirect_url=submit.redirect_url,
            fields_filled=fill.fields_filled,
        )
        logger.info(f"Submission {job.application_id} completed on {detection.platform}")
        return outcome

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _advance(
        self,
        job: SubmissionJob,
        phase: SubmissionPhase,
        message: str,
        current_action: str | None = None,
        record: bool = True,
    ) -> None:
        job.phase = phase
        job.progress = max(job.progress, PHASE_PROGRESS.get(phase, job.progress))
        job.message = message
        job.current_action = current_action
        job.channel.publish(
            ProgressUpdate(
                application_id=job.application_id,
                job_id=job.request.job.job_id,
                step=phase,
                progress=job.progress,
                message=message,
                current_action=current_action,
            )
        )
        if record:
            await self._record(
                job,
                status=ApplicationState.PROCESSING,
                progress=job.progress,
                current_step=message,
            )

    async def _fail(self, job: SubmissionJob, code: OutcomeCode, error: str) -> SubmissionOutcome:
        logger.error(f"Submission {job.application_id} failed during {job.phase.value}: {error}")
        failed_during = job.phase
        job.phase = SubmissionPhase.FAILED
        job.message = "Application failed"
        job.current_action = error
        job.channel.publish(
            ProgressUpdate(
                application_id=job.application_id,
                job_id=job.request.job.job_id,
                step=SubmissionPhase.FAILED,
                progress=job.progress,
                message="Application failed",
                current_action=error,
            )
        )
        await self._record(
            job,
            status=ApplicationState.FAILED,
            current_step=f"Failed during {failed_during.value}",
            error_message=error,
        )
        return SubmissionOutcome(
            application_id=job.application_id,
            status=SubmissionPhase.FAILED,
            code=code,
            message="Application failed",
            platform=job.platform,
            match_score=job.match_score,
            error=error,
        )

    def _upload_reference(self, job: SubmissionJob, resume_reference: str | None) -> str | None:
        """Resume location the backend can fetch.

        A rendered file is only usable by backends running on this host;
        remote backends get the profile's resume URL instead.
        """
        if not resume_reference:
            return None
        if resume_reference.startswith(("http://", "https://")) or self.gateway.backend.accepts_local_files:
            return resume_reference
        fallback = job.request.profile.resume_file_url
        logger.warning(
            f"Rendered resume for {job.application_id} is a local file; "
            f"uploading {fallback or 'no resume'} to the {self.gateway.mode.value} backend instead"
        )
        return fallback

    async def _record(self, job: SubmissionJob, **fields: Any) -> None:
        if self.store is not None:
            await self.store.update(job.application_id, **fields)

    async def _close_session(self, job: SubmissionJob) -> None:
        if job.automation_session is not None:
            await job.automation_session.close()


def _failure_code(error: AutoApplyError) -> OutcomeCode:
    if isinstance(error, SessionExpiredError):
        return OutcomeCode.AUTHENTICATION_REQUIRED
    if isinstance(error, NavigationError):
        return OutcomeCode.NAVIGATION_FAILED
    if isinstance(error, FormFillError):
        return OutcomeCode.FORM_FILL_FAILED
    if isinstance(error, SubmissionError):
        return OutcomeCode.SUBMISSION_FAILED
    if isinstance(error, ConfigurationError):
        return OutcomeCode.CONFIGURATION_ERROR
    return OutcomeCode.AUTO_APPLY_FAILED
