"""Client-facing status contract for submissions.

``StatusService`` answers ``GET /api/auto-apply/status/{id}`` from live jobs
and the application store. ``LocalStatusSource`` and ``HttpStatusClient``
feed the same contract to the ``ProgressPoller`` in-process or over HTTP.
"""

import logging
from datetime import datetime
from enum import Enum

import httpx
from pydantic import BaseModel

from autoapply.automation.application_store import ApplicationRecord, ApplicationStore, parse_application_id
from autoapply.automation.orchestrator import SubmissionJob, SubmissionOrchestrator, SubmissionPhase
from autoapply.config import get_settings
from autoapply.db.models import ApplicationState, utcnow

logger = logging.getLogger(__name__)


class ApplicationStatus(str, Enum):
    """Status values exposed to callers."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_FOUND = "not_found"


TERMINAL_STATUSES = {ApplicationStatus.COMPLETED, ApplicationStatus.FAILED}

# (elapsed seconds upper bound, estimated seconds remaining)
REMAINING_TIME_STEPS = [(10, 110), (30, 90), (60, 60), (90, 30)]
FINAL_REMAINING_TIME = 5


class StatusReport(BaseModel):
    """Status of one application as reported to callers."""

    status: ApplicationStatus
    application_id: str | None = None
    job_id: str | None = None
    progress: int = 0
    current_step: str | None = None
    estimated_time_remaining: int | None = None
    screenshot_url: str | None = None
    error_message: str | None = None
    elapsed_seconds: int | None = None

    @classmethod
    def not_found(cls, application_id: str | None, current_step: str) -> "StatusReport":
        return cls(
            status=ApplicationStatus.NOT_FOUND,
            application_id=application_id,
            progress=0,
            current_step=current_step,
            estimated_time_remaining=0,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


def estimate_remaining_seconds(elapsed_seconds: int) -> int:
    for upper_bound, remaining in REMAINING_TIME_STEPS:
        if elapsed_seconds < upper_bound:
            return remaining
    return FINAL_REMAINING_TIME


def _elapsed(since: datetime | None, now: datetime) -> int:
    if since is None:
        return 0
    return max(int((now - since).total_seconds()), 0)


def report_from_record(record: ApplicationRecord, now: datetime | None = None) -> StatusReport:
    now = now or utcnow()
    elapsed = _elapsed(record.created_at, now)
    report = StatusReport(
        status=ApplicationStatus.PROCESSING,
        application_id=record.id,
        job_id=record.job_posting_id,
        progress=record.progress,
        current_step=record.current_step,
        screenshot_url=record.screenshot,
        error_message=record.error_message,
        elapsed_seconds=elapsed,
    )

    if record.status == ApplicationState.SUBMITTED:
        return report.model_copy(
            update={
                "status": ApplicationStatus.COMPLETED,
                "progress": 100,
                "current_step": record.current_step or "Application submitted successfully",
                "estimated_time_remaining": 0,
            }
        )
    if record.status in (ApplicationState.FAILED, ApplicationState.CANCELLED):
        error = record.error_message
        if record.status == ApplicationState.CANCELLED:
            error = error or "Application cancelled"
        return report.model_copy(
            update={
                "status": ApplicationStatus.FAILED,
                "current_step": record.current_step or "Application failed",
                "error_message": error,
                "estimated_time_remaining": 0,
            }
        )
    if record.status == ApplicationState.PENDING:
        return report.model_copy(
            update={"status": ApplicationStatus.PENDING, "current_step": record.current_step or "Initializing..."}
        )
    return report.model_copy(update={"estimated_time_remaining": estimate_remaining_seconds(elapsed)})


def report_from_job(job: SubmissionJob, now: datetime | None = None) -> StatusReport:
    now = now or utcnow()
    elapsed = _elapsed(job.started_at, now)
    if job.continuation_token and job.done:
        return StatusReport(
            status=ApplicationStatus.PENDING,
            application_id=job.application_id,
            job_id=job.request.job.job_id,
            progress=job.progress,
            current_step="Waiting for project selection",
            elapsed_seconds=elapsed,
        )
    if job.phase == SubmissionPhase.COMPLETED:
        status, remaining = ApplicationStatus.COMPLETED, 0
    elif job.phase in (SubmissionPhase.FAILED, SubmissionPhase.CANCELLED):
        status, remaining = ApplicationStatus.FAILED, 0
    else:
        status, remaining = ApplicationStatus.PROCESSING, estimate_remaining_seconds(elapsed)
    return StatusReport(
        status=status,
        application_id=job.application_id,
        job_id=job.request.job.job_id,
        progress=job.progress,
        current_step=job.message or None,
        estimated_time_remaining=remaining,
        error_message=job.current_action if status == ApplicationStatus.FAILED else None,
        elapsed_seconds=elapsed,
    )


class StatusService:
    """Serves the status contract from live jobs, then the application store.

    Malformed and unknown ids are reported as ``not_found`` rather than
    raised, so pollers can count misses uniformly.
    """

    def __init__(self, orchestrator: SubmissionOrchestrator, store: ApplicationStore | None = None) -> None:
        self.orchestrator = orchestrator
        self.store = store

    async def get_status(self, application_id: str) -> StatusReport:
        if not application_id:
            return StatusReport.not_found(None, "Invalid request")
        if parse_application_id(application_id) is None:
            return StatusReport.not_found(application_id, "Invalid ID format")

        job = self.orchestrator.get_job(application_id)
        if job is not None:
            return report_from_job(job)

        if self.store is not None:
            record = await self.store.get(application_id)
            if record is not None:
                return report_from_record(record)

        return StatusReport.not_found(application_id, "Application not found")

    async def cancel(self, application_id: str) -> bool:
        return await self.orchestrator.cancel_application(application_id)


class LocalStatusSource:
    """In-process status source for the poller."""

    def __init__(self, service: StatusService) -> None:
        self.service = service

    async def fetch(self, application_id: str) -> StatusReport:
        return await self.service.get_status(application_id)

    async def cancel(self, application_id: str) -> bool:
        return await self.service.cancel(application_id)


class HttpStatusClient:
    """Status source that calls the HTTP status contract.

    Non-200 responses and transport errors are reported as ``not_found``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or get_settings().status_api_url).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def fetch(self, application_id: str) -> StatusReport:
        try:
            async with self._client() as client:
                response = await client.get(f"/api/auto-apply/status/{application_id}")
                if response.status_code != 200:
                    logger.warning(f"Status check returned {response.status_code}, reporting not_found")
                    return StatusReport.not_found(application_id, "Application record not found")
                return StatusReport.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error checking auto-apply status: {e}")
            return StatusReport.not_found(application_id, "Unable to check status")

    async def cancel(self, application_id: str) -> bool:
        try:
            async with self._client() as client:
                response = await client.post(f"/api/auto-apply/cancel/{application_id}")
                return response.status_code == 200 and bool(response.json().get("cancelled"))
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error cancelling auto-apply: {e}")
            return False
