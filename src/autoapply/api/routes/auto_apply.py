"""Auto-apply submission and status routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from autoapply.api.dependencies import (
    OrchestratorDep,
    StatusServiceDep,
    StoreDep,
    SuggestionGateDep,
)
from autoapply.api.schemas import (
    ApplicationSummary,
    AutoApplyResponse,
    CancelResponse,
    ResumeAutoApplyRequest,
    StartAutoApplyRequest,
)
from autoapply.automation.orchestrator import SubmissionRequest
from autoapply.automation.status import StatusReport
from autoapply.db.models import ApplicationState
from autoapply.exceptions import ContinuationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/start", response_model=AutoApplyResponse)
async def start_auto_apply(request: StartAutoApplyRequest, orchestrator: OrchestratorDep):
    """Start (or join) an auto-apply submission.

    Waits until the match-score gate has been evaluated:
    - below the threshold with suggestions available, the response carries
      ``PROJECT_SUGGESTIONS_REQUIRED`` and a continuation token
    - otherwise the submission continues in the background and the
      response returns its ``application_id`` for status polling
    """
    job = await orchestrator.start(
        SubmissionRequest(
            user_id=request.user_id,
            job=request.job,
            profile=request.profile,
            resume_text=request.resume_text,
            match_score=request.match_score,
        )
    )
    await job.wait_analyzed()

    if job.done:
        return AutoApplyResponse.from_outcome(await job.result())
    return AutoApplyResponse.accepted(job.application_id, job.match_score)


@router.post("/resume", response_model=AutoApplyResponse)
async def resume_auto_apply(
    request: ResumeAutoApplyRequest,
    orchestrator: OrchestratorDep,
    gate: SuggestionGateDep,
):
    """Apply a project selection and continue the suspended submission."""
    continuation = orchestrator.get_continuation(request.continuation_token)
    if continuation is None:
        raise ContinuationError("Continuation is unknown or has already been used")

    try:
        job = await gate.select(continuation, request.suggestion_index, request.action)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    return AutoApplyResponse.accepted(job.application_id, job.match_score)


@router.get("/status/{application_id}", response_model=StatusReport, response_model_exclude_none=True)
async def get_auto_apply_status(application_id: str, service: StatusServiceDep):
    """Status of one application.

    Malformed and unknown ids return ``not_found`` with HTTP 200.
    """
    return await service.get_status(application_id)


@router.post("/cancel/{application_id}", response_model=CancelResponse)
async def cancel_auto_apply(application_id: str, service: StatusServiceDep):
    cancelled = await service.cancel(application_id)
    return CancelResponse(cancelled=cancelled)


@router.get("/applications", response_model=list[ApplicationSummary])
async def list_auto_apply_applications(
    user_id: Annotated[str, Query(min_length=1)],
    store: StoreDep,
    status: Annotated[ApplicationState | None, Query(description="Filter by status")] = None,
):
    """List a user's persisted applications, newest first."""
    records = await store.list_for_user(user_id, status)
    return [
        ApplicationSummary(
            application_id=record.id,
            job_posting_id=record.job_posting_id,
            platform=record.platform,
            status=record.status.value,
            progress=record.progress,
            current_step=record.current_step,
            error_message=record.error_message,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        for record in records
    ]


@router.websocket("/ws/{application_id}")
async def auto_apply_progress(websocket: WebSocket, application_id: str, orchestrator: OrchestratorDep):
    """Stream progress updates of an active submission until it finishes."""
    job = orchestrator.get_job(application_id)
    if job is None or job.channel.closed:
        await websocket.close(code=4004, reason="Application not active")
        return

    await websocket.accept()
    logger.info(f"WebSocket connected for application {application_id}")
    try:
        async for update in job.channel.subscribe():
            await websocket.send_json({"type": "progress", **update.model_dump(mode="json")})
        await websocket.close()
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for application {application_id}")
