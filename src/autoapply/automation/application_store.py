"""Write-through persistence of submission progress.

The orchestrator records every phase change here so the status contract
can still be answered after a job has left memory.
"""

import logging
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autoapply.db.models import ApplicationState, AutoApplyApplication
from autoapply.db.repositories import AutoApplyApplicationRepository

logger = logging.getLogger(__name__)


class ApplicationRecord(BaseModel):
    """Snapshot of a persisted application."""

    id: str
    user_id: str
    job_posting_id: str
    platform: str = "unknown"
    application_url: str
    status: ApplicationState
    progress: int = 0
    current_step: str | None = None
    error_message: str | None = None
    screenshot: str | None = None
    confirmation_text: str | None = None
    redirect_url: str | None = None
    fields_filled: dict[str, str] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: AutoApplyApplication) -> "ApplicationRecord":
        return cls(
            id=str(row.id),
            user_id=row.user_id,
            job_posting_id=row.job_posting_id,
            platform=row.platform or "unknown",
            application_url=row.application_url,
            status=row.status,
            progress=row.progress or 0,
            current_step=row.current_step,
            error_message=row.error_message,
            screenshot=row.screenshot,
            confirmation_text=row.confirmation_text,
            redirect_url=row.redirect_url,
            fields_filled=row.fields_filled or {},
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


def parse_application_id(application_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(application_id))
    except ValueError:
        return None


class ApplicationStore:
    """Database-backed store for ``auto_apply_applications``.

    Writes are best effort: a failed write is logged and the submission
    carries on.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        if session_factory is None:
            from autoapply.db.session import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self.session_factory = session_factory

    async def create(
        self,
        application_id: str,
        user_id: str,
        job_posting_id: str,
        application_url: str,
    ) -> None:
        try:
            async with self.session_factory.begin() as db:
                await AutoApplyApplicationRepository(db).create(
                    id=uuid.UUID(application_id),
                    user_id=user_id,
                    job_posting_id=job_posting_id,
                    application_url=application_url,
                    status=ApplicationState.PENDING,
                    progress=0,
                    current_step="Initializing...",
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to record application {application_id}: {e}")

    async def update(self, application_id: str, **fields: Any) -> None:
        try:
            async with self.session_factory.begin() as db:
                await AutoApplyApplicationRepository(db).update(uuid.UUID(application_id), **fields)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update application {application_id}: {e}")

    async def get(self, application_id: str) -> ApplicationRecord | None:
        """Record for an application id.

        Unknown or malformed ids, and lookups the database cannot answer,
        return None so callers report the application as not found.
        """
        parsed = parse_application_id(application_id)
        if parsed is None:
            return None
        try:
            async with self.session_factory() as db:
                row = await AutoApplyApplicationRepository(db).get(parsed)
                return ApplicationRecord.from_row(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load application {application_id}: {e}")
            return None

    async def list_for_user(self, user_id: str, status: ApplicationState | None = None) -> list[ApplicationRecord]:
        """Applications for a user, newest first."""
        async with self.session_factory() as db:
            rows = await AutoApplyApplicationRepository(db).get_by_user(user_id, status)
        return [ApplicationRecord.from_row(row) for row in rows]
