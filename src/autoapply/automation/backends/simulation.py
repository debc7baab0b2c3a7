"""Deterministic simulation backend.

Used when no real automation service is configured. Every operation
succeeds; submission completes after a fixed delay.
"""

import asyncio
import logging
import uuid

from autoapply.automation.backends.base import (
    AutomationBackend,
    AutomationMode,
    FillResult,
    NavigationResult,
    SubmitResult,
    UploadResult,
)
from autoapply.automation.models import FieldMapping

logger = logging.getLogger(__name__)

SIMULATED_CONFIRMATION = "Auto-apply simulated successfully! (Demo Mode)"


class SimulationBackend(AutomationBackend):
    """Backend that pretends to submit applications."""

    mode = AutomationMode.SIMULATION
    accepts_local_files = True

    def __init__(self, delay_seconds: float = 2.0) -> None:
        self.delay_seconds = delay_seconds
        self.open_sessions: set[str] = set()

    async def create_session(self) -> str:
        session_id = f"sim_{uuid.uuid4().hex}"
        self.open_sessions.add(session_id)
        logger.info(f"Opened simulated session: {session_id}")
        return session_id

    async def navigate(self, session_id: str, url: str) -> NavigationResult:
        return NavigationResult(success=True, url=url, title="Simulated application form")

    async def fill(
        self,
        session_id: str,
        url: str,
        data: dict[str, str],
        mappings: list[FieldMapping] | None = None,
    ) -> FillResult:
        filled = {key: value for key, value in data.items() if value}
        skipped = [key for key, value in data.items() if not value]
        return FillResult(success=True, fields_filled=filled, fields_skipped=skipped)

    async def upload_resume(
        self, session_id: str, resume_url: str, selector: str | None = None
    ) -> UploadResult:
        return UploadResult(success=True)

    async def submit(self, session_id: str) -> SubmitResult:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return SubmitResult(success=True, confirmation_text=SIMULATED_CONFIRMATION)

    async def screenshot(self, session_id: str) -> str | None:
        return None

    async def close(self, session_id: str) -> None:
        self.open_sessions.discard(session_id)
        logger.info(f"Closed simulated session: {session_id}")

    async def health_check(self) -> bool:
        return True
