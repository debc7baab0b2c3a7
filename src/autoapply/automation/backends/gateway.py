"""Automation backend gateway.

Selects one backend per process and hands out ``AutomationSession``
handles that the orchestrator owns for the duration of one submission.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any

import httpx

from autoapply.automation.backends.base import (
    AutomationBackend,
    AutomationMode,
    FillResult,
    NavigationResult,
    SubmitResult,
    UploadResult,
)
from autoapply.automation.backends.external import ExternalServiceBackend
from autoapply.automation.backends.managed import ManagedBrowserBackend
from autoapply.automation.backends.simulation import SimulationBackend
from autoapply.automation.models import FieldMapping
from autoapply.config import Settings, get_settings
from autoapply.exceptions import ConfigurationError, NavigationError

logger = logging.getLogger(__name__)


def select_automation_mode(settings: Settings) -> AutomationMode:
    """Pick the backend mode: managed > external > simulation.

    Raises:
        ConfigurationError: If no backend is configured and simulation is disabled
    """
    if settings.managed_browser_configured:
        return AutomationMode.MANAGED
    if settings.external_browser_configured:
        return AutomationMode.EXTERNAL
    if settings.simulation_enabled:
        return AutomationMode.SIMULATION
    raise ConfigurationError(
        "No automation backend configured: set MANAGED_BROWSER_WS_ENDPOINT and "
        "MANAGED_BROWSER_FUNCTION_URL, EXTERNAL_BROWSER_SERVICE_URL, or enable SIMULATION_ENABLED"
    )


def create_backend(mode: AutomationMode, settings: Settings) -> AutomationBackend:
    if mode == AutomationMode.MANAGED:
        return ManagedBrowserBackend.from_settings(settings)
    if mode == AutomationMode.EXTERNAL:
        return ExternalServiceBackend.from_settings(settings)
    return SimulationBackend(delay_seconds=settings.simulation_delay_seconds)


class AutomationSession:
    """Handle for one remote automation context.

    Operations are bound to the session id. ``close`` is best effort,
    idempotent and never raises.
    """

    def __init__(self, backend: AutomationBackend, session_id: str) -> None:
        self.backend = backend
        self.session_id = session_id
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def navigate(self, url: str) -> NavigationResult:
        return await self.backend.navigate(self.session_id, url)

    async def fill(
        self,
        url: str,
        data: dict[str, str],
        mappings: list[FieldMapping] | None = None,
    ) -> FillResult:
        """Fill the form; empty values are skipped without being sent."""
        to_fill = {key: value for key, value in data.items() if value}
        empty = [key for key, value in data.items() if not value]
        if not to_fill:
            return FillResult(success=True, fields_skipped=empty)

        hints = [m for m in mappings or [] if m.field_name in to_fill]
        result = await self.backend.fill(self.session_id, url, to_fill, hints)
        skipped = result.fields_skipped + [key for key in empty if key not in result.fields_skipped]
        return result.model_copy(update={"fields_skipped": skipped})

    async def upload_resume(self, resume_url: str, selector: str | None = None) -> UploadResult:
        return await self.backend.upload_resume(self.session_id, resume_url, selector)

    async def submit(self) -> SubmitResult:
        return await self.backend.submit(self.session_id)

    async def screenshot(self) -> str | None:
        return await self.backend.screenshot(self.session_id)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self.backend.close(self.session_id)
        except Exception as e:
            logger.warning(f"Error closing automation session {self.session_id}: {e}")


class AutomationBackendGateway:
    """Uniform entry point to the configured automation backend.

    Usage:
        gateway = get_gateway()
        async with gateway.session() as session:
            await session.navigate(url)
            ...
    """

    def __init__(self, backend: AutomationBackend, settings: Settings | None = None) -> None:
        self.backend = backend
        self.settings = settings or get_settings()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AutomationBackendGateway":
        mode = select_automation_mode(settings)
        logger.info(f"Automation mode: {mode.value}")
        return cls(create_backend(mode, settings), settings)

    @property
    def mode(self) -> AutomationMode:
        return self.backend.mode

    async def open_session(self) -> AutomationSession:
        """Open a remote automation context.

        Raises:
            NavigationError: If the backend cannot open a session
        """
        try:
            session_id = await self.backend.create_session()
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise NavigationError(f"Could not open automation session: {e}") from e
        return AutomationSession(self.backend, session_id)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AutomationSession]:
        handle = await self.open_session()
        try:
            yield handle
        finally:
            await handle.close()

    async def test_connection(self) -> bool:
        return await self.backend.health_check()

    def status(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "managed_configured": self.settings.managed_browser_configured,
            "external_configured": self.settings.external_browser_configured,
            "simulation_enabled": self.settings.simulation_enabled,
        }

    async def aclose(self) -> None:
        await self.backend.aclose()


@lru_cache
def get_gateway() -> AutomationBackendGateway:
    """Process-wide gateway; the mode is fixed on first use."""
    return AutomationBackendGateway.from_settings(get_settings())
