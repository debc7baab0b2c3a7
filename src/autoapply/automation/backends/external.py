"""HTTP client backend for an externally hosted automation service."""

import logging
from typing import Any

import httpx

from autoapply.automation.backends.base import (
    AutomationMode,
    FillResult,
    HttpAutomationBackend,
    NavigationResult,
    SubmitResult,
    UploadResult,
)
from autoapply.automation.models import FieldMapping
from autoapply.config import Settings

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT = 60.0
CLOSE_TIMEOUT = 10.0
HEALTH_TIMEOUT = 5.0


class ExternalServiceBackend(HttpAutomationBackend):
    """Backend for an external automation service.

    The service exposes a session-scoped REST interface:

        POST   /sessions                      -> {"session_id": ...}
        POST   /sessions/{id}/navigate
        POST   /sessions/{id}/fill
        POST   /sessions/{id}/upload
        POST   /sessions/{id}/submit
        POST   /sessions/{id}/screenshot      -> {"data": <base64>}
        DELETE /sessions/{id}
        GET    /health
    """

    mode = AutomationMode.EXTERNAL

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_ms: int = 180000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, api_key, timeout_ms / 1000, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExternalServiceBackend":
        return cls(
            base_url=settings.external_browser_service_url or "",
            api_key=settings.external_browser_api_key,
            timeout_ms=settings.external_browser_timeout,
        )

    async def _post(self, path: str, timeout: float | None = None, **payload: Any) -> dict[str, Any]:
        response = await self.client.post(path, json=payload, timeout=timeout or self.timeout)
        return self.json_body(response)

    # =========================================================================
    # Session Management
    # =========================================================================

    async def create_session(self) -> str:
        """Create a new remote browser session.

        Raises:
            httpx.HTTPError: If the service refuses the session
        """
        body = await self._post("/sessions", headless=True)
        session_id = body["session_id"]
        logger.info(f"Created external browser session: {session_id}")
        return session_id

    async def close(self, session_id: str) -> None:
        try:
            response = await self.client.delete(
                f"/sessions/{session_id}", timeout=httpx.Timeout(CLOSE_TIMEOUT)
            )
            response.raise_for_status()
            logger.info(f"Closed external browser session: {session_id}")
        except httpx.HTTPError as e:
            logger.warning(f"Failed to close external browser session {session_id}: {e}")

    # =========================================================================
    # Application Steps
    # =========================================================================

    async def navigate(self, session_id: str, url: str) -> NavigationResult:
        try:
            body = await self._post(
                f"/sessions/{session_id}/navigate",
                timeout=NAVIGATION_TIMEOUT,
                url=url,
                wait_until="networkidle",
            )
            return NavigationResult.model_validate({"url": url, **body})
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"External navigation to {url} failed: {e}")
            return NavigationResult(
                success=False, url=url, error=f"Navigation failed: {self.describe_error(e)}"
            )

    async def fill(
        self,
        session_id: str,
        url: str,
        data: dict[str, str],
        mappings: list[FieldMapping] | None = None,
    ) -> FillResult:
        try:
            body = await self._post(
                f"/sessions/{session_id}/fill",
                url=url,
                data=data,
                mappings=[m.model_dump(mode="json") for m in mappings or []],
            )
            return FillResult.model_validate(body)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"External form fill failed: {e}")
            return FillResult(
                success=False,
                fields_skipped=list(data),
                error=f"Form filling failed: {self.describe_error(e)}",
            )

    async def upload_resume(
        self, session_id: str, resume_url: str, selector: str | None = None
    ) -> UploadResult:
        try:
            body = await self._post(
                f"/sessions/{session_id}/upload", resume_url=resume_url, selector=selector
            )
            return UploadResult.model_validate(body)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"External resume upload failed: {e}")
            return UploadResult(success=False, error=f"Resume upload failed: {self.describe_error(e)}")

    async def submit(self, session_id: str) -> SubmitResult:
        try:
            body = await self._post(f"/sessions/{session_id}/submit")
            return SubmitResult.model_validate(body)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"External submission failed: {e}")
            return SubmitResult(
                success=False, error=f"Application submission failed: {self.describe_error(e)}"
            )

    async def screenshot(self, session_id: str) -> str | None:
        try:
            body = await self._post(f"/sessions/{session_id}/screenshot")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Screenshot capture failed: {e}")
            return None
        return body.get("data") or body.get("screenshot") or None

    # =========================================================================
    # Health Check
    # =========================================================================

    async def health_check(self) -> bool:
        """Check if the external service is reachable and healthy."""
        try:
            response = await self.client.get("/health", timeout=HEALTH_TIMEOUT)
        except httpx.HTTPError as e:
            logger.warning(f"External service health check failed: {e}")
            return False
        return response.status_code == 200
