"""Managed remote-browser backend.

Every operation is a POST to a single automation function that drives a
hosted browser over its websocket endpoint. The function is stateless
between calls apart from the session id we mint here.
"""

import logging
import uuid
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

HEALTH_TIMEOUT = 10.0


class ManagedBrowserBackend(HttpAutomationBackend):
    """Backend for a managed remote-browser service.

    Request bodies carry an ``action`` (navigate, fill, upload, submit,
    screenshot, close, health) plus the browser configuration the function
    should connect with.
    """

    mode = AutomationMode.MANAGED

    def __init__(
        self,
        function_url: str,
        ws_endpoint: str,
        api_key: str | None = None,
        timeout_ms: int = 60000,
        headless: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(function_url, api_key, timeout_ms / 1000, transport=transport)
        self.browser_config = {
            "wsEndpoint": ws_endpoint,
            "timeout": timeout_ms,
            "headless": headless,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "ManagedBrowserBackend":
        return cls(
            function_url=settings.managed_browser_function_url or "",
            ws_endpoint=settings.managed_browser_ws_endpoint or "",
            api_key=settings.managed_browser_api_key,
            timeout_ms=settings.managed_browser_timeout,
            headless=settings.managed_browser_headless,
        )

    async def _call(self, action: str, timeout: float | None = None, **payload: Any) -> dict[str, Any]:
        body = {"action": action, **payload, "browserConfig": self.browser_config}
        response = await self.client.post(self.base_url, json=body, timeout=timeout or self.timeout)
        return self.json_body(response)

    async def create_session(self) -> str:
        session_id = f"session_{uuid.uuid4().hex}"
        logger.info(f"Opened managed browser session: {session_id}")
        return session_id

    async def navigate(self, session_id: str, url: str) -> NavigationResult:
        try:
            body = await self._call("navigate", sessionId=session_id, url=url)
            return NavigationResult.model_validate({"url": url, **body})
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Managed navigation to {url} failed: {e}")
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
            body = await self._call(
                "fill",
                sessionId=session_id,
                url=url,
                formData=data,
                fieldMappings=[m.model_dump(mode="json") for m in mappings or []],
            )
            return FillResult.model_validate(body)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Managed form fill failed: {e}")
            return FillResult(
                success=False,
                fields_skipped=list(data),
                error=f"Form filling failed: {self.describe_error(e)}",
            )

    async def upload_resume(
        self, session_id: str, resume_url: str, selector: str | None = None
    ) -> UploadResult:
        try:
            body = await self._call(
                "upload", sessionId=session_id, resumeUrl=resume_url, fileInputSelector=selector
            )
            return UploadResult.model_validate(body)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Managed resume upload failed: {e}")
            return UploadResult(success=False, error=f"Resume upload failed: {self.describe_error(e)}")

    async def submit(self, session_id: str) -> SubmitResult:
        try:
            body = await self._call("submit", sessionId=session_id)
            return SubmitResult.model_validate(body)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Managed submission failed: {e}")
            return SubmitResult(
                success=False, error=f"Application submission failed: {self.describe_error(e)}"
            )

    async def screenshot(self, session_id: str) -> str | None:
        try:
            body = await self._call("screenshot", sessionId=session_id)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Screenshot capture failed: {e}")
            return None
        return body.get("screenshot") or None

    async def close(self, session_id: str) -> None:
        try:
            await self._call("close", sessionId=session_id)
            logger.info(f"Closed managed browser session: {session_id}")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to close managed browser session {session_id}: {e}")

    async def health_check(self) -> bool:
        try:
            await self._call("health", timeout=HEALTH_TIMEOUT)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Managed browser connection test failed: {e}")
            return False
        return True
