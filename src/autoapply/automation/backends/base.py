"""Backend interface and result models for remote form automation."""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from autoapply.automation.models import FieldMapping
from autoapply.exceptions import FormFillError, NavigationError, SubmissionError, UploadError

logger = logging.getLogger(__name__)


class AutomationMode(str, Enum):
    """Which backend executes automation operations."""

    MANAGED = "managed"
    EXTERNAL = "external"
    SIMULATION = "simulation"


class BackendResult(BaseModel):
    """Base for backend results.

    Remote services answer in camelCase or snake_case; both are accepted.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    success: bool
    error: str | None = None


class NavigationResult(BackendResult):
    url: str = ""
    title: str = ""
    screenshot: str | None = None

    def raise_for_status(self) -> None:
        if not self.success:
            raise NavigationError(self.error or f"Failed to navigate to {self.url}")


class FillResult(BackendResult):
    fields_filled: dict[str, str] = Field(default_factory=dict)
    fields_skipped: list[str] = Field(default_factory=list)
    screenshot: str | None = None

    def raise_for_status(self) -> None:
        if not self.success:
            raise FormFillError(
                self.error or "Failed to fill application form",
                fields_filled=self.fields_filled,
                fields_skipped=self.fields_skipped,
            )


class UploadResult(BackendResult):
    def raise_for_status(self) -> None:
        if not self.success:
            raise UploadError(self.error or "Resume upload failed")


class SubmitResult(BackendResult):
    confirmation_text: str | None = None
    redirect_url: str | None = None
    screenshot: str | None = None

    def raise_for_status(self) -> None:
        if not self.success:
            raise SubmissionError(self.error or "Application submission failed")


class AutomationBackend(ABC):
    """Operation surface shared by every automation backend.

    Implementations must capture transport and remote failures into the
    result models instead of raising.
    """

    mode: AutomationMode
    # Remote browsers cannot read paths on this host
    accepts_local_files: bool = False

    @abstractmethod
    async def create_session(self) -> str:
        """Open a remote automation context and return its id."""
        ...

    @abstractmethod
    async def navigate(self, session_id: str, url: str) -> NavigationResult:
        ...

    @abstractmethod
    async def fill(
        self,
        session_id: str,
        url: str,
        data: dict[str, str],
        mappings: list[FieldMapping] | None = None,
    ) -> FillResult:
        ...

    @abstractmethod
    async def upload_resume(
        self, session_id: str, resume_url: str, selector: str | None = None
    ) -> UploadResult:
        ...

    @abstractmethod
    async def submit(self, session_id: str) -> SubmitResult:
        ...

    @abstractmethod
    async def screenshot(self, session_id: str) -> str | None:
        ...

    @abstractmethod
    async def close(self, session_id: str) -> None:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...

    async def aclose(self) -> None:
        """Release resources held by the backend itself."""
        return None


class HttpAutomationBackend(AutomationBackend):
    """Shared httpx plumbing for backends that talk to a remote service."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            base_url: Service base URL
            api_key: Optional bearer token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get HTTP client, creating it on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers(),
                transport=self._transport,
            )
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "X-Automation-Mode": self.mode.value}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def describe_error(error: Exception) -> str:
        """Readable message for a failed remote call."""
        if isinstance(error, httpx.HTTPStatusError):
            return f"{error.response.status_code} - {error.response.text}"
        if isinstance(error, httpx.TimeoutException):
            return "request timed out"
        return str(error) or error.__class__.__name__

    @staticmethod
    def json_body(response: httpx.Response) -> dict[str, Any]:
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected response body: {body!r}")
        return body
