"""Automation backends: managed remote browser, external service, simulation."""

from autoapply.automation.backends.base import (
    AutomationBackend,
    AutomationMode,
    FillResult,
    NavigationResult,
    SubmitResult,
    UploadResult,
)
from autoapply.automation.backends.gateway import (
    AutomationBackendGateway,
    AutomationSession,
    get_gateway,
    select_automation_mode,
)

__all__ = [
    "AutomationBackend",
    "AutomationBackendGateway",
    "AutomationMode",
    "AutomationSession",
    "FillResult",
    "NavigationResult",
    "SubmitResult",
    "UploadResult",
    "get_gateway",
    "select_automation_mode",
]
