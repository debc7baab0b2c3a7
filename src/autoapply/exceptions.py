"""Exception hierarchy for the auto-apply service.

Backend and network failures are normally captured into result models
(see ``autoapply.automation.backends.base``). These exceptions are raised
only where a caller has to take a distinct path: configuration problems,
re-authentication, stale continuations, or an explicit ``raise_for_status``.
"""


class AutoApplyError(Exception):
    """Base class for all auto-apply errors."""


class ConfigurationError(AutoApplyError):
    """No usable automation backend, or a required secret is missing.

    Raised before any remote call is attempted. Never retried.
    """


class NavigationError(AutoApplyError):
    """The application page could not be reached."""


class FormFillError(AutoApplyError):
    """The application form could not be completed."""

    def __init__(
        self,
        message: str,
        fields_filled: dict[str, str] | None = None,
        fields_skipped: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.fields_filled = fields_filled or {}
        self.fields_skipped = fields_skipped or []


class UploadError(AutoApplyError):
    """Resume upload failed. Non-fatal for the pipeline."""


class SubmissionError(AutoApplyError):
    """The final submit step failed. Never retried automatically."""


class PollingNotFoundError(AutoApplyError):
    """The application record could not be found after repeated polls."""

    def __init__(self, application_id: str, misses: int) -> None:
        super().__init__(f"Application {application_id} not found after {misses} attempts")
        self.application_id = application_id
        self.misses = misses


class SessionExpiredError(AutoApplyError):
    """Stored platform session has expired; the user must log in again."""

    def __init__(self, user_id: str, platform: str) -> None:
        super().__init__(f"Session for {platform} expired")
        self.user_id = user_id
        self.platform = platform


class SessionDecryptionError(AutoApplyError):
    """Stored platform session could not be decrypted."""


class ContinuationError(AutoApplyError):
    """A suspended submission cannot be resumed with the given continuation."""
