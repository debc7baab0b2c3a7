"""Base platform strategy interface."""

import re
from abc import ABC, abstractmethod
from enum import Enum
from urllib.parse import urlparse

from autoapply.automation.models import ApplicantProfile, FieldMapping, FieldType


class AuthStrategy(str, Enum):
    """How a platform keeps a user authenticated."""

    COOKIE = "cookie"
    TOKEN = "token"
    OAUTH = "oauth"
    SESSION = "session"


class Complexity(str, Enum):
    """Estimated effort to automate a platform's application flow."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


DEFAULT_SESSION_COOKIES = ["JSESSIONID", "PHPSESSID", "connect.sid"]
DEFAULT_AUTHENTICATED_MARKERS = [r"logout", r"signout", r"sign.*out"]
DEFAULT_LOGIN_MARKERS = [r"login", r"signin", r"sign.*in", r"authenticate"]


class PlatformStrategy(ABC):
    """Base strategy for one hiring platform.

    Subclasses describe a platform (URL patterns, authentication needs,
    selectors) and own the translation of an ``ApplicantProfile`` into the
    platform's form field names.

    Usage:
        strategy = PlatformStrategyRegistry.detect(url)
        values = strategy.map_fields(profile)
        hints = strategy.field_mappings(values)
    """

    #: Fallback strategies always match and are consulted last.
    fallback: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Platform identifier (e.g., 'greenhouse', 'lever')."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human readable platform name."""
        ...

    @property
    @abstractmethod
    def url_patterns(self) -> list[str]:
        """URL patterns to match this platform (regex patterns)."""
        ...

    @property
    def requires_login(self) -> bool:
        return False

    @property
    def auth_strategy(self) -> AuthStrategy:
        return AuthStrategy.SESSION

    @property
    def login_url(self) -> str | None:
        return None

    @property
    def estimated_complexity(self) -> Complexity:
        return Complexity.MODERATE

    @property
    def field_selectors(self) -> dict[str, str]:
        """CSS selectors keyed by the field keys produced by ``map_fields``."""
        return {}

    @property
    def form_selectors(self) -> dict[str, list[str]]:
        """Selectors grouped by purpose (name, email, phone, resume, submit_button).

        Reported by the classifier as detection metadata.
        """
        return {}

    @property
    def resume_selector(self) -> str:
        return 'input[type="file"][accept*="pdf"], input[type="file"][name*="resume" i], input[type="file"][name*="cv" i]'

    @property
    def submit_selector(self) -> str:
        return 'button[type="submit"], input[type="submit"]'

    @property
    def navigation_steps(self) -> list[str]:
        return []

    @property
    def session_cookie_names(self) -> list[str]:
        return DEFAULT_SESSION_COOKIES

    @property
    def authenticated_markers(self) -> list[str]:
        """Regexes found in page content when the user is logged in."""
        return DEFAULT_AUTHENTICATED_MARKERS

    @property
    def login_markers(self) -> list[str]:
        """Regexes found in page content on a login page."""
        return DEFAULT_LOGIN_MARKERS

    def matches(self, url: str) -> bool:
        """Check the URL's hostname and full string against the URL patterns."""
        full_url = url.lower()
        hostname = (urlparse(full_url).hostname or "").lower()
        return any(
            re.search(pattern, hostname, re.IGNORECASE) or re.search(pattern, full_url, re.IGNORECASE)
            for pattern in self.url_patterns
        )

    @abstractmethod
    def map_fields(self, profile: ApplicantProfile) -> dict[str, str]:
        """Translate the applicant profile into platform field values.

        Optional profile fields that are absent must be omitted, never
        emitted as empty strings.
        """
        ...

    def field_mappings(self, values: dict[str, str]) -> list[FieldMapping]:
        """Build selector hints for already mapped field values."""
        mappings = []
        for key, value in values.items():
            selector = self.field_selectors.get(key) or f'input[name="{key}"]'
            primary, *alternatives = [s.strip() for s in selector.split(", ")]
            mappings.append(
                FieldMapping(
                    field_name=key,
                    field_type=_infer_field_type(key),
                    selector=primary,
                    value=value,
                    alternatives=alternatives,
                )
            )
        return mappings

    def detect_authentication_state(self, page_content: str) -> dict[str, bool]:
        """Classify page content as logged in, login page, or neither."""
        is_authenticated = any(
            re.search(p, page_content, re.IGNORECASE) for p in self.authenticated_markers
        )
        login_detected = any(re.search(p, page_content, re.IGNORECASE) for p in self.login_markers)
        return {
            "is_authenticated": is_authenticated,
            "needs_login": not is_authenticated and login_detected,
            "login_detected": login_detected,
        }

    @staticmethod
    def add_optional(values: dict[str, str], key: str, value: str | None) -> None:
        """Set ``key`` only when the optional value is present."""
        if value:
            values[key] = value


def _infer_field_type(key: str) -> FieldType:
    lowered = key.lower()
    if "email" in lowered:
        return FieldType.EMAIL
    if "phone" in lowered or "mobile" in lowered:
        return FieldType.TEL
    if lowered == "country":
        return FieldType.SELECT
    return FieldType.TEXT
