"""Platform classification for application URLs.

Wraps the strategy registry with the detection contract used by the
orchestrator and the API: platform name, confidence and authentication
metadata for a URL.
"""

import logging
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from autoapply.automation.strategies import AuthStrategy, PlatformStrategy, PlatformStrategyRegistry
from autoapply.automation.strategies.base import DEFAULT_SESSION_COOKIES

logger = logging.getLogger(__name__)

UNKNOWN_PLATFORM = "unknown"
MATCH_CONFIDENCE = 0.95
UNKNOWN_CONFIDENCE = 0.3
SUPPORTED_CONFIDENCE = 0.5


class PlatformDetection(BaseModel):
    """Result of classifying one URL."""

    platform: str
    display_name: str
    confidence: float
    requires_auth: bool = False
    auth_strategy: AuthStrategy = AuthStrategy.SESSION
    login_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_supported(self) -> bool:
        return self.confidence > SUPPORTED_CONFIDENCE


class PlatformInfo(BaseModel):
    """Static configuration of a registered platform."""

    name: str
    display_name: str
    login_url: str | None = None
    requires_auth: bool
    auth_strategy: AuthStrategy
    estimated_complexity: str
    form_selectors: dict[str, list[str]] = Field(default_factory=dict)


class AuthenticationState(BaseModel):
    is_authenticated: bool
    needs_login: bool
    login_detected: bool


class PlatformClassifier:
    """Maps URLs to registered platform strategies.

    Classification is a pure function of the registered strategy table:
    the first specific strategy whose patterns match wins with confidence
    0.95, otherwise the URL is ``unknown`` with confidence 0.3. A URL
    without a scheme or host is ``unknown`` with confidence 0.
    """

    def classify(self, url: str) -> PlatformDetection:
        parsed = urlparse(url.strip()) if url else None
        if not parsed or not parsed.scheme or not parsed.hostname:
            logger.warning(f"Cannot classify unparseable URL: {url!r}")
            return PlatformDetection(
                platform=UNKNOWN_PLATFORM,
                display_name="Unknown Platform",
                confidence=0.0,
            )

        base_url = f"{parsed.scheme}://{parsed.hostname}"
        strategy = PlatformStrategyRegistry.match(url)
        if strategy is None:
            return PlatformDetection(
                platform=UNKNOWN_PLATFORM,
                display_name="Unknown Platform",
                confidence=UNKNOWN_CONFIDENCE,
                metadata={"base_url": base_url},
            )

        return PlatformDetection(
            platform=strategy.name,
            display_name=strategy.display_name,
            confidence=MATCH_CONFIDENCE,
            requires_auth=strategy.requires_login,
            auth_strategy=strategy.auth_strategy,
            login_url=strategy.login_url,
            metadata={"base_url": base_url, "form_selectors": strategy.form_selectors},
        )

    def strategy_for(self, url: str) -> PlatformStrategy:
        """Strategy used to fill the form at ``url`` (generic when unknown)."""
        return PlatformStrategyRegistry.detect(url)

    def is_supported(self, url: str) -> bool:
        return self.classify(url).is_supported

    def requires_authentication(self, url: str) -> bool:
        return self.classify(url).requires_auth

    def get_login_url(self, url: str) -> str | None:
        return self.classify(url).login_url

    def get_form_selectors(self, url: str) -> dict[str, list[str]]:
        return self.classify(url).metadata.get("form_selectors", {})

    def get_platform_config(self, name: str) -> PlatformInfo | None:
        strategy = PlatformStrategyRegistry.get_strategy(name)
        if strategy is None or strategy.fallback:
            return None
        return _platform_info(strategy)

    def supported_platforms(self) -> list[PlatformInfo]:
        return [_platform_info(s) for s in PlatformStrategyRegistry.specific_strategies()]

    def get_session_cookie_names(self, platform: str) -> list[str]:
        strategy = PlatformStrategyRegistry.get_strategy(platform)
        if strategy is None:
            return list(DEFAULT_SESSION_COOKIES)
        return list(strategy.session_cookie_names)

    def detect_authentication_state(self, page_content: str, url: str) -> AuthenticationState:
        """Check page content for logged-in or login-page markers.

        Called with content captured by an automation backend. Platforms
        without their own markers use the generic logout/login patterns.
        """
        strategy = PlatformStrategyRegistry.match(url)
        if strategy is None:
            strategy = PlatformStrategyRegistry.fallback()
        state = strategy.detect_authentication_state(page_content)
        return AuthenticationState(**state)


def _platform_info(strategy: PlatformStrategy) -> PlatformInfo:
    return PlatformInfo(
        name=strategy.name,
        display_name=strategy.display_name,
        login_url=strategy.login_url,
        requires_auth=strategy.requires_login,
        auth_strategy=strategy.auth_strategy,
        estimated_complexity=strategy.estimated_complexity.value,
        form_selectors=strategy.form_selectors,
    )
