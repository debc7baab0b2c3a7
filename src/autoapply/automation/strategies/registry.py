"""Registry for platform strategies."""

import logging
from typing import TypeVar

from autoapply.automation.models import ApplicantProfile, FieldMapping
from autoapply.automation.strategies.base import PlatformStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=PlatformStrategy)

FALLBACK_PLATFORM = "generic"


class PlatformStrategyRegistry:
    """Ordered registry of platform strategies.

    Provides:
    - Registration of strategy classes via decorator
    - URL detection: first registered match wins, the fallback matches last
    - Field mapping dispatch by platform name

    Usage:
        # Register a strategy
        @PlatformStrategyRegistry.register
        class LeverStrategy(PlatformStrategy):
            ...

        # Detect strategy for a URL
        strategy = PlatformStrategyRegistry.detect("https://jobs.lever.co/acme/123")

        # Map profile for a platform name
        values = PlatformStrategyRegistry.map_fields(profile, "lever")
    """

    _strategies: dict[str, PlatformStrategy] = {}

    @classmethod
    def register(cls, strategy_class: type[T]) -> type[T]:
        """Register a strategy class.

        Use as a decorator:
            @PlatformStrategyRegistry.register
            class MyStrategy(PlatformStrategy):
                ...

        Args:
            strategy_class: Strategy class to register

        Returns:
            The registered class (for decorator pattern)
        """
        instance = strategy_class()
        cls._strategies[instance.name] = instance
        logger.debug(f"Registered platform strategy: {instance.name}")
        return strategy_class

    @classmethod
    def get_strategy(cls, platform: str) -> PlatformStrategy | None:
        """Get strategy by platform name.

        Args:
            platform: Platform identifier (e.g., 'greenhouse')

        Returns:
            PlatformStrategy or None if not registered
        """
        return cls._strategies.get(platform.lower())

    @classmethod
    def fallback(cls) -> PlatformStrategy:
        """The strategy used when no specific platform matches."""
        strategy = cls._strategies.get(FALLBACK_PLATFORM)
        if strategy is None:
            raise LookupError("Generic fallback strategy is not registered")
        return strategy

    @classmethod
    def specific_strategies(cls) -> list[PlatformStrategy]:
        """Registered non-fallback strategies in registration order."""
        return [s for s in cls._strategies.values() if not s.fallback]

    @classmethod
    def match(cls, url: str) -> PlatformStrategy | None:
        """First specific strategy whose URL patterns match, if any."""
        for strategy in cls.specific_strategies():
            if strategy.matches(url):
                return strategy
        return None

    @classmethod
    def detect(cls, url: str) -> PlatformStrategy:
        """Strategy for a URL, falling back to the generic strategy.

        Args:
            url: Job application URL

        Returns:
            Matching PlatformStrategy (never None)
        """
        strategy = cls.match(url)
        if strategy:
            logger.info(f"Detected platform by URL pattern: {strategy.name}")
            return strategy

        logger.info("Using generic strategy (no specific platform detected)")
        return cls.fallback()

    @classmethod
    def resolve(cls, platform: str) -> PlatformStrategy:
        """Strategy for a platform name; unknown names resolve to the fallback."""
        return cls.get_strategy(platform) or cls.fallback()

    @classmethod
    def map_fields(cls, profile: ApplicantProfile, platform: str) -> dict[str, str]:
        """Translate a profile into field values for the named platform."""
        return cls.resolve(platform).map_fields(profile)

    @classmethod
    def field_mappings(cls, platform: str, values: dict[str, str]) -> list[FieldMapping]:
        """Selector hints for mapped values on the named platform."""
        return cls.resolve(platform).field_mappings(values)

    @classmethod
    def list_strategies(cls) -> list[str]:
        """List all registered strategy names, fallback last."""
        return [s.name for s in cls.specific_strategies()] + [
            s.name for s in cls._strategies.values() if s.fallback
        ]

    @classmethod
    def clear(cls) -> None:
        """Clear all registered strategies (for testing)."""
        cls._strategies.clear()
