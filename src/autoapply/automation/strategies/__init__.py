"""Platform strategies for classification and form-field mapping.

Each hiring platform has its own URL patterns, authentication needs,
selectors and field names. Strategies encapsulate this platform-specific
knowledge behind one interface; the registry resolves them in registration
order with ``generic`` always consulted last.
"""

from autoapply.automation.strategies.base import AuthStrategy, Complexity, PlatformStrategy
from autoapply.automation.strategies.registry import PlatformStrategyRegistry

# Import strategies to register them (order defines match priority)
from autoapply.automation.strategies import (  # noqa: F401, E402
    linkedin,
    workday,
    naukri,
    greenhouse,
    lever,
    job_boards,
    generic,
)

__all__ = [
    "AuthStrategy",
    "Complexity",
    "PlatformStrategy",
    "PlatformStrategyRegistry",
]
