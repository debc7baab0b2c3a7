"""Generic fallback strategy for unrecognised hiring platforms.

Maps the canonical profile onto the field names most application forms use
and locates inputs with broad, case-insensitive selector patterns.
"""

from autoapply.automation.models import ApplicantProfile
from autoapply.automation.strategies.base import Complexity, PlatformStrategy
from autoapply.automation.strategies.registry import PlatformStrategyRegistry


class GenericFieldsMixin:
    """Field mapping shared by platforms without their own form conventions."""

    def map_fields(self, profile: ApplicantProfile) -> dict[str, str]:
        values = {
            "name": profile.full_name,
            "email": profile.email,
            "phone": profile.phone,
        }
        PlatformStrategy.add_optional(values, "linkedin", profile.linkedin)
        PlatformStrategy.add_optional(values, "github", profile.github)
        PlatformStrategy.add_optional(values, "location", profile.location)
        return values


GENERIC_FIELD_SELECTORS = {
    "name": 'input[name*="name" i], input[id*="name" i], input[placeholder*="name" i], '
    'input[name="fullname"], input[name="full_name"], input[name="applicant_name"]',
    "email": 'input[type="email"], input[name*="email" i], input[id*="email" i]',
    "phone": 'input[type="tel"], input[name*="phone" i], input[id*="phone" i]',
    "linkedin": 'input[name*="linkedin" i], input[id*="linkedin" i], input[placeholder*="linkedin" i]',
    "github": 'input[name*="github" i], input[id*="github" i], input[placeholder*="github" i]',
    "location": 'input[name*="location" i], input[id*="location" i], input[name*="city" i]',
}


@PlatformStrategyRegistry.register
class GenericStrategy(GenericFieldsMixin, PlatformStrategy):
    """Fallback strategy that works with any application form.

    Always matches, and the registry consults it only after every specific
    platform has declined the URL.
    """

    fallback = True

    @property
    def name(self) -> str:
        return "generic"

    @property
    def display_name(self) -> str:
        return "Generic Form"

    @property
    def url_patterns(self) -> list[str]:
        return [r".*"]

    @property
    def estimated_complexity(self) -> Complexity:
        return Complexity.MODERATE

    @property
    def field_selectors(self) -> dict[str, str]:
        return GENERIC_FIELD_SELECTORS

    @property
    def submit_selector(self) -> str:
        return (
            'button[type="submit"], input[type="submit"], '
            'button:has-text("Submit"), button:has-text("Apply")'
        )

    @property
    def navigation_steps(self) -> list[str]:
        return [
            "Analyze form structure",
            "Fill detected fields",
            "Upload resume if file input found",
            "Submit form",
        ]

    def matches(self, url: str) -> bool:
        return True
