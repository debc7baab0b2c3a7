"""Workday strategy.

Workday forms are multi-section wizards addressed through
``data-automation-id`` attributes rather than input names.
"""

from autoapply.automation.strategies.base import Complexity, PlatformStrategy
from autoapply.automation.strategies.generic import GenericFieldsMixin
from autoapply.automation.strategies.registry import PlatformStrategyRegistry


@PlatformStrategyRegistry.register
class WorkdayStrategy(GenericFieldsMixin, PlatformStrategy):
    """Strategy for Workday-hosted career sites."""

    @property
    def name(self) -> str:
        return "workday"

    @property
    def display_name(self) -> str:
        return "Workday"

    @property
    def url_patterns(self) -> list[str]:
        return [r"myworkdayjobs\.com", r"workday\.com", r"wd\d\.myworkdayjobs"]

    @property
    def estimated_complexity(self) -> Complexity:
        return Complexity.COMPLEX

    @property
    def field_selectors(self) -> dict[str, str]:
        return {
            "name": 'input[data-automation-id*="legalName"], input[name*="name"]',
            "email": 'input[data-automation-id*="email"], input[type="email"]',
            "phone": 'input[data-automation-id*="phone"], input[type="tel"]',
            "location": 'input[data-automation-id*="city"], input[data-automation-id*="address"]',
            "linkedin": 'input[data-automation-id*="linkedin"]',
            "github": 'input[data-automation-id*="website"]',
        }

    @property
    def form_selectors(self) -> dict[str, list[str]]:
        return {
            "name": ['input[data-automation-id*="legalNameSection"]', 'input[name*="name"]'],
            "email": ['input[data-automation-id*="email"]', 'input[type="email"]'],
            "phone": ['input[data-automation-id*="phone"]', 'input[type="tel"]'],
            "resume": ['input[data-automation-id*="resume"]', 'input[type="file"]'],
            "submit_button": ['button[data-automation-id="bottom-navigation-next-button"]'],
        }

    @property
    def resume_selector(self) -> str:
        return 'input[type="file"][data-automation-id*="resume"], input[type="file"][data-automation-id*="file"]'

    @property
    def submit_selector(self) -> str:
        return 'button[data-automation-id*="submit"], button[aria-label*="Submit"]'

    @property
    def navigation_steps(self) -> list[str]:
        return [
            'Click "Apply" button on job posting',
            "Fill in personal information section",
            "Complete work experience section",
            "Upload resume and cover letter",
            "Answer pre-screening questions",
            "Review and submit application",
        ]

    @property
    def session_cookie_names(self) -> list[str]:
        return ["PLAY_SESSION", "wday_vps_cookie", "wd-browser-id"]

    @property
    def authenticated_markers(self) -> list[str]:
        return [r"signed.*in", r"myworkday"]

    @property
    def login_markers(self) -> list[str]:
        return [r"sign.*in", r"login"]
