"""Greenhouse strategy."""

from autoapply.automation.models import ApplicantProfile
from autoapply.automation.strategies.base import PlatformStrategy
from autoapply.automation.strategies.registry import PlatformStrategyRegistry


@PlatformStrategyRegistry.register
class GreenhouseStrategy(PlatformStrategy):
    """Strategy for Greenhouse job boards (boards.greenhouse.io).

    Greenhouse forms are public and use snake_case input names with
    separate first and last name fields.
    """

    @property
    def name(self) -> str:
        return "greenhouse"

    @property
    def display_name(self) -> str:
        return "Greenhouse"

    @property
    def url_patterns(self) -> list[str]:
        return [r"greenhouse\.io", r"boards\.greenhouse\.io"]

    @property
    def field_selectors(self) -> dict[str, str]:
        return {
            "first_name": 'input[name="first_name"], input[id*="first_name"]',
            "last_name": 'input[name="last_name"], input[id*="last_name"]',
            "email": 'input[name="email"], input[type="email"]',
            "phone": 'input[name="phone"], input[type="tel"]',
            "location": 'input[name="location"]',
        }

    @property
    def form_selectors(self) -> dict[str, list[str]]:
        return {
            "name": ['input[name*="name"]', "#first_name", "#last_name"],
            "email": ['input[name="email"]', "#email"],
            "phone": ['input[name="phone"]', "#phone"],
            "resume": ['input[name="resume"]', 'input[type="file"]'],
            "submit_button": ['input[type="submit"]', "#submit_app"],
        }

    @property
    def resume_selector(self) -> str:
        return 'input[type="file"][name*="resume"], input#resume'

    @property
    def submit_selector(self) -> str:
        return 'input[type="submit"][value*="Submit"], button[type="submit"]'

    @property
    def navigation_steps(self) -> list[str]:
        return [
            "Navigate to application form",
            "Fill in contact information",
            "Upload resume file",
            "Answer application questions",
            "Submit application",
        ]

    @property
    def session_cookie_names(self) -> list[str]:
        return ["__csrf_token", "_greenhouse_session"]

    def map_fields(self, profile: ApplicantProfile) -> dict[str, str]:
        values = {
            "first_name": profile.first_name,
            "last_name": profile.last_name,
            "email": profile.email,
            "phone": profile.phone,
        }
        self.add_optional(values, "location", profile.location)
        return values
