"""Lever strategy."""

from autoapply.automation.models import ApplicantProfile
from autoapply.automation.strategies.base import Complexity, PlatformStrategy
from autoapply.automation.strategies.registry import PlatformStrategyRegistry


@PlatformStrategyRegistry.register
class LeverStrategy(PlatformStrategy):
    """Strategy for Lever postings (jobs.lever.co).

    Lever takes a single full-name field and collects profile links under
    ``urls[...]`` inputs.
    """

    @property
    def name(self) -> str:
        return "lever"

    @property
    def display_name(self) -> str:
        return "Lever"

    @property
    def url_patterns(self) -> list[str]:
        return [r"lever\.co", r"jobs\.lever\.co"]

    @property
    def estimated_complexity(self) -> Complexity:
        return Complexity.SIMPLE

    @property
    def field_selectors(self) -> dict[str, str]:
        return {
            "name": 'input[name="name"]',
            "email": 'input[name="email"]',
            "phone": 'input[name="phone"]',
            "org": 'input[name="org"]',
            "urls[LinkedIn]": 'input[name="urls[LinkedIn]"]',
            "urls[GitHub]": 'input[name="urls[GitHub]"]',
        }

    @property
    def form_selectors(self) -> dict[str, list[str]]:
        return {
            "name": ['input[name="name"]', ".application-name"],
            "email": ['input[name="email"]', ".application-email"],
            "phone": ['input[name="phone"]', ".application-phone"],
            "resume": ['input[name="resume"]', 'input[type="file"]'],
            "submit_button": ["button.template-btn-submit"],
        }

    @property
    def resume_selector(self) -> str:
        return 'input[type="file"][name="resume"]'

    @property
    def submit_selector(self) -> str:
        return 'button[type="submit"].template-btn-submit'

    @property
    def navigation_steps(self) -> list[str]:
        return [
            "Fill in basic contact information",
            "Upload resume",
            "Add portfolio links if applicable",
            "Submit application",
        ]

    @property
    def session_cookie_names(self) -> list[str]:
        return ["lever.session", "lever.signature"]

    def map_fields(self, profile: ApplicantProfile) -> dict[str, str]:
        values = {
            "name": profile.full_name,
            "email": profile.email,
            "phone": profile.phone,
        }
        self.add_optional(values, "urls[LinkedIn]", profile.linkedin)
        self.add_optional(values, "urls[GitHub]", profile.github)
        return values
