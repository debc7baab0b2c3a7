"""LinkedIn Easy Apply strategy."""

from autoapply.automation.models import ApplicantProfile
from autoapply.automation.strategies.base import AuthStrategy, Complexity, PlatformStrategy
from autoapply.automation.strategies.registry import PlatformStrategyRegistry


@PlatformStrategyRegistry.register
class LinkedInStrategy(PlatformStrategy):
    """Strategy for LinkedIn Easy Apply.

    Easy Apply runs inside a modal and only for logged-in users, so a stored
    session cookie is required before submission.
    """

    @property
    def name(self) -> str:
        return "linkedin"

    @property
    def display_name(self) -> str:
        return "LinkedIn"

    @property
    def url_patterns(self) -> list[str]:
        return [r"linkedin\.com", r"linkedin\.co\."]

    @property
    def requires_login(self) -> bool:
        return True

    @property
    def auth_strategy(self) -> AuthStrategy:
        return AuthStrategy.COOKIE

    @property
    def login_url(self) -> str | None:
        return "https://www.linkedin.com/login"

    @property
    def estimated_complexity(self) -> Complexity:
        return Complexity.MODERATE

    @property
    def field_selectors(self) -> dict[str, str]:
        return {
            "firstName": 'input[name="firstName"]',
            "lastName": 'input[name="lastName"]',
            "email": 'input[name="email"]',
            "phone": 'input[name="phone"]',
        }

    @property
    def form_selectors(self) -> dict[str, list[str]]:
        return {
            "name": ['input[name*="name"]', "#applicant-name"],
            "email": ['input[name*="email"]', "#applicant-email"],
            "phone": ['input[name*="phone"]', "#applicant-phone"],
            "resume": ['input[type="file"][name*="resume"]', 'input[type="file"][accept*="pdf"]'],
            "submit_button": ['button[type="submit"]', ".jobs-apply-button"],
        }

    @property
    def resume_selector(self) -> str:
        return 'input[type="file"][name*="resume"], input[type="file"][accept*="pdf"]'

    @property
    def submit_selector(self) -> str:
        return (
            'button[type="submit"], button[aria-label*="Submit"], '
            'button:has-text("Submit application")'
        )

    @property
    def navigation_steps(self) -> list[str]:
        return [
            'Click "Easy Apply" button',
            "Wait for application modal to open",
            "Fill in required fields",
            "Upload resume if requested",
            "Click through multi-step form if needed",
            "Submit application",
        ]

    @property
    def session_cookie_names(self) -> list[str]:
        return ["li_at", "JSESSIONID", "liap", "lang"]

    @property
    def authenticated_markers(self) -> list[str]:
        return [r"nav__me-photo", r"global-nav__me"]

    @property
    def login_markers(self) -> list[str]:
        return [r"login-form", r"login-email", r"signin"]

    def map_fields(self, profile: ApplicantProfile) -> dict[str, str]:
        return {
            "firstName": profile.first_name,
            "lastName": profile.last_name,
            "email": profile.email,
            "phone": profile.phone,
        }
