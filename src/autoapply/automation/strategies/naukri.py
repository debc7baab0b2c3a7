"""Naukri.com strategy."""

from autoapply.automation.models import ApplicantProfile
from autoapply.automation.strategies.base import AuthStrategy, PlatformStrategy
from autoapply.automation.strategies.registry import PlatformStrategyRegistry


@PlatformStrategyRegistry.register
class NaukriStrategy(PlatformStrategy):
    """Strategy for Naukri.com and Naukrigulf.

    Naukri names the phone input ``mobile`` and only accepts applications
    from logged-in candidates.
    """

    @property
    def name(self) -> str:
        return "naukri"

    @property
    def display_name(self) -> str:
        return "Naukri.com"

    @property
    def url_patterns(self) -> list[str]:
        return [r"naukri\.com", r"naukrigulf\.com"]

    @property
    def requires_login(self) -> bool:
        return True

    @property
    def auth_strategy(self) -> AuthStrategy:
        return AuthStrategy.COOKIE

    @property
    def login_url(self) -> str | None:
        return "https://www.naukri.com/nlogin/login"

    @property
    def field_selectors(self) -> dict[str, str]:
        return {
            "name": 'input[name="name"], #name',
            "email": 'input[name="email"], #email',
            "mobile": 'input[name="mobile"], #mobile',
        }

    @property
    def form_selectors(self) -> dict[str, list[str]]:
        return {
            "name": ['input[name="name"]', "#name"],
            "email": ['input[name="email"]', "#email"],
            "phone": ['input[name="mobile"]', "#mobile"],
            "resume": ['input[type="file"]', "#attachCV"],
            "submit_button": ['button[type="submit"]', ".btn-submit"],
        }

    @property
    def resume_selector(self) -> str:
        return '#attachCV, input[type="file"]'

    @property
    def submit_selector(self) -> str:
        return 'button[type="submit"], .btn-submit'

    @property
    def session_cookie_names(self) -> list[str]:
        return ["NAUKRICSRF", "_t_ds", "_t_r", "MYNAUKRI[UNID]"]

    @property
    def authenticated_markers(self) -> list[str]:
        return [r"logout", r"my.*naukri"]

    @property
    def login_markers(self) -> list[str]:
        return [r"login.*form", r"signin"]

    def map_fields(self, profile: ApplicantProfile) -> dict[str, str]:
        return {
            "name": profile.full_name,
            "email": profile.email,
            "mobile": profile.phone,
        }
