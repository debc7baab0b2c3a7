"""Job-board platforms recognised by URL but filled with generic fields.

These boards either redirect to the employer's own form or wrap it in
their own login wall. Detection matters mainly for the authentication
metadata, so form filling reuses the generic field set.
"""

from autoapply.automation.strategies.base import AuthStrategy, PlatformStrategy
from autoapply.automation.strategies.generic import GENERIC_FIELD_SELECTORS, GenericFieldsMixin
from autoapply.automation.strategies.registry import PlatformStrategyRegistry


class JobBoardStrategy(GenericFieldsMixin, PlatformStrategy):
    """Cookie-authenticated job board using the generic field set."""

    @property
    def auth_strategy(self) -> AuthStrategy:
        return AuthStrategy.COOKIE

    @property
    def requires_login(self) -> bool:
        return True

    @property
    def field_selectors(self) -> dict[str, str]:
        return GENERIC_FIELD_SELECTORS


@PlatformStrategyRegistry.register
class IndeedStrategy(JobBoardStrategy):
    @property
    def name(self) -> str:
        return "indeed"

    @property
    def display_name(self) -> str:
        return "Indeed"

    @property
    def url_patterns(self) -> list[str]:
        return [r"indeed\.com", r"indeed\.co\."]

    @property
    def requires_login(self) -> bool:
        return False

    @property
    def login_url(self) -> str | None:
        return "https://secure.indeed.com/account/login"

    @property
    def form_selectors(self) -> dict[str, list[str]]:
        return {
            "name": ['input[name*="name"]'],
            "email": ['input[name*="email"]'],
            "phone": ['input[name*="phone"]'],
            "resume": ['input[type="file"]'],
            "submit_button": ['button[type="submit"]'],
        }

    @property
    def session_cookie_names(self) -> list[str]:
        return ["CTK", "INDEED_CSRF_TOKEN", "JSESSIONID"]

    @property
    def authenticated_markers(self) -> list[str]:
        return [r"account.*menu", r"user.*nav"]

    @property
    def login_markers(self) -> list[str]:
        return [r"login.*form", r"sign.*in"]


@PlatformStrategyRegistry.register
class MonsterStrategy(JobBoardStrategy):
    @property
    def name(self) -> str:
        return "monster"

    @property
    def display_name(self) -> str:
        return "Monster.com"

    @property
    def url_patterns(self) -> list[str]:
        return [r"monster\.com", r"monster\.co\."]

    @property
    def login_url(self) -> str | None:
        return "https://www.monster.com/login"


@PlatformStrategyRegistry.register
class GlassdoorStrategy(JobBoardStrategy):
    @property
    def name(self) -> str:
        return "glassdoor"

    @property
    def display_name(self) -> str:
        return "Glassdoor"

    @property
    def url_patterns(self) -> list[str]:
        return [r"glassdoor\.com", r"glassdoor\.co\."]

    @property
    def login_url(self) -> str | None:
        return "https://www.glassdoor.com/profile/login_input.htm"


@PlatformStrategyRegistry.register
class InstahyreStrategy(JobBoardStrategy):
    @property
    def name(self) -> str:
        return "instahyre"

    @property
    def display_name(self) -> str:
        return "Instahyre"

    @property
    def url_patterns(self) -> list[str]:
        return [r"instahyre\.com"]

    @property
    def login_url(self) -> str | None:
        return "https://www.instahyre.com/login/"


@PlatformStrategyRegistry.register
class AngelListStrategy(JobBoardStrategy):
    @property
    def name(self) -> str:
        return "angellist"

    @property
    def display_name(self) -> str:
        return "AngelList/Wellfound"

    @property
    def url_patterns(self) -> list[str]:
        return [r"angel\.co", r"wellfound\.com"]

    @property
    def login_url(self) -> str | None:
        return "https://wellfound.com/login"
