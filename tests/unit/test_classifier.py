"""Tests for platform classification."""

import pytest

from autoapply.automation.classifier import PlatformClassifier
from autoapply.automation.strategies import AuthStrategy, PlatformStrategyRegistry


@pytest.fixture
def classifier():
    return PlatformClassifier()


class TestClassify:
    """Tests for PlatformClassifier.classify."""

    @pytest.mark.parametrize(
        "url,platform",
        [
            ("https://www.linkedin.com/jobs/view/123456", "linkedin"),
            ("https://acme.wd5.myworkdayjobs.com/en-US/careers/job/123", "workday"),
            ("https://www.naukri.com/job-listings-backend-123", "naukri"),
            ("https://boards.greenhouse.io/acme/jobs/4112015008", "greenhouse"),
            ("https://jobs.lever.co/acme/5f1e2d3c", "lever"),
            ("https://www.indeed.com/viewjob?jk=abc", "indeed"),
            ("https://www.monster.com/job-openings/backend", "monster"),
            ("https://www.glassdoor.com/job-listing/backend", "glassdoor"),
            ("https://www.instahyre.com/job-123", "instahyre"),
            ("https://wellfound.com/jobs/123", "angellist"),
        ],
    )
    def test_registered_platforms_match_with_high_confidence(self, classifier, url, platform):
        detection = classifier.classify(url)

        assert detection.platform == platform
        assert detection.confidence == 0.95
        assert detection.is_supported is True

    def test_unmatched_url_is_unknown(self, classifier):
        detection = classifier.classify("https://careers.acme.com/apply/42")

        assert detection.platform == "unknown"
        assert detection.confidence == 0.3
        assert detection.requires_auth is False
        assert detection.auth_strategy == AuthStrategy.SESSION
        assert detection.is_supported is False
        assert detection.metadata["base_url"] == "https://careers.acme.com"

    @pytest.mark.parametrize("url", ["", "not a url", "careers.acme.com/apply"])
    def test_unparseable_url_has_zero_confidence(self, classifier, url):
        detection = classifier.classify(url)

        assert detection.platform == "unknown"
        assert detection.confidence == 0.0

    def test_linkedin_requires_cookie_auth(self, classifier):
        detection = classifier.classify("https://www.linkedin.com/jobs/view/1")

        assert detection.requires_auth is True
        assert detection.auth_strategy == AuthStrategy.COOKIE
        assert detection.login_url == "https://www.linkedin.com/login"

    def test_match_metadata_includes_form_selectors(self, classifier):
        detection = classifier.classify("https://jobs.lever.co/acme/1")

        assert detection.metadata["base_url"] == "https://jobs.lever.co"
        assert "submit_button" in detection.metadata["form_selectors"]

    def test_classification_is_deterministic(self, classifier):
        url = "https://boards.greenhouse.io/acme/jobs/1"
        assert classifier.classify(url) == classifier.classify(url)


class TestPlatformQueries:
    """Tests for the convenience lookups."""

    def test_requires_authentication(self, classifier):
        assert classifier.requires_authentication("https://www.naukri.com/job/1") is True
        assert classifier.requires_authentication("https://boards.greenhouse.io/acme/jobs/1") is False

    def test_get_login_url(self, classifier):
        assert classifier.get_login_url("https://www.naukri.com/job/1") == "https://www.naukri.com/nlogin/login"
        assert classifier.get_login_url("https://careers.acme.com/1") is None

    def test_get_form_selectors_for_unknown_is_empty(self, classifier):
        assert classifier.get_form_selectors("https://careers.acme.com/1") == {}

    def test_supported_platforms_in_registration_order(self, classifier):
        names = [info.name for info in classifier.supported_platforms()]

        assert names == [
            "linkedin",
            "workday",
            "naukri",
            "greenhouse",
            "lever",
            "indeed",
            "monster",
            "glassdoor",
            "instahyre",
            "angellist",
        ]

    def test_generic_is_registered_last(self):
        assert PlatformStrategyRegistry.list_strategies()[-1] == "generic"

    def test_get_platform_config(self, classifier):
        info = classifier.get_platform_config("workday")

        assert info is not None
        assert info.display_name == "Workday"
        assert info.estimated_complexity == "complex"
        assert classifier.get_platform_config("generic") is None
        assert classifier.get_platform_config("nope") is None

    def test_session_cookie_names(self, classifier):
        assert "li_at" in classifier.get_session_cookie_names("linkedin")
        assert classifier.get_session_cookie_names("unknown-board") == ["JSESSIONID", "PHPSESSID", "connect.sid"]


class TestAuthenticationState:
    """Tests for page-content login detection."""

    def test_linkedin_logged_in(self, classifier):
        state = classifier.detect_authentication_state(
            '<img class="global-nav__me-photo">', "https://www.linkedin.com/feed"
        )

        assert state.is_authenticated is True
        assert state.needs_login is False

    def test_linkedin_login_page(self, classifier):
        state = classifier.detect_authentication_state(
            '<form class="login-form"><input id="login-email"></form>', "https://www.linkedin.com/login"
        )

        assert state.is_authenticated is False
        assert state.needs_login is True
        assert state.login_detected is True

    def test_unknown_site_uses_generic_markers(self, classifier):
        state = classifier.detect_authentication_state('<a href="/logout">Log out</a>', "https://careers.acme.com")

        assert state.is_authenticated is True
        assert state.needs_login is False
