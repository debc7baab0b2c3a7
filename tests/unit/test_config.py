"""Tests for configuration."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from autoapply.config import Environment, Settings


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        """Test default configuration values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.app_env == Environment.DEVELOPMENT
        assert settings.debug is True
        assert settings.log_level == "INFO"
        assert settings.session_ttl_hours == 24
        assert settings.simulation_enabled is True
        assert settings.simulation_delay_seconds == 2.0
        assert settings.match_score_threshold == 80
        assert settings.baseline_match_score == 70
        assert settings.suspension_ttl_minutes == 60

    def test_polling_defaults(self):
        """Test default polling schedule."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.poll_fast_interval_ms == 2000
        assert settings.poll_slow_interval_ms == 5000
        assert settings.poll_fast_limit == 10
        assert settings.poll_slow_limit == 20
        assert settings.poll_max_not_found == 3

    def test_environment_override(self):
        """Test environment variable overrides."""
        env_vars = {
            "APP_ENV": "production",
            "DEBUG": "false",
            "MATCH_SCORE_THRESHOLD": "75",
            "SESSION_VAULT_MASTER_KEY": "secret",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        assert settings.app_env == Environment.PRODUCTION
        assert settings.debug is False
        assert settings.match_score_threshold == 75
        assert settings.session_vault_master_key == "secret"

    def test_is_production_property(self):
        """Test is_production property."""
        with patch.dict(os.environ, {"APP_ENV": "production"}, clear=True):
            settings = Settings(_env_file=None)
            assert settings.is_production is True
            assert settings.is_development is False

    def test_database_url_default(self):
        """Test default database URL."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.database_url.startswith("sqlite+aiosqlite")

    def test_managed_browser_requires_both_settings(self):
        """Managed mode needs the websocket endpoint and the function URL."""
        with patch.dict(os.environ, {"MANAGED_BROWSER_WS_ENDPOINT": "wss://browser"}, clear=True):
            settings = Settings(_env_file=None)
            assert settings.managed_browser_configured is False

        env_vars = {
            "MANAGED_BROWSER_WS_ENDPOINT": "wss://browser",
            "MANAGED_BROWSER_FUNCTION_URL": "https://browser/function",
        }
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)
            assert settings.managed_browser_configured is True

    def test_external_browser_configured(self):
        with patch.dict(os.environ, {"EXTERNAL_BROWSER_SERVICE_URL": "https://automation"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.external_browser_configured is True
        assert settings.external_browser_timeout == 180000

    def test_out_of_range_values_rejected(self):
        """Numeric settings are bounded."""
        with patch.dict(os.environ, {"MATCH_SCORE_THRESHOLD": "150"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)
