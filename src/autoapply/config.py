"""Application configuration using pydantic-settings."""

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: str = "INFO"
    frontend_url: str | None = None

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/autoapply.db"

    # Session vault master secret (per-user keys are derived from it)
    session_vault_master_key: str | None = None
    session_ttl_hours: int = Field(default=24, ge=1, le=24 * 30)

    # Managed remote-browser service (highest priority backend)
    managed_browser_ws_endpoint: str | None = None
    managed_browser_function_url: str | None = None
    managed_browser_api_key: str | None = None
    managed_browser_timeout: int = Field(default=60000, ge=5000, le=300000)  # ms
    managed_browser_headless: bool = True

    # Externally hosted automation service
    external_browser_service_url: str | None = None
    external_browser_api_key: str | None = None
    external_browser_timeout: int = Field(default=180000, ge=5000, le=600000)  # ms

    # Simulation backend (used when no real backend is configured)
    simulation_enabled: bool = True
    simulation_delay_seconds: float = Field(default=2.0, ge=0, le=60)

    # Submission orchestration
    match_score_threshold: float = Field(default=80, ge=0, le=100)
    baseline_match_score: float = Field(default=70, ge=0, le=100)
    resume_output_dir: str = "./data/resumes"
    # Unused project-selection continuations are discarded after this
    suspension_ttl_minutes: int = Field(default=60, ge=1, le=10080)

    # Status polling
    status_api_url: str = "http://localhost:8000"
    poll_fast_interval_ms: int = Field(default=2000, ge=100, le=60000)
    poll_slow_interval_ms: int = Field(default=5000, ge=100, le=300000)
    # Last poll number of the fast and slow phases
    poll_fast_limit: int = Field(default=10, ge=1, le=100)
    poll_slow_limit: int = Field(default=20, ge=1, le=200)
    poll_max_not_found: int = Field(default=3, ge=1, le=20)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.app_env == Environment.DEVELOPMENT

    @property
    def managed_browser_configured(self) -> bool:
        """Both the websocket endpoint and the function URL are required."""
        return bool(self.managed_browser_ws_endpoint and self.managed_browser_function_url)

    @property
    def external_browser_configured(self) -> bool:
        return bool(self.external_browser_service_url)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience access
settings = get_settings()
