"""
Configuration Management for Crew Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """REST backend (Transaction Store and User Directory) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:5000/api/v1",
        description="Base URL of the ledger REST API"
    )
    timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Per-request timeout"
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per request on transport failures"
    )
    retry_wait_seconds: float = Field(
        default=1.0,
        ge=0,
        le=30,
        description="Base of the exponential backoff between attempts"
    )

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"API base URL must start with http:// or https://: {v}")
        return v.rstrip("/")


class DashboardSettings(BaseSettings):
    """Dashboard refresh and aggregation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DASHBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    refresh_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="How often the dashboard re-fetches the snapshot"
    )
    top_category_limit: int = Field(
        default=6,
        ge=1,
        le=50,
        description="Number of expense categories shown in the breakdown"
    )
    unknown_member_label: str = Field(
        default="Unknown",
        min_length=1,
        description="Label used when a transaction has no creator name"
    )
    attribution_key: str = Field(
        default="name",
        pattern="^(name|user_id)$",
        description="Key team contribution by member name or by user id"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Storage backend
    offline_mode: bool = Field(
        default=False,
        description="Use in-memory stores instead of the REST API"
    )

    # Validation thresholds
    max_transaction_amount_inr: float = Field(
        default=1000000.0,
        gt=0,
        description="Amounts above this are flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a transaction date can be"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def dashboard(self) -> DashboardSettings:
        return DashboardSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for failures.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("api", "dashboard", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
