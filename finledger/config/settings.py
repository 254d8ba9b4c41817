"""
Configuration Management for finledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every threshold the engines use (alert defaults, insight cut-offs,
analytics retention) can be read in one place and overridden per
environment without touching the engines.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINLEDGER_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="memory",
        pattern="^(memory|json)$",
        description="Storage backend: in-process memory or JSON files"
    )
    data_dir: str = Field(
        default=".finledger",
        description="Directory holding one JSON document per collection"
    )
    key_namespace: str = Field(
        default="finledger",
        min_length=1,
        description="Prefix for every collection key"
    )

    @field_validator('data_dir')
    @classmethod
    def validate_data_dir(cls, v: str) -> str:
        """Reject paths that point at an existing regular file."""
        path = Path(v)
        if path.exists() and not path.is_dir():
            raise ValueError(f"Storage data_dir is not a directory: {v}")
        return v


class InsightSettings(BaseSettings):
    """Thresholds used by the insight generator."""

    model_config = SettingsConfigDict(
        env_prefix="FINLEDGER_INSIGHTS_",
        extra="ignore"
    )

    trend_high_priority_percent: float = Field(
        default=20.0,
        ge=0.0,
        description="Month-over-month change above which a trend is high priority"
    )
    trend_actionable_percent: float = Field(
        default=15.0,
        ge=0.0,
        description="Month-over-month change above which a trend is actionable"
    )
    goal_near_completion_ratio: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Progress at which a goal is reported as almost complete"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FINLEDGER_",
        extra="ignore"
    )

    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol used when formatting amounts in insights and alerts"
    )
    default_alert_threshold: float = Field(
        default=90.0,
        ge=0.0,
        le=100.0,
        description="Alert threshold (percent) for budgets created without one"
    )
    notifications_enabled: bool = Field(
        default=True,
        description="Deliver notification requests to the dispatcher"
    )
    analytics_max_events: int = Field(
        default=1000,
        ge=1,
        description="Number of analytics events retained (newest kept)"
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

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def insights(self) -> InsightSettings:
        return InsightSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for every section that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "insights", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
