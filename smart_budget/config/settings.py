"""
Configuration Management for Smart Budget

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Thresholds used by validation, alerts and insights live here rather than
being scattered as constants, so they can be tuned per deployment.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    transactions_sheet_name: str = Field(default="Transactions")
    audit_sheet_name: str = Field(default="AuditLog")

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


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

    # Environment
    app_environment: str = Field(default="development")
    debug_mode: bool = Field(default=False)

    # Storage
    storage_backend: Literal["local", "google_sheets"] = Field(
        default="local",
        description="Where transactions and the audit log are kept"
    )
    data_dir: Path = Field(
        default=Path(".smart_budget"),
        description="Directory for the local JSON store"
    )
    default_user_id: str = Field(default="default", min_length=1)
    currency_symbol: str = Field(default="₹")

    # Validation thresholds
    max_transaction_amount_inr: float = Field(
        default=1000000.0,
        description="Maximum reasonable transaction amount (for sanity checking)"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future a transaction date can be"
    )
    stale_date_years: int = Field(
        default=2,
        ge=1,
        description="Transactions older than this are flagged for review"
    )

    # Overspending alerts
    weekly_anomaly_multiplier: float = Field(default=1.5, gt=1.0)
    monthly_anomaly_multiplier: float = Field(default=1.3, gt=1.0)
    large_purchase_weekly_fraction: float = Field(default=0.5, gt=0.0)
    anomaly_average_multiplier: float = Field(default=2.0, gt=1.0)
    max_active_alerts: int = Field(default=10, ge=1)

    # Insights
    food_insight_threshold: float = Field(default=3000.0, ge=0)
    transport_insight_threshold: float = Field(default=2000.0, ge=0)

    # Reminders
    reminder_due_soon_days: int = Field(default=3, ge=1, le=31)
    daily_reminder_enabled: bool = Field(default=True)
    weekly_report_enabled: bool = Field(default=True)


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
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    return results
