"""Configuration management using Pydantic Settings.

Features:
- Environment variable loading
- Type validation
- Default values
- Computed properties
"""

from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEZONE = "America/Los_Angeles"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Slack settings
    slack_bot_token: SecretStr = Field(
        ..., description="Slack Bot User OAuth Token (xoxb-...)"
    )
    slack_app_token: SecretStr = Field(
        ..., description="Slack App-Level Token for Socket Mode (xapp-...)"
    )

    # Google Calendar
    google_service_account_json: Optional[SecretStr] = Field(
        None, description="Service account key as inline JSON"
    )
    google_service_account_path: Path = Field(
        Path("config/service-account.json"),
        description="Service account key file (used when no inline JSON is set)",
    )

    # Storage
    data_dir: Path = Field(Path("data"), description="Directory for attendance.json")
    config_dir: Path = Field(
        Path("config"), description="Directory for app-config.json"
    )

    # Scheduling
    default_timezone: str = Field(
        DEFAULT_TIMEZONE,
        description="IANA timezone used when the channel config sets none",
    )
    enable_scheduler: bool = Field(
        True, description="Run weekly/daily/meeting-start jobs in-process"
    )
    meeting_start_window_minutes: int = Field(
        5,
        description="Announce meetings starting within this many minutes",
        ge=1,
        le=60,
    )
    user_cache_refresh_minutes: int = Field(
        30, description="Slack user cache refresh interval", ge=1
    )

    # Monitoring
    log_level: str = Field("INFO", description="Logging level")

    # Development
    debug: bool = Field(False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()  # type: ignore[no-any-return]

    @field_validator("default_timezone")
    @classmethod
    def validate_timezone(cls, v: Any) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v  # type: ignore[no-any-return]

    @property
    def attendance_file(self) -> Path:
        """Path of the attendance JSON file."""
        return self.data_dir / "attendance.json"

    @property
    def app_config_file(self) -> Path:
        """Path of the channel configuration JSON file."""
        return self.config_dir / "app-config.json"

    @property
    def slack_bot_token_str(self) -> str:
        """Get Slack bot token as string."""
        return self.slack_bot_token.get_secret_value()

    @property
    def slack_app_token_str(self) -> str:
        """Get Slack app token as string."""
        return self.slack_app_token.get_secret_value()

    @property
    def service_account_info_str(self) -> Optional[str]:
        """Get inline service account JSON as string."""
        if self.google_service_account_json:
            return self.google_service_account_json.get_secret_value()
        return None
