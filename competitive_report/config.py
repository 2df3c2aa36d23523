"""
Configuration management for competitive_report.

Uses pydantic-settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SLACK_WEBHOOK_PLACEHOLDER = "https://hooks.slack.com/services/YOUR_WEBHOOK_URL_HERE"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Retry numbers are validated at startup so a bad .env fails fast instead
    of producing nonsense delays mid-batch.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # Retry scheduling
    retry_base_delay_ms: int = Field(
        default=10_000,
        gt=0,
        description="Base delay before the first retry (milliseconds)",
    )
    retry_max_delay_ms: int = Field(
        default=300_000,
        gt=0,
        description="Upper bound for the exponential part of the delay (milliseconds)",
    )
    retry_jitter_ms: int = Field(
        default=2_000,
        ge=0,
        description="Random jitter added after the cap, drawn from [0, jitter)",
    )
    retry_global_max_retries: int = Field(
        default=10,
        ge=0,
        description="Maximum retries scheduled in a single batch",
    )

    # Slack notification
    slack_webhook_url: str = Field(
        default=SLACK_WEBHOOK_PLACEHOLDER,
        description="Incoming webhook URL for report notifications",
    )
    slack_channel: str = Field(
        default="#competitive-analysis",
        description="Channel the notification is posted to",
    )
    slack_username: str = Field(
        default="Competitive Echo Bot",
        description="Display name of the notification bot",
    )
    slack_icon_emoji: str = Field(
        default=":chart_with_upwards_trend:",
        description="Emoji icon of the notification bot",
    )
    slack_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout for the webhook POST",
    )

    # Report output
    report_output_dir: Path = Field(
        default=Path("reports"),
        description="Directory where reconciled reports are written",
    )

    @field_validator("slack_channel", "slack_username", "slack_icon_emoji", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string values."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("slack_webhook_url", mode="before")
    @classmethod
    def empty_webhook_to_placeholder(cls, v: str | None) -> str:
        """Treat an empty webhook as unconfigured."""
        if v is None:
            return SLACK_WEBHOOK_PLACEHOLDER
        if isinstance(v, str):
            v = v.strip()
            return v if v else SLACK_WEBHOOK_PLACEHOLDER
        return v

    @model_validator(mode="after")
    def max_delay_not_below_base(self) -> "Settings":
        """Reject a delay cap below the base delay."""
        if self.retry_max_delay_ms < self.retry_base_delay_ms:
            raise ValueError(
                f"RETRY_MAX_DELAY_MS ({self.retry_max_delay_ms}) must be >= "
                f"RETRY_BASE_DELAY_MS ({self.retry_base_delay_ms})"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience getters


def get_slack_webhook_url() -> str:
    """Get the Slack webhook URL, raising if it is still the placeholder."""
    url = get_settings().slack_webhook_url
    if not is_webhook_configured(url):
        raise ValueError("SLACK_WEBHOOK_URL not set in .env file")
    return url


def is_webhook_configured(url: str | None) -> bool:
    """True when the webhook is a real URL rather than the placeholder."""
    return bool(url) and url != SLACK_WEBHOOK_PLACEHOLDER


def get_report_output_dir() -> Path:
    """Get the report output directory from settings."""
    return get_settings().report_output_dir
