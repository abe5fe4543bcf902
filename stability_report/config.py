from functools import lru_cache
from typing import ClassVar

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # Outage ledger exported from the tracking spreadsheet
    outages_csv_path: str = "outages.csv"

    # Jira REST API (optional, empty string means not configured)
    jira_url: str = ""
    jira_token: str = ""
    jira_email: str = ""  # Used for the Basic-auth retry when Bearer is rejected

    # LM Studio (OpenAI-compatible local server)
    lm_studio_url: str = "http://localhost:1234/v1"
    lm_studio_model: str = "local-model"
    lm_studio_api_key: str = "lm-studio"  # LM Studio ignores the key but the client requires one
    use_ai: bool = True
    ai_timeout_seconds: float = 300.0

    # SMTP / Email (optional, empty = email disabled)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    report_recipient_email: str = ""

    # Report schedule (optional, empty = scheduler disabled)
    report_schedule_cron: str = ""  # e.g. "0 8 * * 1" (Monday 8am)

    # Prometheus exposition port for schedule mode (0 = disabled)
    metrics_port: int = 0

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily load and cache settings. Fails at first call, not at import time."""
    return Settings()
