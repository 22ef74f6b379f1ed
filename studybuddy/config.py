"""
Application configuration.
All settings come from environment variables with sensible defaults.
"""
import os
from typing import List, Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    return int(value)


class Config:
    """Runtime settings for the StudyBuddy backend"""

    def __init__(
        self,
        database_url: str = "sqlite:///./studybuddy.db",
        api_key: str = "your-secret-key-change-me",
        timezone: Optional[str] = None,
        day_anchor: str = "server",
        reminder_poll_minutes: int = 5,
        reminder_catchup_minutes: int = 0,
        scheduler_enabled: bool = True,
        expo_push_url: str = "https://exp.host/--/api/v2/push/send",
        expo_access_token: Optional[str] = None,
        push_timeout_seconds: int = 10,
        max_update_retries: int = 3,
        log_dir: str = "/var/log/studybuddy",
        log_file: str = "app.log",
        cors_origins: Optional[List[str]] = None,
    ):
        self.database_url = database_url
        self.api_key = api_key
        self.timezone = timezone or None
        self.day_anchor = day_anchor
        self.reminder_poll_minutes = reminder_poll_minutes
        self.reminder_catchup_minutes = reminder_catchup_minutes
        self.scheduler_enabled = scheduler_enabled
        self.expo_push_url = expo_push_url
        self.expo_access_token = expo_access_token
        self.push_timeout_seconds = push_timeout_seconds
        self.max_update_retries = max_update_retries
        self.log_dir = log_dir
        self.log_file = log_file
        self.cors_origins = cors_origins or ["*"]

    @classmethod
    def from_env(cls, **overrides) -> "Config":
        """
        Build configuration from STUDYBUDDY_* environment variables.

        Args:
            **overrides: Explicit values that win over the environment

        Returns:
            Config instance
        """
        cors = os.getenv("STUDYBUDDY_CORS_ORIGINS", "")
        values = dict(
            database_url=os.getenv("STUDYBUDDY_DATABASE_URL", "sqlite:///./studybuddy.db"),
            api_key=os.getenv("STUDYBUDDY_API_KEY", "your-secret-key-change-me"),
            timezone=os.getenv("STUDYBUDDY_TIMEZONE") or None,
            day_anchor=os.getenv("STUDYBUDDY_DAY_ANCHOR", "server"),
            reminder_poll_minutes=_env_int("STUDYBUDDY_REMINDER_POLL_MINUTES", 5),
            reminder_catchup_minutes=_env_int("STUDYBUDDY_REMINDER_CATCHUP_MINUTES", 0),
            scheduler_enabled=_env_bool("STUDYBUDDY_SCHEDULER_ENABLED", True),
            expo_push_url=os.getenv(
                "STUDYBUDDY_EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send"
            ),
            expo_access_token=os.getenv("STUDYBUDDY_EXPO_ACCESS_TOKEN") or None,
            push_timeout_seconds=_env_int("STUDYBUDDY_PUSH_TIMEOUT_SECONDS", 10),
            max_update_retries=_env_int("STUDYBUDDY_MAX_UPDATE_RETRIES", 3),
            log_dir=os.getenv("STUDYBUDDY_LOG_DIR", "/var/log/studybuddy"),
            log_file=os.getenv("STUDYBUDDY_LOG_FILE", "app.log"),
            cors_origins=[o.strip() for o in cors.split(",") if o.strip()] or None,
        )
        values.update(overrides)
        return cls(**values)
