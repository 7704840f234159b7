"""Application configuration."""

import os
from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")
_ENV_FILES = (f".env.{_ENVIRONMENT}", ".env")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    environment: str = _ENVIRONMENT
    pending_session_ttl_minutes: int = 60
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=_ENV_FILES, extra="ignore")

    @property
    def pending_session_ttl(self) -> timedelta | None:
        """Return the pending session TTL, or None when expiry is disabled."""
        if self.pending_session_ttl_minutes <= 0:
            return None
        return timedelta(minutes=self.pending_session_ttl_minutes)


class ClientSettings(BaseSettings):
    """Settings for the polling client, read from MEETUP_* variables."""

    api_base_url: str
    user_id: int
    poll_interval_seconds: float = 3.0
    state_max_age_minutes: int = 60
    state_path: Path = Path(".meetup_state.json")

    model_config = SettingsConfigDict(
        env_prefix="MEETUP_", env_file=_ENV_FILES, extra="ignore"
    )

    @property
    def state_max_age(self) -> timedelta:
        return timedelta(minutes=self.state_max_age_minutes)
