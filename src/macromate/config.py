"""Application configuration."""

import os
from datetime import datetime, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_service_key: str | None = None
    local_storage_dir: Path = Path(".macromate")
    timezone: str | None = None
    load_timeout_seconds: float = 10.0
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def remote_enabled(self) -> bool:
        """Whether signed-in users can be served from Supabase."""
        return bool(self.supabase_url and self.supabase_service_key)


def resolve_timezone(name: str | None) -> tzinfo:
    """Return the named IANA zone, or the host's zone when unset."""
    cleaned = (name or "").strip()
    if not cleaned:
        local = datetime.now().astimezone().tzinfo
        if local is None:
            raise RuntimeError("Failed to determine the local timezone")
        return local
    try:
        return ZoneInfo(cleaned)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {cleaned}") from exc
