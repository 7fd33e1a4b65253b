"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    supabase_anon_key: str | None = None
    kv_table: str = "kv_store"
    screenshot_bucket: str = "crit-screenshots"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_max_output_tokens: int = 300
    dialogue_timeout_seconds: float = 20.0
    peer_reflection_visibility: Literal["completed_only", "all"] = "completed_only"
    require_roster_to_start: bool = False
    lock_roster_after_start: bool = False
    allowed_origins: str = "*"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_origins(raw: str | None) -> list[str]:
    """Parse allowed CORS origins from env."""
    if raw is None:
        return ["*"]
    origins = [chunk.strip() for chunk in raw.split(",") if chunk.strip()]
    return origins or ["*"]
