"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from verification_relay.domain.sessions import DedupPolicy

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    dedup_policy: DedupPolicy = DedupPolicy.NONE
    gc_interval_seconds: float = 30.0
    completed_retention_seconds: float = 10.0
    stale_session_seconds: float = 1800.0
    outbox_size: int = 100
    cors_origins: str = "*"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_cors_origins(raw: str | None) -> list[str]:
    """Parse allowed CORS origins from env."""
    if raw is None:
        return ["*"]
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return ["*"]
    origins = [chunk.strip() for chunk in cleaned.split(",")]
    return [origin for origin in origins if origin] or ["*"]
