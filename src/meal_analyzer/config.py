"""Application configuration."""

import os
from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    gemini_api_key: str
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"

    rate_limit_daily: int = 7
    cost_limit_monthly: Decimal = Decimal("80")
    gemini_cost_per_call: Decimal = Decimal("0.03")
    openai_cost_per_call: Decimal = Decimal("0.09")
    low_confidence_threshold: float = 0.6

    image_fetch_timeout_seconds: float = 30.0
    image_probe_timeout_seconds: float = 5.0
    gemini_timeout_seconds: float = 50.0
    gemini_text_timeout_seconds: float = 40.0
    openai_timeout_seconds: float = 40.0

    usage_increment_function: str | None = None
    save_meals: bool = False
    cors_allow_origins: str = "*"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_origins(raw: str | None) -> list[str]:
    """Parse CORS origins from env; empty or ``*`` allows any origin."""
    if raw is None:
        return ["*"]
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return ["*"]
    origins = [chunk.strip() for chunk in cleaned.split(",")]
    return [origin for origin in origins if origin] or ["*"]
