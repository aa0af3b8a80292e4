"""Environment-driven configuration helpers for BetBot."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", validation_alias="OPENAI_MODEL")

    odds_api_key: str = Field(default="", validation_alias="ODDS_API_KEY")
    rapidapi_key: str = Field(default="", validation_alias="RAPIDAPI_KEY")
    balldontlie_api_key: str = Field(default="", validation_alias="BALLDONTLIE_API_KEY")
    openweather_api_key: str = Field(default="", validation_alias="OPENWEATHER_API_KEY")
    news_api_key: str = Field(default="", validation_alias="NEWS_API_KEY")

    short_timeout_seconds: float = Field(default=8.0, gt=0.0, le=60.0)
    long_timeout_seconds: float = Field(default=30.0, gt=0.0, le=120.0)

    odds_cache_ttl: float = Field(default=120.0, ge=0.0)
    stats_cache_ttl: float = Field(default=600.0, ge=0.0)
    parsed_bet_cache_ttl: float = Field(default=3600.0, ge=0.0)
    market_context_cache_ttl: float = Field(default=300.0, ge=0.0)
    historical_context_cache_ttl: float = Field(default=86400.0, ge=0.0)
    analysis_cache_ttl: float = Field(default=600.0, ge=0.0)
    cache_max_entries: int = Field(default=0, ge=0)

    min_parse_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    team_inference_min_confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    min_reasoning_chars: int = Field(default=200, ge=0)
    min_key_factors: int = Field(default=3, ge=0)
    default_confidence_threshold: int = Field(default=55, ge=1, le=100)

    betbot_api_key: str = Field(default="", validation_alias="BETBOT_API_KEY")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[call-arg]


def get_openai_api_key() -> str:
    """Return the OpenAI API key or raise a helpful error."""

    key = os.getenv("OPENAI_API_KEY") or get_settings().openai_api_key
    if not key:
        raise RuntimeError(
            "OPENAI_API_KEY is not configured. "
            "Set it in .env for local dev or as a deployment secret."
        )
    return key


def get_api_access_key() -> str:
    return os.getenv("BETBOT_API_KEY") or get_settings().betbot_api_key
