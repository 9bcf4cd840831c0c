# -*- coding: utf-8 -*-
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _project_root() -> Path:
    return Path(__file__).resolve().parents[1]


class VConfig(BaseSettings):
    """Project configuration loaded from environment / .env.

    Every field has a default: a missing Gemini or Bright Data key is a normal
    deployment, not a configuration error.
    """

    model_config = SettingsConfigDict(
        env_file=str(_project_root() / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ---------- App & Logging ----------
    app_env: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_requests: bool = Field(True, validation_alias="LOG_REQUESTS")
    request_id_header: str = Field("X-Request-ID", validation_alias="REQUEST_ID_HEADER")
    generate_request_id: bool = Field(True, validation_alias="GENERATE_REQUEST_ID")

    cors_origins: str = Field("*", validation_alias="CORS_ORIGINS")

    # ---------- City ----------
    city_name: str = Field("Montgomery, AL", validation_alias="CITY_NAME")
    city_latitude: float = Field(32.3668, validation_alias="CITY_LATITUDE")
    city_longitude: float = Field(-86.3, validation_alias="CITY_LONGITUDE")
    city_timezone: str = Field("America/Chicago", validation_alias="CITY_TIMEZONE")

    # ---------- Upstream sources ----------
    source_timeout_seconds: float = Field(15.0, validation_alias="SOURCE_TIMEOUT_SECONDS", gt=0)
    scrape_timeout_seconds: float = Field(10.0, validation_alias="SCRAPE_TIMEOUT_SECONDS", gt=0)
    http_user_agent: str = Field(
        "CivicRiskCopilot/1.0 (civic risk dashboard)",
        validation_alias="HTTP_USER_AGENT",
    )

    # ---------- Cache ----------
    cache_ttl_seconds: float = Field(300.0, validation_alias="CACHE_TTL_SECONDS", gt=0)
    cache_coalesce_misses: bool = Field(True, validation_alias="CACHE_COALESCE_MISSES")

    # ---------- Gemini (optional) ----------
    gemini_api_key: str = Field("", validation_alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-1.5-flash", validation_alias="GEMINI_MODEL")
    gemini_base_url: str = Field("https://generativelanguage.googleapis.com", validation_alias="GEMINI_BASE_URL")
    gemini_timeout_seconds: int = Field(30, validation_alias="GEMINI_TIMEOUT_SECONDS", ge=1)
    llm_context_max_chars: int = Field(12000, validation_alias="LLM_CONTEXT_MAX_CHARS", ge=256)
    llm_temperature: float = Field(0.3, validation_alias="LLM_TEMPERATURE", ge=0)
    llm_max_output_tokens: int = Field(400, validation_alias="LLM_MAX_OUTPUT_TOKENS", ge=1)

    # ---------- Bright Data scraping (optional) ----------
    bright_data_api_key: str = Field("", validation_alias="BRIGHT_DATA_API_KEY")
    bright_data_endpoint: str = Field("https://api.brightdata.com/request", validation_alias="BRIGHT_DATA_ENDPOINT")

    @field_validator("gemini_api_key", "bright_data_api_key", mode="before")
    @classmethod
    def _strip_key(cls, v):
        # None / whitespace -> ""
        if v is None:
            return ""
        return str(v).strip()

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() in ("prod", "production")

    @property
    def gemini_configured(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def bright_data_configured(self) -> bool:
        return bool(self.bright_data_api_key)


@lru_cache(maxsize=1)
def get_config() -> VConfig:
    return VConfig()

