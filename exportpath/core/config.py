"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI backend, the in-process route
analysis pipeline and the command-line client share one configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import AliasChoices, AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from typing_extensions import Annotated


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class GeminiSettings(BaseSettings):
    """Configuration for Gemini model access."""

    api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
        description="Required only where Gemini is called: the backend and in-process runs.",
    )
    model_name: str = Field(
        "gemini-2.5-flash", validation_alias="GEMINI_MODEL_NAME"
    )
    vision_model_name: str = Field(
        "gemini-2.5-flash", validation_alias="GEMINI_VISION_MODEL_NAME"
    )
    temperature: float = Field(
        0.1,
        validation_alias="GEMINI_TEMPERATURE",
        description="Sampling temperature for research and synthesis calls.",
    )
    request_timeout_seconds: float = Field(
        60.0,
        validation_alias="GEMINI_REQUEST_TIMEOUT",
        description="Upper bound for a single Gemini call, grounded or not.",
    )


class QuotaSettings(BaseSettings):
    """Client-side daily analysis quota."""

    daily_limit: int = Field(3, validation_alias="QUOTA_DAILY_LIMIT", ge=0)
    db_path: str = Field(
        ".data/exportpath.db",
        validation_alias="QUOTA_DB_PATH",
        description="SQLite file holding the per-installation quota counter.",
    )
    admin_secret: Optional[str] = Field(
        None,
        validation_alias="QUOTA_ADMIN_SECRET",
        description="Secret required to switch the local quota to unlimited.",
    )


class ServerSettings(BaseSettings):
    """Transport-level settings for the FastAPI backend."""

    demo_secret: Optional[str] = Field(
        None,
        validation_alias="DEMO_SECRET",
        description="Shared secret that bypasses the per-minute request limiter.",
    )
    rate_limit_per_minute: int = Field(
        20, validation_alias="API_RATE_LIMIT_PER_MINUTE", ge=1
    )
    max_image_bytes: int = Field(
        10 * 1024 * 1024,
        validation_alias="MAX_IMAGE_BYTES",
        description="Ceiling for decoded product images sent to /analyze-image.",
    )
    cors_allow_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        ("*",), validation_alias="CORS_ALLOW_ORIGINS"
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing origins as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(origin.strip() for origin in value.split(",") if origin.strip())


class AppSettings(BaseSettings):
    """Root settings object shared by the backend and the CLI client."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    backend_base_url: AnyHttpUrl = Field(
        "http://localhost:8080",
        validation_alias="BACKEND_BASE_URL",
        description="Base URL of the analysis backend used by remote clients.",
    )
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "GeminiSettings",
    "QuotaSettings",
    "ServerSettings",
    "get_settings",
]
