from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


class AppSettings(BaseModel):
    """Runtime configuration for the library API."""

    app_name: str = Field(default="Campus Library API", alias="APP_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")
    admin_registration_enabled: bool = Field(default=True, alias="ADMIN_REGISTRATION_ENABLED")
    default_loan_days: int = Field(default=14, alias="DEFAULT_LOAN_DAYS", ge=1)
    cover_storage_dir: str = Field(default="storage/book_covers", alias="COVER_STORAGE_DIR")
    cover_url_prefix: str = Field(default="/storage/book_covers", alias="COVER_URL_PREFIX")
    cover_max_bytes: int = Field(default=2 * 1024 * 1024, alias="COVER_MAX_BYTES", ge=1)

    model_config = {"populate_by_name": True}

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        if value is None:
            return "INFO"
        return value.upper()

    @field_validator("cover_url_prefix")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache
def get_app_settings() -> AppSettings:
    """Load application configuration from environment variables."""
    return AppSettings(
        app_name=os.getenv("APP_NAME", "Campus Library API"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        cors_origins=_as_list(os.getenv("CORS_ORIGINS"), default=["*"]),
        admin_registration_enabled=_as_bool(os.getenv("ADMIN_REGISTRATION_ENABLED"), default=True),
        default_loan_days=int(os.getenv("DEFAULT_LOAN_DAYS", "14")),
        cover_storage_dir=os.getenv("COVER_STORAGE_DIR", "storage/book_covers"),
        cover_url_prefix=os.getenv("COVER_URL_PREFIX", "/storage/book_covers"),
        cover_max_bytes=int(os.getenv("COVER_MAX_BYTES", str(2 * 1024 * 1024))),
    )
