"""Application configuration."""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    backend: Literal["supabase", "memory"] = "supabase"
    supabase_url: str
    supabase_service_key: str
    supabase_anon_key: str

    auth_strategy: Literal["self_issued", "delegated"] = "self_issued"
    jwt_secret: str | None = None
    token_ttl_hours: int = 12

    legacy_plaintext_passwords: bool = False
    enforce_owner_scope: bool = False

    storage_bucket: str = "research-files"
    max_upload_bytes: int = 10 * 1024 * 1024
    # IANA zone for the daily research summary; the host zone when unset.
    summary_timezone: str | None = None

    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = False
    http_timeout_seconds: float = 10.0

    model_config = SettingsConfigDict(
        env_prefix="RESEARCH_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("summary_timezone")
    @classmethod
    def _known_timezone(cls, value: str | None) -> str | None:
        if value:
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"unknown time zone: {value}") from exc
        return value

    @model_validator(mode="after")
    def _require_signing_secret(self) -> "Settings":
        if self.auth_strategy == "self_issued" and not self.jwt_secret:
            raise ValueError("jwt_secret is required when auth_strategy is self_issued")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
