"""Application settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "ContentOps"
    # Base URL of the blog-generation backend that owns /api/*.
    api_base_url: str = "http://localhost:8000"
    request_timeout_s: float = Field(default=10.0, gt=0)
    # POST /api/generate runs the whole agent pipeline before it answers.
    generate_timeout_s: float = Field(default=300.0, gt=0)
    log_level: str = "INFO"
    display_timezone: str = "UTC"

    model_config = SettingsConfigDict(
        env_prefix="CONTENTOPS_",
        extra="ignore",
        env_file=(PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"),
        env_file_encoding="utf-8",
    )

    def resolved_api_base_url(self) -> str:
        return self.api_base_url.strip().rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
