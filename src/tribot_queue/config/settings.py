"""Application settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "tribot-queue"
    app_version: str = "2.0.0"
    route_prefix: str = "/tribot"
    max_queue_size: int = Field(default=1000, ge=1)
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_prefix="TRIBOT_",
        extra="ignore",
        env_file=(PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"),
        env_file_encoding="utf-8",
    )

    def normalized_prefix(self) -> str:
        prefix = self.route_prefix.strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = f"/{prefix}"
        return prefix


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
