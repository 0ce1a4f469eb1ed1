from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    environment: str = Field(default="development", alias="ENVIRONMENT")
    base_url: str = Field(default="http://localhost:8000", alias="BASE_URL")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/lbinag.db",
        alias="DATABASE_URL",
    )
    log_file: Path = Field(default=Path("logs/lbinag.log"))
    admin_api_token: str | None = Field(default=None, alias="ADMIN_TOKEN")

    # Sessions and magic links
    session_cookie_name: str = Field(default="lbinag_session", alias="SESSION_COOKIE_NAME")
    session_ttl_days: int = Field(default=7, alias="SESSION_TTL_DAYS")
    magic_link_ttl_minutes: int = Field(default=15, alias="MAGIC_LINK_TTL_MINUTES")
    login_token_retention_sec: int = Field(default=3600, alias="LOGIN_TOKEN_RETENTION_SEC")

    # Outbound mail
    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, alias="SMTP_USER")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASS")
    smtp_from_name: str = Field(default="Lbinag Marbles", alias="SMTP_FROM_NAME")
    smtp_timeout_seconds: float = Field(default=10.0, alias="SMTP_TIMEOUT_SEC")

    # Chat assistant
    chat_api_key: str | None = Field(default=None, alias="CHAT_API_KEY")
    chat_base_url: str | None = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        alias="CHAT_BASE_URL",
    )
    chat_model: str = Field(default="gemini-2.0-flash", alias="CHAT_MODEL")
    chat_max_tokens: int = Field(default=500, alias="CHAT_MAX_TOKENS")
    chat_temperature: float = Field(default=0.7, alias="CHAT_TEMPERATURE")
    chat_responder: str = Field(default="auto", alias="CHAT_RESPONDER")

    version: str = Field(default_factory=lambda: Settings._load_version())

    @staticmethod
    def _load_version() -> str:
        version_env = os.getenv("VERSION")
        if version_env:
            return version_env
        version_file = Path("VERSION")
        if version_file.exists():
            return version_file.read_text(encoding="utf-8").strip()
        return "0.0.0"

    @property
    def cookie_secure(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_days * 24 * 3600

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Path | str) -> Path:
        path = Path(value)
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("base_url", mode="before")
    @classmethod
    def _validate_base_url(cls, value: str | None) -> str:
        if not value:
            return "http://localhost:8000"
        return str(value).rstrip("/")

    @field_validator("chat_responder", mode="before")
    @classmethod
    def _validate_chat_responder(cls, value: str | None) -> str:
        allowed = {"auto", "remote", "static"}
        if not value:
            return "auto"
        normalized = str(value).lower()
        if normalized not in allowed:
            return "auto"
        return normalized

    @field_validator("session_ttl_days", mode="before")
    @classmethod
    def _validate_session_ttl(cls, value: int | str | None) -> int:
        if value is None:
            return 7
        return max(int(value), 1)

    @field_validator("login_token_retention_sec", mode="before")
    @classmethod
    def _validate_token_retention(cls, value: int | str | None) -> int:
        if value is None:
            return 3600
        return max(int(value), 60)

    @field_validator("database_url", mode="before")
    @classmethod
    def _validate_database_url(cls, value: str | None) -> str:
        if not value:
            value = "sqlite:///./data/lbinag.db"

        normalized = str(value)
        if normalized.startswith("postgres://"):
            normalized = normalized.replace("postgres://", "postgresql://", 1)
        if normalized.startswith("postgresql://") and "+asyncpg" not in normalized:
            normalized = normalized.replace("postgresql://", "postgresql+asyncpg://", 1)
        if normalized.startswith("sqlite://") and "+aiosqlite" not in normalized:
            normalized = normalized.replace("sqlite://", "sqlite+aiosqlite://", 1)

        if normalized.startswith("sqlite+aiosqlite:///"):
            db_path = normalized.split("///", maxsplit=1)[-1]
            if db_path and db_path != ":memory:":
                db_file = Path(db_path)
                db_file.parent.mkdir(parents=True, exist_ok=True)

        return normalized


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor."""

    return Settings()
