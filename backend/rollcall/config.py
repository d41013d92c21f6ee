"""Application settings and configuration helpers."""
from functools import lru_cache
import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

load_dotenv()

MIN_SECRET_LENGTH = 32


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(alias="DATABASE_URL")
    secret_key: str = Field(alias="SECRET_KEY")
    session_ttl_seconds: int = Field(default=60 * 60 * 24, gt=0)
    cookie_secure: bool = False
    scanner_scan_limit: int = Field(default=100, gt=0)
    bootstrap_admin_username: str = "admin"
    bootstrap_admin_password: str | None = None
    cors_origins: list[str] = Field(default_factory=list)
    log_level: str = "INFO"
    echo_sql: bool = False

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("database_url")
    @classmethod
    def _require_database_url(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("DATABASE_URL environment variable is not set")
        return value.strip()

    @field_validator("secret_key")
    @classmethod
    def _require_strong_secret(cls, value: str) -> str:
        if not value:
            raise ValueError("SECRET_KEY environment variable is not set")
        if len(value) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters long"
            )
        return value


def load_settings(**overrides) -> Settings:
    """Build Settings, turning validation failures into a ConfigurationError."""

    try:
        return Settings(**overrides)
    except ValidationError as exc:
        problems = "; ".join(error["msg"].removeprefix("Value error, ") for error in exc.errors())
        raise ConfigurationError(problems) from exc


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance read from the environment."""

    return load_settings(
        database_url=os.getenv("DATABASE_URL", ""),
        secret_key=os.getenv("SECRET_KEY", ""),
        session_ttl_seconds=os.getenv("SESSION_TTL_SECONDS", "86400"),
        cookie_secure=_get_bool(os.getenv("COOKIE_SECURE")),
        scanner_scan_limit=os.getenv("SCANNER_SCAN_LIMIT", "100"),
        bootstrap_admin_username=os.getenv("BOOTSTRAP_ADMIN_USERNAME", "admin"),
        bootstrap_admin_password=os.getenv("BOOTSTRAP_ADMIN_PASSWORD") or None,
        cors_origins=_get_list(os.getenv("CORS_ORIGINS")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        echo_sql=_get_bool(os.getenv("ECHO_SQL")),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install the process-wide log format (no-op if handlers already exist)."""

    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
