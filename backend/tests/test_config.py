"""Configuration loading and validation."""
import pytest

from rollcall.config import Settings, get_settings, load_settings
from rollcall.errors import ConfigurationError

from conftest import TEST_SECRET


def test_missing_database_url_is_reported() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings(database_url="", secret_key=TEST_SECRET)

    assert excinfo.value.to_payload() == {
        "error": "Server configuration error",
        "details": "DATABASE_URL environment variable is not set",
    }


@pytest.mark.parametrize(
    ("secret", "message"),
    [
        ("", "SECRET_KEY environment variable is not set"),
        ("too-short", "SECRET_KEY must be at least 32 characters long"),
    ],
)
def test_weak_or_missing_secret_is_reported(secret: str, message: str) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings(database_url="sqlite+aiosqlite:///x.db", secret_key=secret)

    assert excinfo.value.message == message


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///env.db")
    monkeypatch.setenv("SECRET_KEY", TEST_SECRET)
    monkeypatch.setenv("SESSION_TTL_SECONDS", "3600")
    monkeypatch.setenv("COOKIE_SECURE", "yes")
    monkeypatch.setenv("SCANNER_SCAN_LIMIT", "25")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, https://rollcall.example.edu")
    monkeypatch.delenv("BOOTSTRAP_ADMIN_PASSWORD", raising=False)
    get_settings.cache_clear()
    try:
        settings = get_settings()
    finally:
        get_settings.cache_clear()

    assert isinstance(settings, Settings)
    assert settings.database_url == "sqlite+aiosqlite:///env.db"
    assert settings.session_ttl_seconds == 3600
    assert settings.cookie_secure is True
    assert settings.scanner_scan_limit == 25
    assert settings.cors_origins == ["http://localhost:5173", "https://rollcall.example.edu"]
    assert settings.bootstrap_admin_password is None


def test_defaults() -> None:
    settings = load_settings(database_url="sqlite+aiosqlite:///x.db", secret_key=TEST_SECRET)

    assert settings.session_ttl_seconds == 86400
    assert settings.cookie_secure is False
    assert settings.scanner_scan_limit == 100
    assert settings.cors_origins == []
