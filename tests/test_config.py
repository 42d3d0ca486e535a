import pytest
from pydantic import ValidationError

from parentplanner.core.config import Settings


def _settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite+aiosqlite:///./test.db",
        "JWT_SECRET": "test-secret",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_cors_origin_list_supports_comma_separated_values() -> None:
    settings = _settings(CORS_ORIGINS="http://localhost:5173,http://localhost:3000")
    assert settings.cors_origin_list() == [
        "http://localhost:5173",
        "http://localhost:3000",
    ]


def test_cors_origin_list_normalizes_quotes_and_trailing_slashes() -> None:
    settings = _settings(CORS_ORIGINS="'http://localhost:5173/'")
    assert settings.cors_origin_list() == ["http://localhost:5173"]


def test_cors_origin_list_supports_json_array_format() -> None:
    settings = _settings(CORS_ORIGINS='["http://localhost:5173", "http://127.0.0.1:5173/"]')
    assert settings.cors_origin_list() == [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]


def test_postgres_urls_use_asyncpg_driver() -> None:
    settings = _settings(DATABASE_URL="postgres://user:pw@db:5432/planner")
    assert settings.database_url == "postgresql+asyncpg://user:pw@db:5432/planner"


def test_sql_backend_requires_database_url(monkeypatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(ValidationError):
        _settings(DATABASE_URL="  ", STORE_BACKEND="sql")


def test_firestore_backend_needs_no_database_url(monkeypatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = _settings(DATABASE_URL="", STORE_BACKEND="Firestore")
    assert settings.store_backend == "firestore"
    assert settings.database_url is None
    assert settings.firebase_configured()


def test_unknown_store_backend_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(STORE_BACKEND="mongo")


def test_samesite_none_requires_secure_cookie() -> None:
    with pytest.raises(ValidationError):
        _settings(ENV="test", AUTH_COOKIE_SAMESITE="none")

    settings = _settings(ENV="test", AUTH_COOKIE_SAMESITE="none", AUTH_COOKIE_SECURE=True)
    assert settings.auth_cookie_secure_value() is True


def test_invite_link_strips_trailing_slash() -> None:
    settings = _settings(FRONTEND_URL="https://planner.example.com/")
    assert settings.invite_link("ABC234") == "https://planner.example.com/signup?code=ABC234"
