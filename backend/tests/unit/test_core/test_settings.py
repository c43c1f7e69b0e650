import pytest
from aprovafacil.core.settings import DEV_JWT_SECRET, Settings


def test_settings_loads_with_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg2://u:p@localhost:5432/db")
    monkeypatch.setenv("JWT_SECRET_KEY", "secret")
    monkeypatch.delenv("CONCURSO_CHANGE_DAYS", raising=False)
    monkeypatch.delenv("LOGIN_MAX_ATTEMPTS", raising=False)

    s = Settings(_env_file=None)
    assert s.JWT_ALGORITHM == "HS256"
    assert s.ACCESS_TOKEN_EXPIRE_MINUTES == 60 * 24 * 7
    assert s.CONCURSO_CHANGE_DAYS == 120
    assert s.LOGIN_MAX_ATTEMPTS == 5
    assert s.LOGIN_WINDOW_MINUTES == 15
    assert s.LOG_LEVEL in ("INFO", "DEBUG", "WARNING", "ERROR", "CRITICAL")


def test_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("CONCURSO_CHANGE_DAYS", "30")
    monkeypatch.setenv("CORS_ORIGINS", '["https://aprovafacil.com.br"]')

    s = Settings(_env_file=None)
    assert s.CONCURSO_CHANGE_DAYS == 30
    assert s.CORS_ORIGINS == ["https://aprovafacil.com.br"]


def test_production_requires_real_secret(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("JWT_SECRET_KEY", DEV_JWT_SECRET)

    with pytest.raises(Exception):
        Settings(_env_file=None)


def test_production_with_secret_is_accepted(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("JWT_SECRET_KEY", "a-real-production-secret")

    s = Settings(_env_file=None)
    assert s.is_production is True
