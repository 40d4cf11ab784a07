import pytest

from edusync.config import Settings


def test_default_secret_refused_outside_dev(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(RuntimeError):
        Settings()
    monkeypatch.setenv("ALLOW_INSECURE_JWT", "true")
    assert Settings().ENV == "production"


def test_explicit_secret_accepted_in_production(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("JWT_SECRET", "a-real-secret-value-from-the-vault")
    cfg = Settings()
    assert not cfg.is_dev
    assert cfg.JWT_SECRET == "a-real-secret-value-from-the-vault"


def test_token_lifetime_must_be_positive(monkeypatch):
    monkeypatch.setenv("JWT_EXPIRE_HOURS", "0")
    with pytest.raises(RuntimeError):
        Settings()


def test_cors_origins_are_split(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://app.example.com ,")
    assert Settings().CORS_ORIGINS == ["http://localhost:3000", "https://app.example.com"]
