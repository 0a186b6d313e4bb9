from __future__ import annotations

import pytest

from userdata.core.config import Config


def test_allowed_origins_merges_and_deduplicates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "CORS_ALLOWED_ORIGINS", "https://a.example, https://b.example,,https://a.example")
    origins = Config.allowed_origins(["https://c.example", "https://b.example"])
    assert origins == ["https://a.example", "https://b.example", "https://c.example"]


def test_allowed_origins_reads_loaded_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "CORS_ALLOWED_ORIGINS", "http://localhost:3000")
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://late.example")
    assert Config.allowed_origins() == ["http://localhost:3000"]


def test_validate_accepts_defaults() -> None:
    Config.validate()


def test_validate_rejects_bad_limits(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "MAX_GENERATED_USERS", 0)
    with pytest.raises(ValueError):
        Config.validate()
