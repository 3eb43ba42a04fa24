from pathlib import Path

import pytest
from smart_structure.config import DEFAULT_STATE_PATH, ClientConfig


def test_url_joins_without_double_slashes():
    cfg = ClientConfig(base_url="https://api.example.com/v1/")
    assert cfg.url("/land-surveys") == "https://api.example.com/v1/land-surveys"
    assert cfg.url("auth/login") == "https://api.example.com/v1/auth/login"


def test_invalid_base_url():
    with pytest.raises(ValueError):
        ClientConfig(base_url="ftp://example.com")


def test_invalid_timeout():
    with pytest.raises(ValueError):
        ClientConfig(timeout=0)


def test_session_only_retries_idempotent_connects():
    cfg = ClientConfig(retries_connect=3)
    retry = cfg.session.get_adapter("https://example.com").max_retries
    assert retry.connect == 3
    assert retry.read == 0
    assert "POST" not in retry.allowed_methods
    assert cfg.session.headers["Accept"] == "application/json"


def test_state_path_defaults():
    assert ClientConfig().resolved_state_path() == DEFAULT_STATE_PATH


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SMART_STRUCTURE_API_URL", "http://localhost:5000/api/v1")
    monkeypatch.setenv("SMART_STRUCTURE_TIMEOUT", "12.5")
    monkeypatch.setenv("SMART_STRUCTURE_STATE_PATH", str(tmp_path / "s.json"))
    monkeypatch.setenv("SMART_STRUCTURE_VERIFY_SURVEY", "yes")
    cfg = ClientConfig.from_env(notification_lifetime=5.0)
    assert cfg.base_url == "http://localhost:5000/api/v1"
    assert cfg.timeout == 12.5
    assert cfg.resolved_state_path() == Path(tmp_path / "s.json")
    assert cfg.verify_persisted_survey is True
    assert cfg.notification_lifetime == 5.0


def test_from_env_rejects_bad_numbers(monkeypatch):
    monkeypatch.setenv("SMART_STRUCTURE_TIMEOUT", "soon")
    with pytest.raises(ValueError):
        ClientConfig.from_env()
