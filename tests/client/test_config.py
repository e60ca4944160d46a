"""Tests for BISON_* settings loading."""

import pytest
from pydantic import ValidationError

from bison_client.config import BisonSettings, load_settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's environment and .env out of these tests."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "BISON_BASE_URL",
        "BISON_MAX_RECONNECT_ATTEMPTS",
        "BISON_HEARTBEAT_INTERVAL",
        "BISON_REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = BisonSettings()

    assert settings.base_url == "http://localhost:8787"
    assert settings.heartbeat_interval == 30.0
    assert settings.max_reconnect_attempts == 5
    policy = settings.reconnect_policy()
    assert (policy.max_attempts, policy.base_delay, policy.max_delay) == (5, 1.0, 30.0)


def test_environment_prefix(monkeypatch):
    monkeypatch.setenv("BISON_BASE_URL", "https://api.bison.example/")
    monkeypatch.setenv("BISON_MAX_RECONNECT_ATTEMPTS", "2")

    settings = BisonSettings()

    assert settings.base_url == "https://api.bison.example"
    assert settings.reconnect_policy().max_attempts == 2


def test_dotenv_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("BISON_REQUEST_TIMEOUT=3.5\n")

    assert BisonSettings().request_timeout == 3.5


def test_explicit_values_win(monkeypatch):
    monkeypatch.setenv("BISON_BASE_URL", "https://env.example")

    settings = load_settings("https://explicit.example", heartbeat_interval=5)

    assert settings.base_url == "https://explicit.example"
    assert settings.heartbeat_interval == 5


@pytest.mark.parametrize("base_url", ["ws://localhost:8787", "localhost:8787"])
def test_rejects_non_http_base_url(base_url):
    with pytest.raises(ValidationError):
        BisonSettings(base_url=base_url)
