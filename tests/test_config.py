import pytest

from smartdeploy.config import Settings


def test_defaults(monkeypatch):
    for name in ("SMARTDEPLOY_WS_URL", "SMARTDEPLOY_API_URL", "SMARTDEPLOY_TOKEN",
                 "SMARTDEPLOY_DEBOUNCE_MS", "SMARTDEPLOY_LOG_LEVEL", "SMARTDEPLOY_HTTP_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()
    assert settings.ws_url == "ws://localhost:4001"
    assert settings.token is None
    assert settings.debounce_seconds == 0.5
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SMARTDEPLOY_WS_URL", "wss://deploy.example.com")
    monkeypatch.setenv("SMARTDEPLOY_API_URL", "https://dash.example.com/")
    monkeypatch.setenv("SMARTDEPLOY_TOKEN", "tok")
    monkeypatch.setenv("SMARTDEPLOY_DEBOUNCE_MS", "250")
    monkeypatch.setenv("SMARTDEPLOY_LOG_LEVEL", "debug")

    settings = Settings.from_env()
    assert settings.ws_url == "wss://deploy.example.com"
    assert settings.api_url == "https://dash.example.com"
    assert settings.token == "tok"
    assert settings.debounce_seconds == 0.25
    assert settings.log_level == "DEBUG"


def test_bad_integer_is_rejected(monkeypatch):
    monkeypatch.setenv("SMARTDEPLOY_DEBOUNCE_MS", "soon")
    with pytest.raises(ValueError, match="SMARTDEPLOY_DEBOUNCE_MS"):
        Settings.from_env()
