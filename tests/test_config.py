"""Tests for ClientSettings loading."""

import pydantic
import pytest

from reqpipe.config import (
    DEFAULT_ERROR_SUPPRESSION_SECONDS,
    DEFAULT_TIMEOUT_MS,
    TOKEN_KEY,
    ClientSettings,
    get_settings,
)


def test_defaults():
    settings = ClientSettings(_env_file=None)

    assert settings.base_url == ""
    assert settings.timeout_ms == DEFAULT_TIMEOUT_MS == 10000
    assert settings.default_headers == {}
    assert settings.show_error_alert is True
    assert settings.error_suppression_seconds == DEFAULT_ERROR_SUPPRESSION_SECONDS == 3.0
    assert settings.token_key == TOKEN_KEY == "@auth_token"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("REQPIPE_BASE_URL", "https://env.example.com")
    monkeypatch.setenv("REQPIPE_TIMEOUT_MS", "2500")
    monkeypatch.setenv("reqpipe_show_error_alert", "false")
    monkeypatch.setenv("REQPIPE_DEFAULT_HEADERS", '{"X-App": "env"}')

    settings = ClientSettings(_env_file=None)

    assert settings.base_url == "https://env.example.com"
    assert settings.timeout_ms == 2500
    assert settings.show_error_alert is False
    assert settings.default_headers == {"X-App": "env"}


def test_env_file_is_read(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("REQPIPE_TOKEN_KEY=@session\n", encoding="utf-8")

    settings = ClientSettings(_env_file=env_file)

    assert settings.token_key == "@session"


def test_non_positive_suppression_window_is_invalid():
    with pytest.raises(pydantic.ValidationError):
        ClientSettings(_env_file=None, error_suppression_seconds=0)


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
