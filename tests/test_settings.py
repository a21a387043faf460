import pytest
from pydantic import ValidationError

from team_buddy.config.settings import Settings, get_openai_api_key, get_settings, load_env_file


def test_defaults(monkeypatch):
    for name in ("HOST", "PORT", "LOG_LEVEL", "CORS_ORIGINS", "REALTIME_MODEL",
                 "REALTIME_VOICE", "UPSTREAM_TIMEOUT_SECONDS", "RELAY_URL", "MAX_ROOMS"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.host == "0.0.0.0"
    assert settings.port == 5000
    assert settings.cors_origins == ["http://localhost:3000"]
    assert settings.realtime_model == "gpt-4o-realtime-preview-2024-12-17"
    assert settings.realtime_voice == "verse"
    assert settings.upstream_timeout == 30.0
    assert settings.relay_url == "http://localhost:5000"
    assert settings.max_rooms == 1000


def test_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    monkeypatch.setenv("REALTIME_VOICE", "alloy")
    monkeypatch.setenv("UPSTREAM_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("RELAY_URL", "http://relay.test/")
    monkeypatch.setenv("MAX_ROOMS", "10")

    settings = Settings.from_env()

    assert settings.port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.realtime_voice == "alloy"
    assert settings.upstream_timeout == 5.0
    assert settings.relay_url == "http://relay.test"
    assert settings.max_rooms == 10


def test_invalid_timeout(monkeypatch):
    monkeypatch.setenv("UPSTREAM_TIMEOUT_SECONDS", "0")
    with pytest.raises(ValidationError):
        Settings.from_env()


def test_api_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert get_openai_api_key() == "sk-test"
    monkeypatch.setenv("OPENAI_API_KEY", "")
    assert get_openai_api_key() is None


def test_load_env_file(tmp_path, monkeypatch):
    monkeypatch.delenv("TEAM_BUDDY_TEST_VAR", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("TEAM_BUDDY_TEST_VAR=from-file\n")

    assert load_env_file(env_file) is True
    assert get_settings() is not None
    import os
    assert os.environ["TEAM_BUDDY_TEST_VAR"] == "from-file"
    monkeypatch.delenv("TEAM_BUDDY_TEST_VAR")


def test_load_missing_env_file(tmp_path):
    assert load_env_file(tmp_path / "missing.env") is False


def test_log_level_drives_relay_startup(monkeypatch):
    import run

    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("PORT", "7000")

    args = run.parse_args([])

    assert args.log_level == "WARNING"
    assert args.port == 7000


def test_log_level_configures_app_logger(monkeypatch):
    import logging

    from team_buddy.config.logging_config import configure_logging

    monkeypatch.setenv("LOG_LEVEL", "error")

    logger = configure_logging(get_settings().log_level)

    assert logger.level == logging.ERROR
