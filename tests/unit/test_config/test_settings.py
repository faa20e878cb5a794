"""Tests for settings loading and validation."""

import pytest
from pydantic import ValidationError

from meeting_bot.config import load_config
from meeting_bot.config.settings import DEFAULT_TIMEZONE, Settings
from meeting_bot.exceptions import InvalidConfigError, MissingConfigError


def _make_settings(**overrides):
    defaults = {
        "_env_file": None,
        "slack_bot_token": "xoxb-test",
        "slack_app_token": "xapp-test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


class TestSettings:
    """Defaults, validators and derived paths."""

    def test_defaults(self):
        settings = _make_settings()
        assert settings.default_timezone == DEFAULT_TIMEZONE
        assert settings.meeting_start_window_minutes == 5
        assert settings.user_cache_refresh_minutes == 30
        assert settings.enable_scheduler is True
        assert settings.service_account_info_str is None

    def test_token_accessors(self):
        settings = _make_settings()
        assert settings.slack_bot_token_str == "xoxb-test"
        assert settings.slack_app_token_str == "xapp-test"
        assert "xoxb-test" not in repr(settings)

    def test_file_paths(self, tmp_path):
        settings = _make_settings(data_dir=tmp_path / "data", config_dir=tmp_path)
        assert settings.attendance_file == tmp_path / "data" / "attendance.json"
        assert settings.app_config_file == tmp_path / "app-config.json"

    def test_log_level_normalised(self):
        assert _make_settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            _make_settings(log_level="LOUD")

    def test_invalid_timezone(self):
        with pytest.raises(ValidationError):
            _make_settings(default_timezone="Mars/Olympus")

    def test_start_window_bounds(self):
        with pytest.raises(ValidationError):
            _make_settings(meeting_start_window_minutes=0)

    def test_inline_service_account(self):
        settings = _make_settings(google_service_account_json='{"type": "x"}')
        assert settings.service_account_info_str == '{"type": "x"}'


class TestLoadConfig:
    """load_config error mapping."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(MissingConfigError):
            load_config(config_file=tmp_path / "nope.env")

    def test_from_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
        monkeypatch.delenv("SLACK_APP_TOKEN", raising=False)
        env_file = tmp_path / "bot.env"
        env_file.write_text(
            "SLACK_BOT_TOKEN=xoxb-file\n"
            "SLACK_APP_TOKEN=xapp-file\n"
            "DEFAULT_TIMEZONE=Europe/Berlin\n"
        )
        settings = load_config(config_file=env_file)
        assert settings.slack_bot_token_str == "xoxb-file"
        assert settings.default_timezone == "Europe/Berlin"

    def test_missing_tokens(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
        monkeypatch.delenv("SLACK_APP_TOKEN", raising=False)
        env_file = tmp_path / "empty.env"
        env_file.write_text("")
        with pytest.raises(MissingConfigError) as exc_info:
            load_config(config_file=env_file)
        assert "slack_bot_token" in str(exc_info.value)

    def test_invalid_value(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-env")
        monkeypatch.setenv("SLACK_APP_TOKEN", "xapp-env")
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        env_file = tmp_path / "bot.env"
        env_file.write_text("")
        with pytest.raises(InvalidConfigError):
            load_config(config_file=env_file)
