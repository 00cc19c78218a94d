"""Tests for environment-driven runtime configuration."""
import os

import pytest

from shiftbook.config import load_env, runtime_config

ENV_VARS = (
    "SHIFTBOOK_DB_PATH",
    "SHIFTBOOK_MIN_SHIFT_HOURS",
    "SHIFTBOOK_MAX_SHIFT_HOURS",
    "SHIFTBOOK_DIRECTORY_URL",
    "SHIFTBOOK_DIRECTORY_API_KEY",
    "SHIFTBOOK_DIRECTORY_TIMEOUT_S",
    "SHIFTBOOK_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SHIFTBOOK_DB_PATH", str(tmp_path / "db" / "shifts.db"))


class TestRuntimeConfig:
    def test_defaults(self, tmp_path):
        cfg = runtime_config()
        assert cfg.db_path == (tmp_path / "db" / "shifts.db").resolve()
        assert cfg.db_path.parent.is_dir()
        assert cfg.min_shift_hours == 4.0
        assert cfg.max_shift_hours == 12.0
        assert cfg.log_level == "INFO"
        assert cfg.directory is None

    @pytest.mark.parametrize("value", ["", "none", "OFF"])
    def test_upper_bound_can_be_disabled(self, monkeypatch, value):
        monkeypatch.setenv("SHIFTBOOK_MAX_SHIFT_HOURS", value)
        assert runtime_config().max_shift_hours is None

    def test_custom_bounds(self, monkeypatch):
        monkeypatch.setenv("SHIFTBOOK_MIN_SHIFT_HOURS", "3")
        monkeypatch.setenv("SHIFTBOOK_MAX_SHIFT_HOURS", "10.5")
        cfg = runtime_config()
        assert (cfg.min_shift_hours, cfg.max_shift_hours) == (3.0, 10.5)

    def test_inverted_bounds_rejected(self, monkeypatch):
        monkeypatch.setenv("SHIFTBOOK_MIN_SHIFT_HOURS", "8")
        monkeypatch.setenv("SHIFTBOOK_MAX_SHIFT_HOURS", "6")
        with pytest.raises(ValueError, match="SHIFTBOOK_MAX_SHIFT_HOURS"):
            runtime_config()

    def test_non_numeric_rejected(self, monkeypatch):
        monkeypatch.setenv("SHIFTBOOK_MIN_SHIFT_HOURS", "four")
        with pytest.raises(ValueError, match="SHIFTBOOK_MIN_SHIFT_HOURS"):
            runtime_config()

    def test_directory_enabled(self, monkeypatch):
        monkeypatch.setenv("SHIFTBOOK_DIRECTORY_URL", "https://people.example.com/api/v1/")
        monkeypatch.setenv("SHIFTBOOK_DIRECTORY_API_KEY", "secret")
        directory = runtime_config().directory
        assert directory.base_url == "https://people.example.com/api/v1"
        assert directory.api_key == "secret"
        assert directory.timeout_s == 10.0

    def test_env_file_loaded(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SHIFTBOOK_MIN_SHIFT_HOURS=5\n", encoding="utf-8")
        try:
            load_env(env_file)
            assert runtime_config().min_shift_hours == 5.0
        finally:
            os.environ.pop("SHIFTBOOK_MIN_SHIFT_HOURS", None)
