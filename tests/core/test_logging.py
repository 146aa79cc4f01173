"""Tests for logging configuration."""

import logging

import pytest
import yaml

from app.core.logging import CONFIG_DIR, resolve_logging_config, setup_logging

SHIPPED_CONFIGS = sorted(CONFIG_DIR.glob("logging*.yaml"))


class TestResolveLoggingConfig:
    def test_log_cfg_env_wins(self, monkeypatch, tmp_path):
        custom = tmp_path / "custom.yaml"
        monkeypatch.setenv("LOG_CFG", str(custom))

        assert resolve_logging_config("ignored.yaml") == custom

    def test_environment_specific_file(self, monkeypatch):
        monkeypatch.delenv("LOG_CFG", raising=False)

        path = resolve_logging_config(environment="development")

        assert path == CONFIG_DIR / "logging.development.yaml"

    def test_falls_back_to_default_file(self, monkeypatch):
        monkeypatch.delenv("LOG_CFG", raising=False)

        path = resolve_logging_config(environment="staging")

        assert path == CONFIG_DIR / "logging.yaml"


class TestSetupLogging:
    def test_missing_file_uses_basic_config(self, monkeypatch, tmp_path, caplog):
        monkeypatch.delenv("LOG_CFG", raising=False)
        missing = tmp_path / "missing.yaml"

        with caplog.at_level(logging.WARNING, logger="app.core.logging"):
            path = setup_logging(str(missing))

        assert path == missing
        assert "not found" in caplog.text

    def test_invalid_yaml_falls_back(self, monkeypatch, tmp_path, caplog):
        monkeypatch.delenv("LOG_CFG", raising=False)
        broken = tmp_path / "broken.yaml"
        broken.write_text("version: [1\n")

        with caplog.at_level(logging.WARNING, logger="app.core.logging"):
            setup_logging(str(broken))

        assert "Invalid logging config" in caplog.text

    def test_level_override(self, monkeypatch, tmp_path):
        monkeypatch.delenv("LOG_CFG", raising=False)
        app_logger = logging.getLogger("app")
        previous = app_logger.level
        try:
            setup_logging(str(tmp_path / "missing.yaml"), level_override="debug")

            assert app_logger.level == logging.DEBUG
        finally:
            app_logger.setLevel(previous)


@pytest.mark.parametrize("path", SHIPPED_CONFIGS, ids=lambda p: p.name)
def test_handlers_leave_filtering_to_loggers(path):
    """A LOG_LEVEL override on the app logger must reach the output."""
    config = yaml.safe_load(path.read_text())

    for name, handler in config["handlers"].items():
        assert handler.get("level", "NOTSET") == "NOTSET", name
