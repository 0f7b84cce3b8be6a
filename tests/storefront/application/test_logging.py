"""Tests for environment-driven logging configuration."""

import logging

import pytest

from storefront.utils.logging import ERROR_LOG_FILE, LOG_FILE, current_env, get_log_level, setup_stdlib_logging


@pytest.fixture()
def root_handlers():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers, root.level = saved_handlers, saved_level


class TestLogLevel:
    @pytest.mark.parametrize(
        ("env", "level"),
        [("production", "INFO"), ("development", "DEBUG"), ("test", "WARNING"), ("qa", "INFO")],
    )
    def test_level_follows_environment(self, monkeypatch, env, level):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("ENVIRONMENT", env)
        assert get_log_level() == level

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert get_log_level() == "DEBUG"

    def test_environment_falls_back_to_protean_env(self, monkeypatch):
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.setenv("PROTEAN_ENV", "Staging")
        assert current_env() == "staging"


class TestStdlibLogging:
    def test_writes_rotating_files(self, tmp_path, monkeypatch, root_handlers):
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        setup_stdlib_logging(tmp_path)

        logging.getLogger("storefront.test").error("boom")

        assert (tmp_path / LOG_FILE).exists()
        assert "boom" in (tmp_path / ERROR_LOG_FILE).read_text()
        assert logging.getLogger("protean").level == logging.WARNING

    def test_console_only(self, monkeypatch, root_handlers):
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        setup_stdlib_logging(None)
        assert len(logging.getLogger().handlers) == 1
