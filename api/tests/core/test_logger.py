"""Unit tests for core.logger module."""

import json
import logging

import pytest

from core.logger import bind_contextvars, clear_contextvars, configure_logging, get_logger


@pytest.fixture(autouse=True)
def _clean_root_logger():
    """Save and restore root logger state around each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    clear_contextvars()


@pytest.mark.unit
class TestConfigureLogging:
    def test_installs_single_stdout_handler(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        configure_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_json_format_includes_bound_context(self, monkeypatch, capsys):
        monkeypatch.setenv("LOG_FORMAT", "json")
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        configure_logging()

        bind_contextvars(request_id="abc")
        # Bypass the logger cache so the new configuration applies
        logger = get_logger("tests.logger").new()
        logger.info("store.ready", store="user")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "store.ready"
        assert record["store"] == "user"
        assert record["request_id"] == "abc"
        assert record["level"] == "info"
