"""Tests for configuration validation and logging setup."""
import logging

import pytest

from olx_monitor.config import Config
from olx_monitor.logging_conf import setup_logging


def test_validate_requires_token(monkeypatch):
    """Test that a missing Telegram token is rejected."""
    monkeypatch.setattr(Config, "TELEGRAM_TOKEN", None)
    with pytest.raises(ValueError, match="TELEGRAM_TOKEN"):
        Config.validate()


def test_validate_dry_run_without_token(monkeypatch):
    """Test that dry runs do not need a token."""
    monkeypatch.setattr(Config, "TELEGRAM_TOKEN", None)
    Config.validate(require_telegram=False)


def test_validate_collects_all_errors(monkeypatch):
    """Test that every problem is reported in one error."""
    monkeypatch.setattr(Config, "TELEGRAM_TOKEN", "123-abc")
    monkeypatch.setattr(Config, "CONCURRENCY", 0)
    monkeypatch.setattr(Config, "PRICE_DROP_THRESHOLD", -1)
    with pytest.raises(ValueError) as excinfo:
        Config.validate()
    assert "CONCURRENCY" in str(excinfo.value)
    assert "PRICE_DROP_THRESHOLD" in str(excinfo.value)


def test_setup_logging_is_idempotent(tmp_path):
    """Test that calling setup twice does not duplicate handlers."""
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("DEBUG", log_file=tmp_path / "scraper.log")
        setup_logging("DEBUG", log_file=tmp_path / "scraper.log")

        assert len(root.handlers) == 2
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
