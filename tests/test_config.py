"""Tests for settings and logging setup."""

import logging

from crossvote.config import Settings, get_settings, reset_settings
from crossvote.utils.logger import get_logger, setup_logger


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.minimum_confidence == 0.6
    assert settings.consensus_threshold == 0.7
    assert settings.risk_ceiling == 0.7
    assert settings.max_rounds == 3
    assert settings.cooldown_hours == 24.0
    assert settings.ledger_capacity == 100
    assert settings.concurrency_mode == "queue"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CROSSVOTE_RISK_CEILING", "0.5")
    monkeypatch.setenv("CROSSVOTE_CONCURRENCY_MODE", "reject")

    settings = Settings(_env_file=None)

    assert settings.risk_ceiling == 0.5
    assert settings.concurrency_mode == "reject"


def test_settings_singleton_can_be_reset(monkeypatch):
    reset_settings()
    first = get_settings()
    monkeypatch.setenv("CROSSVOTE_MAX_ROUNDS", "5")

    assert get_settings() is first
    reset_settings()
    assert get_settings().max_rounds == 5
    reset_settings()


def test_module_loggers_are_children_of_package_logger():
    assert get_logger("crossvote.analysis.voting").name == "crossvote.analysis.voting"
    assert get_logger("scripts").name == "crossvote.scripts"


def test_setup_logger_does_not_duplicate_handlers(tmp_path):
    log_file = tmp_path / "logs" / "crossvote.log"

    setup_logger(log_file=str(log_file), log_level="DEBUG")
    logger = setup_logger(log_file=str(log_file), log_level="DEBUG")

    assert len(logger.handlers) == 2
    assert logger.level == logging.DEBUG
    assert log_file.parent.exists()
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


def test_reconfiguring_closes_replaced_file_handler(tmp_path):
    first = setup_logger(log_file=str(tmp_path / "first.log"))
    old_handler = first.handlers[-1]

    logger = setup_logger(log_file=str(tmp_path / "second.log"))

    assert old_handler not in logger.handlers
    assert old_handler.stream is None
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
