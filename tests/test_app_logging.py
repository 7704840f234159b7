"""Tests for logging configuration."""

import logging

from meetup_tracker.api.app import create_app
from meetup_tracker.app_logging import LOG_FORMAT, configure_logging


def test_configure_logging_installs_one_handler() -> None:
    logger = logging.getLogger("meetup_tracker")
    logger.handlers.clear()

    configure_logging()
    configure_logging(logging.WARNING)

    assert len(logger.handlers) == 1
    assert logger.handlers[0].formatter._fmt == LOG_FORMAT
    assert logger.level == logging.WARNING
    assert not logger.propagate


def test_create_app_applies_configured_level(container) -> None:
    container.settings.log_level = "debug"

    create_app(container)

    assert logging.getLogger("meetup_tracker").level == logging.DEBUG
    container.settings.log_level = "INFO"
    create_app(container)
    assert logging.getLogger("meetup_tracker").level == logging.INFO
