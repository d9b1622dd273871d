"""
Unit Tests for Logging Configuration
"""

import logging

from numberland.core.config import settings
from numberland.core.logging import NOISY_LOGGERS, add_service_context, setup_logging


def test_events_carry_service_and_environment() -> None:
    event = add_service_context(None, "info", {"event": "Tracing recorded"})

    assert event["service"] == settings.SERVICE_NAME
    assert event["environment"] == settings.ENVIRONMENT


def test_explicit_service_is_kept() -> None:
    event = add_service_context(None, "info", {"event": "x", "service": "worker"})

    assert event["service"] == "worker"


def test_setup_quiets_noisy_loggers() -> None:
    setup_logging()

    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level >= logging.WARNING
