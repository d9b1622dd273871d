"""
Structured logging for the progress service.

Every event carries the service name and environment, so records from
several deployments can share one log sink.
"""

import logging
import sys
import structlog
from structlog.processors import JSONRenderer, TimeStamper, add_log_level
from structlog.stdlib import add_logger_name

from numberland.core.config import settings

# Chatty at INFO and not useful for progress events
NOISY_LOGGERS = ("aiocache", "sqlalchemy.engine", "uvicorn.access")


def add_service_context(logger, method_name, event_dict):
    """Stamp service and environment onto the event unless the caller set them."""
    event_dict.setdefault("service", settings.SERVICE_NAME)
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    return event_dict


def setup_logging():
    """Configure structlog over stdlib logging at the configured level."""
    if settings.LOG_FORMAT == "json":
        renderer = JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            add_service_context,
            add_log_level,
            add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            TimeStamper(fmt="iso"),
            structlog.processors.dict_tracebacks,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.LOG_LEVEL)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
