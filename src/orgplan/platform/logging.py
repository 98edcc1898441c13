"""
OrgPlan Structured Logging

API modules log through structlog with keyword fields. The ledger engine and
the schedulers log through the standard library under the ``orgplan.engine``
and ``orgplan.schedulers`` loggers, whose levels can be raised or lowered
independently of LOG_LEVEL.
"""

import logging
import sys

import structlog

from orgplan.platform.config import settings

# Standard library loggers with their own level setting
COMPONENT_LOGGERS = {
    "orgplan.engine": "ENGINE_LOG_LEVEL",
    "orgplan.schedulers": "SCHEDULER_LOG_LEVEL",
}


def _parse_level(name: str | None, default: int) -> int:
    if not name:
        return default
    return getattr(logging, name.upper(), default)


def configure_logging() -> None:
    """
    Configure structured logging for the application.

    Every structlog event carries the service name, environment and version
    as context variables, so log lines from several deployments can share
    one sink.
    """
    log_level = _parse_level(settings.LOG_LEVEL, logging.INFO)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        service=settings.APP_NAME,
        env=settings.APP_ENV,
        version=settings.VERSION,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
            if settings.APP_ENV == "production"
            else structlog.dev.ConsoleRenderer(colors=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    for logger_name, setting in COMPONENT_LOGGERS.items():
        level = _parse_level(getattr(settings, setting), log_level)
        logging.getLogger(logger_name).setLevel(level)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
