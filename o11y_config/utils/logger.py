"""
Structured logging configuration using structlog.

Development environments get human-readable console output; everything else
renders JSON for machine processing.
"""

import logging
import sys
from typing import Optional

import structlog
import structlog.contextvars
from structlog.types import Processor

from o11y_config.core.config import Settings, settings


def configure_logging(app_settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the process.

    Args:
        app_settings: Settings to read APP_ENV and LOG_LEVEL from; defaults
            to the module-level settings
    """
    app_settings = app_settings or settings

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=app_settings.LOG_LEVEL,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]

    if app_settings.is_development:
        processors.extend(
            [
                structlog.dev.set_exc_info,
                structlog.dev.ConsoleRenderer(colors=True),
            ]
        )
    else:
        processors.extend(
            [
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ]
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    # Every event carries the application name
    structlog.contextvars.bind_contextvars(app=app_settings.APP_NAME)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)
