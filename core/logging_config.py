"""Process-wide logging setup, called once by the embedding application at startup.

Alembic configures its own logging from ``alembic.ini``.
"""
import logging
import sys

import structlog

from core.settings import AppSettings, SETTINGS


def configure_logging(app_settings: AppSettings | None = None) -> None:
    """Route stdlib logging and structlog through one handler on stdout.

    JSON rendering is used when ``JSON_LOGS`` is set, otherwise a console
    renderer for local development.
    """
    app_settings = app_settings or SETTINGS.APP
    level = logging.getLevelName(app_settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if app_settings.JSON_LOGS
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
