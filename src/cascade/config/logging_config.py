"""Logging setup driven by AppSettings.

Text output uses the plain stdlib format. JSON output renders stdlib records
through structlog's ProcessorFormatter, so module loggers stay
``logging.getLogger(__name__)`` either way.
"""

import logging

import structlog

from cascade.config.app_settings import AppSettings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Formatter emitting one JSON object per stdlib log record."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    )


def configure_logging(settings: AppSettings) -> None:
    """Configure the root logger from settings.

    Args:
        settings: Application settings (log_level, log_format)
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    if settings.log_format.lower() == "json":
        handler.setFormatter(build_json_formatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logging.basicConfig(level=level, handlers=[handler], force=True)
