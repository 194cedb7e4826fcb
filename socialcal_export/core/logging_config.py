"""
Central logging configuration for socialcal_export.

Keeps third-party HTTP libraries quiet while leaving the export modules at a
level where dropped events and fallback decisions are visible to operators.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

CONSOLE_FORMAT = (
    "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s [%(request_id)s] %(name)s: %(message)s"
)
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

THIRD_PARTY_LEVELS: dict[str, int] = {
    "aiohttp.access": logging.WARNING,
    "aiohttp.server": logging.WARNING,
    "aiohttp.web": logging.INFO,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "asyncio": logging.WARNING,
    "icalendar": logging.INFO,
}

EXPORT_MODULES = (
    "socialcal_export",
    "socialcal_export.calendar",
    "socialcal_export.domain",
    "socialcal_export.data",
    "socialcal_export.api",
)


class CorrelationIdFilter(logging.Filter):
    """Add correlation ID to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to log record.

        Args:
            record: Log record to enhance

        Returns:
            True to allow record to be logged
        """
        from socialcal_export.api.middleware import get_request_id

        record.request_id = get_request_id()
        return True


def _env_debug_enabled() -> bool:
    return os.getenv("SOCIALCAL_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")


def build_console_handler(level: int = logging.NOTSET) -> logging.Handler:
    """Create a colorized stderr handler carrying the correlation ID filter."""
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
    handler.addFilter(CorrelationIdFilter())
    return handler


def configure_export_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for socialcal_export.

    Args:
        debug_mode: Whether to enable debug logging for socialcal_export modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        SOCIALCAL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        SOCIALCAL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_log_level = os.getenv("SOCIALCAL_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif _env_debug_enabled():
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    if not root_logger.handlers:
        root_logger.addHandler(build_console_handler())
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(CorrelationIdFilter())

    logger_config = dict(THIRD_PARTY_LEVELS)
    export_level = logging.DEBUG if final_debug else logging.INFO
    for module in EXPORT_MODULES:
        logger_config[module] = export_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.info("Debug logging enabled for socialcal_export modules")
    else:
        root_logger.debug("Production logging configuration applied")
