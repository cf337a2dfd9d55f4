"""
Structured logging configuration.

Provides JSON-formatted logs with a session_id field so log lines from one
scrubbing session can be correlated.

Usage:
    from timetravel.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, session_id="a1b2c3")
    logger.info("Timeline built", extra={"length": 1200})
"""

import logging
import sys
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

from .config import Settings


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure the root logger.

    Level and format come from settings (default: Settings.from_env()).
    """
    settings = settings or Settings.from_env()
    level = getattr(logging, settings.log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if settings.log_format == "json":
        formatter: logging.Formatter = JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(session_id)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [session_id=%(session_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    handler.addFilter(SessionIDFilter())
    root_logger.addHandler(handler)

    # Silence noisy libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str, session_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger that stamps session_id on every record.

    Example:
        logger = get_logger(__name__, session_id="a1b2c3")
        logger.info("Seek rejected")
        # {"timestamp": "...", "level": "INFO", "message": "Seek rejected", "session_id": "a1b2c3"}
    """
    logger = logging.getLogger(name)
    return logging.LoggerAdapter(logger, {"session_id": session_id or "N/A"})


class SessionIDFilter(logging.Filter):
    """
    Ensures every record has a session_id field, even when logged without
    a LoggerAdapter.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = "N/A"  # type: ignore
        return True
