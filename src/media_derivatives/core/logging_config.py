"""Logging setup shared by the Lambda handler, the CLI and the services."""

import os
import sys
import logging
from typing import Optional

DEFAULT_LOGGER_NAME = "media-derivatives"
DEFAULT_LOG_FORMAT = "structured"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FORMATS = {
    "structured": (
        "%(asctime)s | %(name)s | %(levelname)-8s | "
        "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
    ),
    "simple": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def resolve_level(level: Optional[str] = None) -> int:
    """Numeric level for ``level``, else ``LOG_LEVEL``, else INFO."""
    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    if name not in LOG_LEVELS:
        return logging.INFO
    return getattr(logging, name)


def resolve_format(format_type: Optional[str] = None) -> str:
    """Format name for ``format_type``, else ``LOG_FORMAT``, else structured."""
    name = (format_type or os.getenv("LOG_FORMAT") or DEFAULT_LOG_FORMAT).lower()
    return name if name in LOG_FORMATS else DEFAULT_LOG_FORMAT


def running_in_lambda() -> bool:
    """True when the Lambda runtime has installed its handler on the root logger."""
    return bool(os.getenv("AWS_LAMBDA_FUNCTION_NAME")) and bool(
        logging.getLogger().handlers
    )


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: Optional[str] = None,
) -> logging.Logger:
    """
    Configure a named logger for the derivatives generator.

    Inside Lambda, records propagate to the runtime's root handler, which
    stamps them with the request id. Elsewhere the logger owns one stdout
    handler. Calling this again on a warm container updates the level and
    format in place.

    Args:
        name: Logger name (defaults to "media-derivatives")
        level: Log level; falls back to LOG_LEVEL, then INFO
        format_type: "structured" or "simple"; falls back to LOG_FORMAT

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    if running_in_lambda():
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.propagate = True
        return logger

    formatter = logging.Formatter(
        LOG_FORMATS[resolve_format(format_type)], datefmt=DATE_FORMAT
    )
    if logger.handlers:
        for handler in logger.handlers:
            handler.setFormatter(formatter)
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Logger configured from LOG_LEVEL and LOG_FORMAT."""
    return setup_logger(name)
