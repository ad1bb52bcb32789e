"""Centralized logging configuration for image-variants.

Everything logs under the ``image-variants`` logger. Component loggers
(``image-variants.pipeline``, ``image-variants.s3``, ...) carry no handler of
their own and propagate to it, so one call to :func:`setup_logger` from the
CLI controls the whole package. Records go to stderr; stdout is reserved for
command output.
"""

import os
import sys
import logging
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "image-variants"

_FORMATS = {
    "structured": (
        "%(asctime)s | %(name)s | %(levelname)-8s | "
        "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
    ),
    "simple": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def _is_component(name: str) -> bool:
    return name.startswith(ROOT_LOGGER_NAME + ".")


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Setup a logger with environment variable configuration.

    An explicit ``level`` always wins. Without one, the level is taken from
    the environment only the first time a logger is configured, so a level
    chosen by the CLI is not reset by services created afterwards.

    Args:
        name: Logger name (defaults to "image-variants")
        level: Log level override (defaults to env var or INFO)
        format_type: Logging format ("structured" or "simple")
        stream: Handler stream (defaults to stderr)

    Returns:
        Configured logger instance

    Environment Variables:
        LOG_LEVEL: Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_FORMAT: Set format type ("structured" or "simple")
    """
    logger = logging.getLogger(name)

    if _is_component(name):
        setup_logger(ROOT_LOGGER_NAME, format_type=format_type, stream=stream)
        if level:
            logger.setLevel(_resolve_level(level))
        logger.propagate = True
        return logger

    if level or logger.level == logging.NOTSET:
        logger.setLevel(_resolve_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        env_format = os.getenv("LOG_FORMAT", format_type).lower()
        handler.setFormatter(
            logging.Formatter(
                _FORMATS.get(env_format, _FORMATS["simple"]),
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance with consistent configuration.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    return setup_logger(name)
