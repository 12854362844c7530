"""Logging configuration for CompeteAI.

Everything logs under the ``competeai`` logger. The indexer and the API
report failures as one line each:

    Index record failed: [ValueError] ... | Context: content_type=trial, content_id=NCT01234567
"""

from __future__ import annotations

import logging
import sys
from typing import Any

logger = logging.getLogger("competeai")

STANDARD_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "message": "%(message)s"}'
)


def setup_logging(
    level: int | str = logging.INFO,
    log_file: str | None = None,
    format_style: str = "standard",
) -> logging.Logger:
    """
    Configure the competeai logger.

    Calling it again replaces the previous handlers, so the CLI and the API
    lifespan can both apply their own level.

    Args:
        level: Level name or number; unknown names fall back to INFO
        log_file: Also append records to this file
        format_style: "standard" or "json"
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(
        JSON_FORMAT if format_style == "json" else STANDARD_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logger.handlers.clear()
    logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger, e.g. ``get_logger("indexer")`` -> ``competeai.indexer``."""
    return logger.getChild(name)


def _with_context(message: str, context: dict[str, Any] | None) -> str:
    if not context:
        return message
    pairs = ", ".join(f"{key}={value}" for key, value in context.items())
    return f"{message} | Context: {pairs}"


def log_failure(
    logger: logging.Logger,
    operation: str,
    error: Exception | str,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """
    Log a failed operation on one line.

    Args:
        logger: Logger to write to
        operation: What was being done, e.g. "Index record"
        error: The exception, or a plain message
        context: Extra key/value pairs appended to the line
        level: Logging level (default: ERROR)
    """
    kind = type(error).__name__ if isinstance(error, Exception) else "Error"
    logger.log(level, _with_context(f"{operation} failed: [{kind}] {error}", context))


def log_warning(
    logger: logging.Logger,
    operation: str,
    message: str,
    context: dict[str, Any] | None = None,
) -> None:
    """Log a recoverable problem, such as a rate-limited provider call."""
    logger.warning(_with_context(f"{operation}: {message}", context))


setup_logging(level=logging.WARNING)
