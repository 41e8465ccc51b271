"""Structured logging for tree-digest.

stdout carries the digest, so every record goes to stderr or to the file
named by ``--log-file``. Records are JSON lines tagged with the logger name.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

LOGGER_NAME = "tree_digest"

PROCESSORS: list[structlog.types.Processor] = [
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.JSONRenderer(),
]

_LOGGING_CONFIGURED = False


def _make_handler(filename: str | Path | None) -> logging.Handler:
    if filename:
        return logging.FileHandler(str(filename), encoding="utf-8")
    return logging.StreamHandler(sys.stderr)


def setup_logging(
    filename: str | Path | None = None,
    *,
    level: int = logging.INFO,
    force: bool = False,
) -> structlog.BoundLogger:
    """Route tree-digest logs to stderr or to a file.

    Args:
        filename: Log file to append to. None means stderr.
        level: Minimum stdlib level that gets through.
        force: Replace an earlier configuration, e.g. once the CLI knows the log file.

    Returns:
        The package logger.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if force or not _LOGGING_CONFIGURED:
        logging.basicConfig(level=level, handlers=[_make_handler(filename)], format="%(message)s", force=force)
        structlog.configure(
            processors=PROCESSORS,
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )
        _LOGGING_CONFIGURED = True

    return structlog.get_logger(LOGGER_NAME)


logger = setup_logging()
