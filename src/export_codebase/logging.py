from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

LOGGER_NAME = "export_codebase"

_PROCESSORS = [
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.JSONRenderer(),
]


def _stdlib_logger(filename: str | Path | None) -> logging.Logger:
    std = logging.getLogger(LOGGER_NAME)
    for handler in list(std.handlers):
        std.removeHandler(handler)
        handler.close()
    if filename:
        std.addHandler(logging.FileHandler(str(filename), encoding="utf-8"))
    else:
        std.addHandler(logging.StreamHandler(sys.stderr))
    std.setLevel(logging.INFO)
    std.propagate = False
    return std


def setup_logging(filename: str | Path | None = None, *, silent: bool = False) -> FilteringBoundLogger:
    """Set up structured logging for one export_codebase run.

    The returned logger is meant to be passed down explicitly to the core
    functions. Silent mode drops informational events; warnings and errors
    are always emitted.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        silent: Filter out events below WARNING.

    Returns:
        A structlog logger instance configured for the export_codebase module.
    """
    level = logging.WARNING if silent else logging.INFO
    return structlog.wrap_logger(
        _stdlib_logger(filename),
        processors=_PROCESSORS,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
    )
