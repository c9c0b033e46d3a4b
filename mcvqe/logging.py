"""Logging utilities for MC-VQE.

Provides cached package loggers, global level control, and the integer
verbosity gate used by the MC-VQE driver (the ``log-level`` option).
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

# Default logging level
_DEFAULT_LEVEL = logging.WARNING

_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create a logger for the given module name.

    Loggers are cached to avoid duplicate handlers. The logger name should
    typically be `__name__` from the calling module.

    Args:
        name: Logger name (typically `__name__`). If None, returns the
            package logger.

    Returns:
        Configured logger instance.

    Example:
        >>> from mcvqe.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Building AIEM Hamiltonian")
    """
    if name is None:
        name = "mcvqe"

    logger_name = name if name == "mcvqe" or name.startswith("mcvqe.") else f"mcvqe.{name}"

    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)

    # Only configure if not already configured (avoid duplicate handlers)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)

        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(_DEFAULT_LEVEL)
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))

        logger.addHandler(handler)
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return int(level)


def set_log_level(level: int | str) -> None:
    """Set the logging level for all MC-VQE loggers.

    Args:
        level: Logging level (logging.DEBUG, logging.INFO, etc.) or string
            ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL').
    """
    level = _coerce_level(level)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    global _DEFAULT_LEVEL
    _DEFAULT_LEVEL = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[object] = None,
) -> None:
    """Configure logging for MC-VQE.

    Replaces the handlers of every cached logger with a single stream
    handler. It should typically be called once at application startup.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, uses default.
        stream: Output stream (default: sys.stderr).
    """
    level = _coerce_level(level)

    if stream is None:
        stream = sys.stderr

    formatter = logging.Formatter(format_string or _DEFAULT_FORMAT)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        handler = logging.StreamHandler(stream)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    global _DEFAULT_LEVEL
    _DEFAULT_LEVEL = level


@contextmanager
def verbose_logging(logger: logging.Logger, level: int = logging.INFO) -> Iterator[None]:
    """Temporarily lower a logger (and its handlers) to ``level``.

    Levels that are already more verbose than ``level`` are left alone.
    The previous levels are restored on exit.
    """
    targets = [logger, *logger.handlers]
    saved = [(target, target.level) for target in targets]
    for target, old in saved:
        if old == logging.NOTSET or old > level:
            target.setLevel(level)
    try:
        yield
    finally:
        for target, old in saved:
            target.setLevel(old)


def log_control(
    logger: logging.Logger,
    message: str,
    level: int,
    threshold: int,
) -> bool:
    """Emit ``message`` at INFO when the verbosity ``threshold`` reaches ``level``.

    This is the integer verbosity gate behind the ``log-level`` option:
    1 reports phase milestones and timings, 2 per-state energies and
    iteration averages, 3 per-state circuit listings, 4 executor detail.

    Returns:
        True if the message was emitted.
    """
    if threshold < level:
        return False
    with verbose_logging(logger):
        logger.info(message)
    return True


__all__ = [
    "get_logger",
    "set_log_level",
    "configure_logging",
    "verbose_logging",
    "log_control",
]
