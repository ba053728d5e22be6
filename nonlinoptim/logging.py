"""Logging for the minimizers.

Every module logs through ``get_logger(__name__)``, which places it under the
``nonlinoptim.`` namespace with its own stderr handler. Nothing is printed
below WARNING by default; iteration traces are DEBUG and run outcomes INFO.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

_PACKAGE = "nonlinoptim"
_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Current settings, applied to cached loggers and to loggers created later.
_settings: dict[str, object] = {
    "level": logging.WARNING,
    "format": _DEFAULT_FORMAT,
    "stream": None,
}
_loggers: dict[str, logging.Logger] = {}


def _as_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def _attach_handler(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    stream = _settings["stream"] or sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setLevel(_settings["level"])
    handler.setFormatter(logging.Formatter(_settings["format"]))
    logger.addHandler(handler)
    logger.setLevel(_settings["level"])


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the cached package logger for ``name``.

    Args:
        name: Module name, usually ``__name__``. Names outside the package
            are prefixed with ``nonlinoptim.``; ``None`` gives the package
            logger itself.

    Example:
        >>> from nonlinoptim.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("iteration %d: error=%.3e", 100, 2.5e-7)
    """
    if name is None:
        name = _PACKAGE
    if name != _PACKAGE and not name.startswith(_PACKAGE + "."):
        name = f"{_PACKAGE}.{name}"

    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    if not logger.handlers:
        _attach_handler(logger)
        logger.propagate = False
    _loggers[name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Change the level of every package logger, keeping handlers and format.

    Use ``"DEBUG"`` to trace the stagnation samples of a run and ``"INFO"``
    to see only how each run ended and when a fallback solve was needed.
    """
    level = _as_level(level)
    _settings["level"] = level
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Route all package logging to ``stream`` with the given level and format.

    The settings also apply to loggers created after the call.

    Args:
        level: Level name or number (default: WARNING).
        format_string: ``logging.Formatter`` format; None restores the default.
        stream: Text stream to write to; None means ``sys.stderr``.
    """
    _settings["level"] = _as_level(level)
    _settings["format"] = format_string or _DEFAULT_FORMAT
    _settings["stream"] = stream
    for logger in _loggers.values():
        _attach_handler(logger)


__all__ = ["get_logger", "set_log_level", "configure_logging"]
