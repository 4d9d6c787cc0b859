"""Logging helpers for sqlsplit.

Library modules log through :func:`get_logger`, so every record lands under the
``sqlsplit`` logger and an application can route or silence the library as a
unit. Nothing is configured on import.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, Final

from sqlsplit._serialization import encode_json
from sqlsplit.exceptions import ImproperConfigurationError

if TYPE_CHECKING:
    from logging import LogRecord
    from typing import TextIO

__all__ = ("FORMAT_STYLES", "StructuredFormatter", "configure_logging", "get_logger", "log_with_context")

ROOT_LOGGER_NAME: Final = "sqlsplit"
SIMPLE_FORMAT: Final = "%(levelname)s %(name)s: %(message)s"
FORMAT_STYLES: Final = ("structured", "simple")


class StructuredFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Fields attached with :func:`log_with_context` become top-level keys, so a
    split summary carries its character and statement counts as data.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "context", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the ``sqlsplit`` logger, or one nested under it.

    Args:
        name: Dotted logger name. Names outside the ``sqlsplit`` namespace are
            prefixed with it.

    Returns:
        The logger.
    """
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(level: str = "INFO", format_style: str = "structured", stream: TextIO | None = None) -> None:
    """Send library records to a stream.

    Handlers installed by an earlier call are replaced, and records stop
    propagating to the root logger so they are not printed twice.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format_style: ``"structured"`` for JSON lines, ``"simple"`` for text.
        stream: Destination, ``sys.stderr`` when omitted.

    Raises:
        ImproperConfigurationError: If the level or format style is unknown.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        msg = f"Unknown log level {level!r}"
        raise ImproperConfigurationError(msg)
    if format_style not in FORMAT_STYLES:
        msg = f"Unknown log format {format_style!r}, expected one of {', '.join(FORMAT_STYLES)}"
        raise ImproperConfigurationError(msg)

    logger = get_logger()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    formatter = StructuredFormatter() if format_style == "structured" else logging.Formatter(SIMPLE_FORMAT)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(numeric_level)
    logger.propagate = False


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log ``message`` with ``context`` attached as structured fields.

    The text format shows only the message; :class:`StructuredFormatter`
    merges the fields into the JSON object.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra={"context": context}, stacklevel=2)
