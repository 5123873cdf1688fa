"""Logging setup helpers for the finding-aid redirect server."""

from __future__ import annotations

import logging
import os
import sys

# Shared application logger used across modules.
log = logging.getLogger("findingaid_server")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

# Attributes every LogRecord carries; anything else arrived via ``extra``.
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Formatter appending ``extra`` request context as ``key=value`` pairs.

    ``log.error("Failed", extra={"path": "/1", "id": 1})`` renders as
    ``... - Failed [path=/1 id=1]``.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = [f"{k}={v}" for k, v in record.__dict__.items() if k not in _RECORD_ATTRS]
        if not context:
            return line

        head, sep, tail = line.partition("\n")
        return f"{head} [{' '.join(context)}]{sep}{tail}"


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Configure console logging with a sensible default format and level.

    Args:
        level: Optional log level (e.g. ``\"INFO\"`` or ``logging.DEBUG``). If
            omitted, the ``LOG_LEVEL`` environment variable is used and falls
            back to ``INFO`` when unset or invalid.

    Returns:
        logging.Logger: The configured application logger instance.
    """
    resolved_level = _coerce_level(level)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ContextFormatter(LOG_FORMAT))
        root.addHandler(handler)

    root.setLevel(resolved_level)

    # Backend drivers are chatty at DEBUG.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    log.setLevel(resolved_level)
    log.propagate = True
    log.debug("Logging configured at level %s", logging.getLevelName(resolved_level))
    return log


def _coerce_level(level: str | int | None) -> int:
    """Return a numeric logging level from user input or environment.

    Args:
        level: Explicit level value. When ``None``, ``LOG_LEVEL`` from the
            environment is used instead.

    Returns:
        int: Numeric logging level understood by the standard ``logging`` module.
    """
    candidate = level if level is not None else os.getenv("LOG_LEVEL", "INFO")

    if isinstance(candidate, int):
        return candidate

    if isinstance(candidate, str):
        numeric = logging.getLevelName(candidate.upper())
        if isinstance(numeric, int):
            return numeric

    return logging.INFO
