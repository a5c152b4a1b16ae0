"""Structured JSON logger for blockify.

Every log record is emitted as a single-line JSON object so that import
and upload activity can be shipped to a log pipeline without extra
parsing.

Typical structured output::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "INFO",
     "logger": "blockify.client", "message": "conversion complete",
     "op": "convert_html", "blocks": 12, "warnings": 0}

Usage::

    from blockify.observability import get_logger

    log = get_logger("blockify.image")
    log.warning("upload failed", extra={"extra_fields": {"block_id": "abc"}})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts`` (ISO-8601 UTC), ``level``, ``logger`` and
    ``message``.  Fields passed via ``extra={"extra_fields": {...}}`` are
    merged into the top-level object; exception and stack information is
    serialised when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str)


# One handler per logger name so that ``get_logger`` is idempotent.
_configured_loggers: set[str] = set()

# Overrides the default level without touching calling code.
LOG_LEVEL_ENV = "BLOCKIFY_LOG_LEVEL"


def get_logger(
    name: str = "blockify",
    *,
    level: int | str | None = None,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"blockify"``.  Converter, client,
        image and upload modules each use a ``"blockify.<area>"`` child.
    level:
        Minimum log level, as an ``int`` or a case-insensitive name.
        When omitted, ``$BLOCKIFY_LOG_LEVEL`` is used, falling back to
        ``INFO``.  INFO carries one summary line per conversion or
        upload; normalizer summaries are logged at DEBUG.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        A logger with a :class:`StructuredFormatter` handler attached.
        Repeated calls with the same *name* return the same logger and
        do not add duplicate handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        if level is None:
            level = os.environ.get(LOG_LEVEL_ENV) or logging.INFO
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        if not isinstance(resolved_level, int):
            resolved_level = logging.INFO
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
