"""Structured JSON logger for bucketify.

Each record is written as one JSON line.  Besides the fixed keys, a record
may carry structured fields (``extra={"extra_fields": {...}}``) and a
classified failure (``extra={"failure": ...}``); the formatter flattens
both into the same object.

Typical output of a failed operation::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "ERROR",
     "logger": "bucketify.client", "message": "Error removing file: a",
     "op": "delete_image", "file_id": "a", "failure": "REMOVE_FILE",
     "failure_message": "Error removing file", "error": "404 not found",
     "stack_context": "..."}

Usage::

    from bucketify.observability import get_logger, log_failure

    log = get_logger("bucketify.image")
    log.debug("Image compressed", extra={"extra_fields": {"file_id": "abc"}})
    log_failure(log, "Error removing file: abc", failure, op="delete_image")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


def _failure_fields(failure: Any) -> dict[str, Any]:
    return {
        "failure": failure.kind.value,
        "failure_message": failure.message,
        "error": failure.error,
        "stack_context": failure.stack_context,
    }


class StructuredFormatter(logging.Formatter):
    """Render a record as a single-line JSON object.

    Keys, in order of precedence (later wins):

    * ``ts``, ``level``, ``logger``, ``message``
    * ``extra_fields`` supplied by the caller
    * ``failure``, ``failure_message``, ``error``, ``stack_context`` when
      the record carries a ``failure``
    * ``exception`` / ``stack_info`` when present on the record
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "extra_fields", None) or {})

        failure = getattr(record, "failure", None)
        if failure is not None:
            entry.update(_failure_fields(failure))

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


_configured_loggers: set[str] = set()


def get_logger(
    name: str = "bucketify",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Return the logger *name* with a JSON handler attached once.

    Parameters
    ----------
    name:
        Logger name, ``"bucketify"`` or one of its children.
    level:
        Minimum level, an ``int`` or a case-insensitive level name.
    stream:
        Handler stream, ``sys.stderr`` when omitted.

    Later calls with the same *name* return the logger unchanged, whatever
    *level* and *stream* they pass.
    """
    logger = logging.getLogger(name)
    if name in _configured_loggers:
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    _configured_loggers.add(name)
    return logger


def log_failure(
    logger: logging.Logger,
    message: str,
    failure: Any,
    **fields: Any,
) -> None:
    """Log *failure* at ``ERROR``, with *fields* as structured context."""
    logger.error(message, extra={"failure": failure, "extra_fields": fields})
