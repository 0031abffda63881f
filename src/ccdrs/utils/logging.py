"""Centralized JSON formatter and handler setup for structured logging."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Union

# Attributes every LogRecord carries; anything else arrived via ``extra=``.
_RESERVED = {
    "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno",
    "funcName", "created", "msecs", "relativeCreated", "thread",
    "threadName", "processName", "process", "name", "message",
    "taskName",
}

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects.

    Merges any `extra=` kwargs (row counts, survey ids, output paths)
    directly into the payload.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        # extras never replace ts/level/logger/msg/exc
        for key, value in record.__dict__.items():
            if key not in _RESERVED and key not in payload:
                payload[key] = value

        # non-serializable extras fall back to str()
        return json.dumps(payload, default=str)


def configure_logging(
    level: Union[int, str] = logging.WARNING,
    json_output: bool = False,
) -> logging.Handler:
    """Install a single stderr handler on the ``ccdrs`` logger.

    Calling it again replaces the handler installed by the previous call,
    so the CLI can be invoked repeatedly in one process (tests).

    Args:
        level: Logging level name (``"INFO"``) or number.
        json_output: Use :class:`JsonFormatter` instead of plain text.

    Returns:
        The installed handler.

    Raises:
        ValueError: If *level* is an unknown level name.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level '{level}'")
        level = resolved

    root = logging.getLogger("ccdrs")
    for existing in list(root.handlers):
        if getattr(existing, "_ccdrs_handler", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        JsonFormatter() if json_output else logging.Formatter(_TEXT_FORMAT)
    )
    handler._ccdrs_handler = True
    root.addHandler(handler)
    root.setLevel(level)
    return handler
