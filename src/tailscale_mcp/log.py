"""Process-wide logging setup.

Handlers are attached to the ``tailscale_mcp`` and ``uvicorn`` loggers once
at startup.  Everything goes to stderr because stdout carries the stdio
protocol; a log file can be added on top.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

_ROOT_LOGGERS = ("tailscale_mcp", "uvicorn", "uvicorn.error", "uvicorn.access")
_HANDLER_LOGGERS = ("tailscale_mcp", "uvicorn")
_CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_handlers: list[logging.Handler] = []


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def is_configured() -> bool:
    return bool(_handlers)


def configure_logging(
    level: int = logging.INFO,
    *,
    log_file: str | Path | None = None,
    fmt: Literal["console", "json"] = "console",
) -> None:
    """Attach stderr (and optional file) handlers.

    Calling it again while configured is a no-op; call
    :func:`shutdown_logging` first to reconfigure.
    """
    if _handlers:
        return

    formatter: logging.Formatter = JsonFormatter() if fmt == "json" else logging.Formatter(_CONSOLE_FORMAT)

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    _handlers.append(stream)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(JsonFormatter())
        _handlers.append(file_handler)

    for name in _ROOT_LOGGERS:
        logging.getLogger(name).setLevel(level)
    # uvicorn.error and uvicorn.access propagate into "uvicorn".
    for name in _HANDLER_LOGGERS:
        logger = logging.getLogger(name)
        for handler in _handlers:
            logger.addHandler(handler)
        logger.propagate = False


def shutdown_logging() -> None:
    """Flush, close and detach the handlers added by :func:`configure_logging`."""
    for name in _HANDLER_LOGGERS:
        logger = logging.getLogger(name)
        for handler in _handlers:
            logger.removeHandler(handler)
        logger.propagate = True
    for handler in _handlers:
        # The stream may already be closed (e.g. a replaced sys.stderr).
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
    _handlers.clear()
