"""Logging setup for the sync server.

Console output is human readable. When a log directory is configured,
``combined.log`` receives every record and ``error.log`` only errors,
both as one JSON object per line.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from docsync.config import COMBINED_LOG, ERROR_LOG

# Attributes every LogRecord has; anything else came in through ``extra``.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

CONSOLE_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


def _record_extras(record: logging.LogRecord) -> dict:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, including ``extra`` metadata."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_record_extras(record))
        if record.exc_info:
            entry["stack"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Plain text line, followed by the ``extra`` metadata as indented JSON."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        extras = _record_extras(record)
        if extras:
            text += "\n" + json.dumps(extras, indent=2, default=str)
        return text


def configure_logging(level: str = "INFO", log_dir: str | Path | None = None) -> None:
    """Install console and file handlers on the ``docsync`` logger."""
    logger = logging.getLogger("docsync")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(ConsoleFormatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_dir:
        folder = Path(log_dir)
        folder.mkdir(parents=True, exist_ok=True)

        combined = logging.FileHandler(folder / COMBINED_LOG, encoding="utf-8")
        combined.setFormatter(JsonFormatter())
        logger.addHandler(combined)

        errors = logging.FileHandler(folder / ERROR_LOG, encoding="utf-8")
        errors.setLevel(logging.ERROR)
        errors.setFormatter(JsonFormatter())
        logger.addHandler(errors)

    logger.propagate = False
