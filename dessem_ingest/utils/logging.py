"""
Logging setup for DESSEM ingestion runs.

Readers, the orchestrator and the CLI log through the standard library with
the ingestion context passed as `extra=` fields: the file being parsed, the
source line, and counters such as records, entities and diagnostics.

Two renderings are available:
- console: one line per event, ingestion context appended as ``key=value``;
- json: one object per event, ingestion context first, for log pipelines.

Usage:
    from dessem_ingest.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=False)
    log = get_logger(__name__)
    log.info("[FILE START] entdados.dat", extra={"file_id": "entdados.dat"})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

# Context fields rendered first, in this order, when a log call carries them.
INGEST_CONTEXT = ("file_id", "format", "line", "records", "entities", "diagnostics")

_LOG_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    extra = {
        key: value
        for key, value in vars(record).items()
        if key not in _LOG_RECORD_ATTRS and not key.startswith("_")
    }
    ordered = {key: extra.pop(key) for key in INGEST_CONTEXT if key in extra}
    ordered.update(sorted(extra.items()))
    return ordered


def _json_formatter(record: logging.LogRecord) -> str:
    """One JSON object per event: level, logger, message, then the ingestion context."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(_context(record))
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


class ConsoleFormatter(logging.Formatter):
    """Plain text line followed by the ingestion context as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = _context(record)
        if not context:
            return text
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        head, sep, tail = text.partition("\n")
        return f"{head} | {pairs}{sep}{tail}"


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Install the root handler used by ingestion runs.

    Parameters
    ----------
    level : str
        Level name, case-insensitive.
    json_logs : bool
        Emit JSON objects instead of console lines.
    force : bool
        Replace an existing root configuration. With ``False`` an already
        configured root logger is left alone (library use).
    """
    if not force and logging.getLogger().handlers:
        return

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "()": ConsoleFormatter,
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                    "level": level.upper(),
                }
            },
            "root": {"handlers": ["default"], "level": level.upper()},
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["ConsoleFormatter", "INGEST_CONTEXT", "JsonFormatter", "configure_logging", "get_logger"]
