"""
Structured logging for Tubely.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides how records are rendered and which loggers are quieted.

- JSONFormatter: one JSON object per line, ``extra`` fields flattened in
  (``video_id``, ``user_id``, ``key``, tool ``diagnostics``...)
- StandardFormatter: plain text for local development
- setup_logging: installs one stdout handler on the root logger and routes
  uvicorn's loggers through it
- add_log_context: LoggerAdapter that stamps fixed fields on every record

Usage:
    setup_logging(log_level="INFO", json_logs=True)

    ctx_logger = add_log_context(logging.getLogger(__name__), video_id=video_id)
    ctx_logger.info("Stored video object", extra={"key": key})
"""

import json
import logging
import sys
import traceback

from datetime import datetime, timezone
from typing import Any, Dict


LOG_LEVEL_MAP: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Chatty libraries under the upload path: Mongo driver, boto3 transfer stack
THIRD_PARTY_LOGGERS = ("motor", "pymongo", "boto3", "botocore", "s3transfer", "urllib3", "multipart")

UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed through ``extra=`` (or a LoggerAdapter) on this record."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    Render records as single-line JSON.

    Example:
        {"ts":"2026-01-15T10:30:45.123456+00:00","level":"INFO",
         "logger":"tubely.services.upload_service","msg":"Stored video object",
         "video_id":"6f1c...","user_id":"user-1","key":"landscape/3f9c...e1.mp4"}

    Extra fields never overwrite the fixed keys.
    """

    def __init__(self, include_source_location: bool = False) -> None:
        super().__init__()
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in record_extras(record).items():
            entry.setdefault(key, value)

        if self.include_source_location:
            entry["src"] = f"{record.pathname}:{record.lineno} ({record.funcName})"

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["exc_type"] = exc_type.__name__
            entry["exc_msg"] = str(exc_value)
            entry["traceback"] = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))

        return json.dumps(entry, default=_json_default, ensure_ascii=False, separators=(",", ":"))


class StandardFormatter(logging.Formatter):
    """``[2026-01-15 10:30:45] INFO     tubely.main: message key=value ...``"""

    def __init__(self) -> None:
        super().__init__(
            fmt="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    third_party_level: str = "WARNING",
) -> None:
    """
    Install the stdout handler on the root logger. Called once from the lifespan.

    Args:
        log_level: Level for application loggers.
        json_logs: JSONFormatter when True, StandardFormatter otherwise.
        third_party_level: Level applied to THIRD_PARTY_LOGGERS.
    """
    level = LOG_LEVEL_MAP.get(log_level.upper(), logging.INFO)

    formatter: logging.Formatter = (
        JSONFormatter(include_source_location=level <= logging.DEBUG)
        if json_logs
        else StandardFormatter()
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
        uvicorn_logger.setLevel(level)

    quiet_level = LOG_LEVEL_MAP.get(third_party_level.upper(), logging.WARNING)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    logging.getLogger(__name__).info(
        "Logging configured", extra={"level": logging.getLevelName(level), "json": json_logs}
    )


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges its context into each call's ``extra`` instead
    of replacing it. Per-call values win over the adapter's.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def add_log_context(logger: logging.Logger, **context: Any) -> ContextLoggerAdapter:
    """
    Wrap ``logger`` so every record carries ``context``.

    Example:
        ctx_logger = add_log_context(logger, video_id="6f1c...", user_id="user-1")
        ctx_logger.info("Staged upload", extra={"bytes": 1048576})
    """
    return ContextLoggerAdapter(logger, context)


__all__ = [
    "JSONFormatter",
    "StandardFormatter",
    "ContextLoggerAdapter",
    "setup_logging",
    "add_log_context",
    "record_extras",
    "LOG_LEVEL_MAP",
]
