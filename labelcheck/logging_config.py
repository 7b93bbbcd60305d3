"""
Logging for labelcheck.

Each record carries the request's correlation id and, once a handler has
bound them, the analysis and session the request concerns. That is enough to
follow one label through its category selection and revisions in the logs.
Production writes one JSON object per line; development writes plain lines.

All modules should use:
    from labelcheck.logging_config import get_logger
    logger = get_logger(__name__)
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from labelcheck.config import get, is_production

ROOT_LOGGER_NAME = "labelcheck"
CORRELATION_HEADER = "x-correlation-id"

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_analysis_id: ContextVar[Optional[str]] = ContextVar("analysis_id", default=None)
_session_id: ContextVar[Optional[str]] = ContextVar("session_id", default=None)


def get_correlation_id() -> str:
    return _correlation_id.get()


def set_correlation_id(cid: str) -> None:
    _correlation_id.set(cid)


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def bind_request_context(analysis_id: Optional[str] = None, session_id: Optional[str] = None) -> None:
    """Tag the rest of this request's log records with an analysis and/or session."""
    if analysis_id is not None:
        _analysis_id.set(analysis_id)
    if session_id is not None:
        _session_id.set(session_id)


def clear_request_context() -> None:
    _analysis_id.set(None)
    _session_id.set(None)


class RequestContextFilter(logging.Filter):
    """Copies the correlation id and bound analysis/session onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get()
        record.analysis_id = _analysis_id.get()
        record.session_id = _session_id.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shipping."""

    def __init__(self, service: str = ROOT_LOGGER_NAME):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr, key in (
            ("correlation_id", "correlationId"),
            ("analysis_id", "analysisId"),
            ("session_id", "sessionId"),
        ):
            value = getattr(record, attr, None)
            if value:
                entry[key] = value

        data = getattr(record, "data", None)
        if isinstance(data, dict) and data:
            entry["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            entry["stackTrace"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Readable single-line output for local development."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        scope = " ".join(
            f"{label}={value}"
            for label, value in (
                ("cid", (getattr(record, "correlation_id", "") or "")[:8]),
                ("analysis", getattr(record, "analysis_id", None)),
                ("session", getattr(record, "session_id", None)),
            )
            if value
        )
        line = f"{timestamp} {record.levelname:<7} {record.name}"
        if scope:
            line += f" [{scope}]"
        line += f" {record.getMessage()}"

        data = getattr(record, "data", None)
        if isinstance(data, dict) and data:
            line += f" {json.dumps(data, default=str)}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


_configured = False


def configure_logging(
    log_level: str = "INFO",
    service: str = ROOT_LOGGER_NAME,
    log_to_file: bool = False,
    retention_hours: int = 48,
) -> None:
    """
    Install handlers on the labelcheck logger. Safe to call again; the
    previous handlers are replaced.

    Args:
        log_level: Minimum level to emit
        service: Service name written into JSON entries
        log_to_file: Also write JSON lines to [logging] dir, rotated hourly
        retention_hours: Rotated files kept before the oldest is dropped
    """
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(JsonFormatter(service) if is_production() else ConsoleFormatter())
    handlers: list[logging.Handler] = [console]

    if log_to_file:
        log_dir = Path(get("logging", "dir"))
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_dir / f"{service}.log",
            when="h",
            backupCount=retention_hours,
            encoding="utf-8",
        )
        file_handler.setFormatter(JsonFormatter(service))
        handlers.append(file_handler)

    for handler in handlers:
        handler.addFilter(RequestContextFilter())
        root.addHandler(handler)

    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.propagate = False
    _configured = True


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Return a logger under the labelcheck namespace."""
    if not _configured:
        configure_logging()
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
