"""Structured JSON logging shared by the API, the seeder and the engine services.

Services log event-style messages (``daily_metric_recomputed``,
``simulation_run_failed``) and pass their context as ``ctx_``-prefixed extras,
which the formatter groups under ``context``.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

SERVICE_NAME = "trainload-engine"
CONTEXT_PREFIX = "ctx_"
QUIET_LOGGERS = ("sqlalchemy.engine", "alembic", "uvicorn.access")

_request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    return _request_id_var.get()


def set_request_id(value: Optional[str]) -> contextvars.Token:
    return _request_id_var.set(value)


def reset_request_id(token: contextvars.Token) -> None:
    _request_id_var.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, tagged with the service, environment and request id."""

    def __init__(self, app_env: str = "dev") -> None:
        super().__init__()
        self.app_env = app_env

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "env": self.app_env,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        request_id = get_request_id()
        if request_id:
            log_entry["request_id"] = request_id
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        context = {k: v for k, v in record.__dict__.items() if k.startswith(CONTEXT_PREFIX)}
        if context:
            log_entry["context"] = context
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", app_env: str = "dev") -> None:
    """Install the JSON handler on the root logger once; later calls are no-ops."""
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(app_env))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
