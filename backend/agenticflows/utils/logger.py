"""Logging setup — text or JSON lines, tagged with workflow/node/run ids."""

from __future__ import annotations

import contextlib
import contextvars
import logging
import sys
from typing import Any, Iterator

from pythonjsonlogger import jsonlogger

# Context variables for correlation
ctx_workflow_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("workflow_id", default=None)
ctx_node_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("node_id", default=None)
ctx_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("run_id", default=None)

_CORRELATION_VARS = (
    ("workflow_id", ctx_workflow_id),
    ("node_id", ctx_node_id),
    ("run_id", ctx_run_id),
)


def correlation_ids() -> dict[str, str]:
    """The correlation ids set in the current context, unset ones omitted."""
    ids: dict[str, str] = {}
    for key, var in _CORRELATION_VARS:
        value = var.get()
        if value:
            ids[key] = value
    return ids


@contextlib.contextmanager
def bind(var: contextvars.ContextVar, value: Any) -> Iterator[None]:
    """Set *var* for the duration of the block."""
    token = var.set(value)
    try:
        yield
    finally:
        var.reset(token)


class CorrelationJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record.update(correlation_ids())


class CorrelationTextFormatter(logging.Formatter):
    """Plain text with a ``[workflow_id=... node_id=...]`` suffix when ids are set."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        ids = correlation_ids()
        if not ids:
            return line
        return f"{line} [{' '.join(f'{k}={v}' for k, v in ids.items())}]"


def setup_logger(log_format: str = "text", log_level: str = "INFO"):
    """Configure the root logger."""
    root_logger = logging.getLogger()

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if log_format.lower() == "json":
        handler.setFormatter(CorrelationJsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        ))
    else:
        handler.setFormatter(CorrelationTextFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Silence third-party noise
    for name in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
