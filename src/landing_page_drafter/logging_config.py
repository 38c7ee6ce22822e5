from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator

from google.cloud import logging as cloud_logging

trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
page_key_var: ContextVar[str | None] = ContextVar("page_key", default=None)

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, in the shape Cloud Logging parses from stdout."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
        }

        trace_id = trace_id_var.get()
        if trace_id:
            entry["logging.googleapis.com/trace"] = trace_id
        page_key = page_key_var.get()
        if page_key:
            entry["page_key"] = page_key

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(
    *,
    environment: str = "dev",
    project_id: str | None = None,
    use_cloud_logging: bool = True,
) -> None:
    """Configure logging for the CLI and the API.

    Args:
        environment: Environment name (dev, staging, prod); dev logs at DEBUG
        project_id: GCP project ID for Cloud Logging
        use_cloud_logging: Send records through the Cloud Logging client outside dev
    """
    log_level = logging.DEBUG if environment == "dev" else logging.INFO

    if use_cloud_logging and project_id and environment != "dev":
        client = cloud_logging.Client(project=project_id)
        client.setup_logging(log_level=log_level)
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logging.basicConfig(level=log_level, handlers=[handler], force=True)

    for noisy in ("google", "urllib3", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def parse_trace_header(header: str | None, project_id: str | None = None) -> str | None:
    """Extract the trace from an ``X-Cloud-Trace-Context: TRACE_ID/SPAN_ID;o=1`` header."""
    if not header:
        return None
    trace = header.split("/", 1)[0].strip()
    if not trace:
        return None
    if project_id:
        return f"projects/{project_id}/traces/{trace}"
    return trace


def set_trace_id(trace_id: str | None) -> None:
    trace_id_var.set(trace_id)


def get_trace_id() -> str | None:
    return trace_id_var.get()


@contextmanager
def bind_page(page_key: str) -> Iterator[None]:
    """Tag every record logged inside the block with ``page_key``."""
    token = page_key_var.set(page_key)
    try:
        yield
    finally:
        page_key_var.reset(token)


__all__ = [
    "StructuredFormatter",
    "bind_page",
    "get_trace_id",
    "parse_trace_header",
    "set_trace_id",
    "setup_logging",
]
