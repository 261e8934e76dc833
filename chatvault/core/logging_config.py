"""Logging & OpenTelemetry setup.

Provides:
- JSON-lines log file (``<APP_LOG_DIR or project_root/logs>/app.jsonl``)
  carrying trace/span ids of the current OpenTelemetry span
- Console output with a plain text format
- Tracer provider plus FastAPI and HTTPX instrumentation hooks
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider

_STANDARD_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module", "lineno",
    "funcName", "created", "msecs", "relativeCreated", "thread", "threadName", "processName",
    "process", "exc_info", "exc_text", "stack_info", "taskName", "message",
}


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process_id": os.getpid(),
        }

        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                entry["trace_id"] = f"{ctx.trace_id:032x}"
                entry["span_id"] = f"{ctx.span_id:016x}"

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for k, v in record.__dict__.items():
            if k not in _STANDARD_ATTRS and not k.startswith("_"):
                entry[f"extra_{k}"] = v
        return json.dumps(entry, default=str)


def _resolve_log_dir(log_dir: Optional[str]) -> Path:
    if log_dir:
        return Path(log_dir)
    # chatvault/core/logging_config.py -> project root is 2 levels up
    return Path(__file__).resolve().parents[2] / "logs"


def setup_logging(
    service_name: str,
    service_version: str,
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    environment: str = "production",
) -> Path:
    """Install JSON file + console handlers on the root logger and a tracer provider.

    Returns:
        Path of the JSON log file
    """
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        level = logging.INFO

    logs_dir = _resolve_log_dir(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / "app.jsonl"

    root = logging.getLogger()
    for h in root.handlers[:]:
        root.removeHandler(h)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(JSONFormatter())
    file_handler.setLevel(level)
    root.addHandler(file_handler)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    console.setLevel(level if environment.lower() in {"dev", "development"} else logging.WARNING)
    root.addHandler(console)
    root.setLevel(level)

    logging.getLogger("httpx").setLevel(logging.WARNING)

    resource = Resource.create({
        SERVICE_NAME: service_name,
        SERVICE_VERSION: service_version,
        "environment": environment,
    })
    trace.set_tracer_provider(TracerProvider(resource=resource))
    return log_file


def instrument_app(app) -> None:  # noqa: ANN001
    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()
