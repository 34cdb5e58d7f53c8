"""Structured JSON logging for Scuba client calls.

Nothing is configured on import; applications call `setup_logging()` to get
JSON lines on stdout (and optionally a file) from the `scubaclient` logger.
Each facade call sets `request_id_var` so the per-request transport logs and
the call summary can be correlated.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

import httpx

from scubaclient.config.settings import Settings, get_settings

LOGGER_NAME = "scubaclient"

# Call-scoped context for correlating log entries
request_id_var: ContextVar[str] = ContextVar("scuba_request_id", default="")

_START_TIME_KEY = "scubaclient.start_time"

# Silent until the application configures logging
logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": request_id_var.get(""),
        }
        if hasattr(record, "audit_data"):
            log_entry.update(record.audit_data)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(settings: Settings | None = None) -> None:
    """Configure the package logger with JSON output."""
    settings = settings or get_settings()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter = JSONFormatter()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    if settings.log_file:
        file_handler = logging.FileHandler(settings.log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False


def get_logger(name: str | None = None) -> logging.Logger:
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:12]


class RequestTimer:
    """Context manager to measure call latency."""

    def __init__(self):
        self.start_time: float = 0
        self.elapsed_ms: float = 0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed_ms = round((time.perf_counter() - self.start_time) * 1000, 2)


async def log_request(request: httpx.Request) -> None:
    """httpx request hook: stamp the start time and log the outbound request."""
    request.extensions[_START_TIME_KEY] = time.perf_counter()
    get_logger("http").debug(
        "Outbound request",
        extra={"audit_data": {"method": request.method, "url": str(request.url)}},
    )


async def log_response(response: httpx.Response) -> None:
    """httpx response hook: log status and transport latency."""
    start = response.request.extensions.get(_START_TIME_KEY)
    duration_ms = round((time.perf_counter() - start) * 1000, 2) if start else None
    get_logger("http").debug(
        "Inbound response",
        extra={"audit_data": {
            "method": response.request.method,
            "url": str(response.request.url),
            "status": response.status_code,
            "duration_ms": duration_ms,
        }},
    )
