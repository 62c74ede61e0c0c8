"""
Request logging.

Every request gets an id (taken from ``X-Request-ID`` when the caller
sends one) that is echoed back and attached to all log records emitted
while the request is handled. ``setup_structured_logging`` switches the
root logger to one JSON object per line.
"""

import json
import logging
import re
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = {"/api/health"}
_SITE_PATH = re.compile(r"^/api/cms/(?P<site_id>[^/]+)")

# Attributes copied from ``extra=`` into the JSON line
RECORD_FIELDS = ("site_id", "method", "path", "status_code", "duration_ms", "client_ip")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", ""):
            record.request_id = request_id_var.get()
        return True


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", ""),
        }
        entry.update({key: getattr(record, key) for key in RECORD_FIELDS if hasattr(record, key)})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def site_id_from_path(path: str) -> str | None:
    match = _SITE_PATH.match(path)
    return match.group("site_id") if match else None


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """One access log line per request, at a level that follows the status code."""

    def __init__(self, app, logger_name: str = "sitecms.access"):
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._access_log(request, 500, started, request_id)
            raise
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        self._access_log(request, response.status_code, started, request_id)
        return response

    def _access_log(self, request: Request, status_code: int, started: float, request_id: str = "") -> None:
        path = request.url.path
        if path in QUIET_PATHS and status_code < 500:
            return

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        extra = {
            "method": request.method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "client_ip": client_ip(request),
        }
        site_id = site_id_from_path(path)
        if site_id:
            extra["site_id"] = site_id
        if request_id:
            extra["request_id"] = request_id

        self.logger.log(
            level_for_status(status_code), f"{request.method} {path} {status_code} ({duration_ms}ms)", extra=extra
        )


def setup_structured_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """
    Route all logging through one stderr handler.

    Args:
        log_level: Level for the root and ``sitecms`` loggers
        json_format: JSON lines when True, a plain text layout otherwise
    """
    level = logging.getLevelName(log_level.upper())

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("sitecms").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
