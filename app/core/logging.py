"""Application and access logging setup.

``configure_logging`` installs a single stream handler on the root logger,
either human readable or JSON (``LOG_JSON=true``). ``install_access_logging``
adds an HTTP middleware that writes one line per request and echoes an
``X-Request-Id`` header for correlation.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from uuid import uuid4

from fastapi import FastAPI, Request

from app.core.config import Settings

ACCESS_LOGGER_NAME = "app.access"
SKIP_ACCESS_LOG_PATHS = frozenset({"/api/v1/health", "/api/v1/health/db"})


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "level": record.levelname,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def _get_formatter(log_json: bool) -> logging.Formatter:
    if log_json:
        return JsonFormatter()
    return logging.Formatter("[%(asctime)s] %(levelname)s in %(name)s: %(message)s")


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_chat_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_get_formatter(settings.log_json))
    handler._chat_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)

    # SQLAlchemy echoes every statement at INFO.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def install_access_logging(app: FastAPI) -> None:
    access_logger = logging.getLogger(ACCESS_LOGGER_NAME)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        if request.url.path in SKIP_ACCESS_LOG_PATHS:
            return await call_next(request)

        request_id = request.headers.get("X-Request-Id") or uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            access_logger.exception(
                "Unhandled error request_id=%s method=%s path=%s",
                request_id,
                request.method,
                request.url.path,
            )
            raise

        latency_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-Id"] = request_id
        access_logger.info(
            json.dumps(
                {
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "latency_ms": round(latency_ms, 2),
                    "client_ip": request.client.host if request.client else None,
                }
            )
        )
        return response
