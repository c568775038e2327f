from __future__ import annotations

import contextvars
import json
import logging
import os
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

# Set per request so summarizer/llm/history lines can be correlated with the access line
_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)

SERVICE_LOGGERS = ("app", "app.access", "app.summarizer", "app.llm", "app.history")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = _request_id.get()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        data: Dict[str, Any] = {
            "level": record.levelname,
            "ts": int(time.time() * 1000),
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            data["request_id"] = request_id
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            data.update(fields)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def _resolve_level(default: int = logging.INFO) -> int:
    env_level = (os.getenv("NOTES_LOG_LEVEL") or "").strip()
    if not env_level:
        return default
    if env_level.isdigit():
        return int(env_level)
    lvl = logging.getLevelName(env_level.upper())
    return lvl if isinstance(lvl, int) else default


def setup_logging(level: int | None = None) -> None:
    resolved_level = level if level is not None else _resolve_level()
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(resolved_level)
    for name in SERVICE_LOGGERS:
        logging.getLogger(name).setLevel(resolved_level)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags each request with a short id, echoes it as X-Request-ID, logs one access line."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        token = _request_id.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)
        response.headers["X-Request-ID"] = request_id
        logging.getLogger("app.access").info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "request_id": request_id,
                "fields": {
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": int((time.perf_counter() - start) * 1000),
                },
            },
        )
        return response


def install_app_logging(app: FastAPI) -> None:
    app.add_middleware(RequestContextMiddleware)
