"""JSON log formatting and per-request access logging.

Every access log line carries the acting user (set on ``request.state`` by
the auth dependency) and the ids named in the route path, so a line for
``PUT /api/v1/leave/requests/{request_id}`` can be joined with the service
log lines for the same leave request.
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Route path parameter → log field
PATH_PARAM_FIELDS: dict[str, str] = {
    "request_id": "leave_request_id",
    "task_id": "task_id",
    "user_id": "target_user_id",
    "day": "day",
}

_EXTRA_KEYS = (
    "request_id",
    "user_id",
    "path",
    "method",
    "status_code",
    "latency_ms",
    *PATH_PARAM_FIELDS.values(),
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(
        level=level.upper(),
        handlers=[handler],
        force=True,
    )


def request_context(request: Request) -> dict[str, Any]:
    """Log fields describing *request*: correlation id, actor, route ids."""
    context: dict[str, Any] = {
        "request_id": getattr(request.state, "request_id", None),
        "path": request.url.path,
        "method": request.method,
        "user_id": getattr(request.state, "user_id", None),
    }
    for param, field in PATH_PARAM_FIELDS.items():
        value = request.path_params.get(param)
        if value is not None:
            context[field] = str(value)
    return context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, logger_name: str = "request") -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)
        self.security_logger = logging.getLogger("security")

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception(
                "unhandled_exception",
                extra={**request_context(request), "latency_ms": _elapsed_ms(start)},
            )
            raise

        context = request_context(request)
        self.logger.info(
            "request",
            extra={
                **context,
                "status_code": response.status_code,
                "latency_ms": _elapsed_ms(start),
            },
        )
        if response.status_code == 403 and context["user_id"]:
            self.security_logger.info(
                "forbidden", extra={**context, "status_code": response.status_code},
            )

        response.headers["X-Request-Id"] = request_id
        return response


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
