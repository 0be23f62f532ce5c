"""
Eclairum Backend — Request ID Middleware
==========================================

What:  Gives every request a short correlation ID and returns it in X-Request-ID.
How:   Reuses the client's X-Request-ID header when present, otherwise generates
       one; stores it in a ContextVar so log records and error bodies can read it.
Who:   Applied to every request via Starlette middleware.

Every log line emitted while serving a request carries the same ID through
RequestIDLogFilter, including lines from services, repositories and the
UnitOfWork (transaction start/commit/rollback).
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDLogFilter(logging.Filter):
    """Adds `request_id` to every log record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("") or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Use the client's X-Request-ID header if sent, else a new short UUID
        2. Store in ContextVar (loggers, error handlers) and request.state (handlers)
        3. Echo it back in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response
