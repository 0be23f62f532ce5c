"""
Eclairum Backend — Request Logging Middleware
===============================================

What:  One access log line per HTTP request, with status and duration.
How:   Measures time around call_next and logs at a level chosen by status code.
Who:   Applied to every request via Starlette middleware.
When:  Inside RequestIDMiddleware; the request ID reaches the line through RequestIDLogFilter.

Logged fields: method, path, status, duration_ms, request_id, client_ip.
Never logged: request bodies (quiz source text may contain personal data).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("eclairum.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Level by status:
        5xx → ERROR
        4xx → WARNING
        otherwise INFO

    Health checks are skipped; probes hit them every few seconds.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms from %s",
            method,
            path,
            status,
            duration_ms,
            client_ip,
            extra={
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
