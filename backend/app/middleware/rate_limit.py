"""
Eclairum Backend — Rate Limiting Middleware
=============================================

What:  Per-IP sliding window rate limiter.
How:   Keeps each IP's request timestamps in memory; requests beyond
       RATE_LIMIT_REQUESTS within RATE_LIMIT_WINDOW seconds get 429.
Who:   Applied to every request via Starlette middleware.
When:  Outermost application middleware, so abuse is rejected before any work.

Algorithm: Sliding Window Log
    1. Drop the IP's timestamps older than the window
    2. If the remaining count >= limit, reject with 429 + Retry-After
    3. Otherwise record the current timestamp and continue

    Quiz creation triggers a paid LLM call per request, so this also caps
    Gemini spend per client.

Scope:
    Single-process only; every uvicorn worker keeps its own counters.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import RateLimitExceededError
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    """
    Counts hits per key over the last `window` seconds.

    hit() returns None when the hit is allowed (and records it), or the
    number of seconds until the oldest hit leaves the window.
    """

    def __init__(self, limit: int, window: int, sweep_every: int = 1000):
        self.limit = limit
        self.window = window
        self._sweep_every = sweep_every
        self._hits_since_sweep = 0
        self._log: Dict[str, Deque[float]] = defaultdict(deque)

    def hit(self, key: str, now: Optional[float] = None) -> Optional[int]:
        now = time.time() if now is None else now
        timestamps = self._log[key]
        while timestamps and timestamps[0] <= now - self.window:
            timestamps.popleft()

        if len(timestamps) >= self.limit:
            return int(timestamps[0] + self.window - now) + 1

        timestamps.append(now)
        self._hits_since_sweep += 1
        if self._hits_since_sweep >= self._sweep_every:
            self.sweep(now)
        return None

    def sweep(self, now: float) -> int:
        """Forget keys with no hit inside the window. Returns how many went."""
        stale = [
            key for key, timestamps in self._log.items()
            if not timestamps or timestamps[-1] <= now - self.window
        ]
        for key in stale:
            del self._log[key]
        self._hits_since_sweep = 0
        if stale:
            logger.debug("Forgot %d inactive rate limit keys", len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self._log)


class RateLimitMiddleware(BaseHTTPMiddleware):
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self.limiter = SlidingWindowLimiter(
            limit=settings.rate_limit_requests,
            window=settings.rate_limit_window,
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        retry_after = self.limiter.hit(client_ip)
        if retry_after is None:
            return await call_next(request)

        logger.warning(
            "Rate limit exceeded for IP %s: %d requests in %ds window",
            client_ip,
            self.limiter.limit,
            self.limiter.window,
        )

        # Middleware runs outside FastAPI's exception handlers, so the
        # error body is built here in the same shape
        exc = RateLimitExceededError(retry_after=retry_after)
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "details": exc.context,
                "request_id": request_id_var.get("") or None,
            },
            headers={"Retry-After": str(retry_after)},
        )
