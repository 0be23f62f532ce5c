"""
Eclairum Backend — Middleware Unit Tests
==========================================

What we test:
    ✅ Sliding window admits up to the limit, then reports Retry-After
    ✅ Old hits leave the window; quiet keys are forgotten
    ✅ Log records carry the current request ID
"""

import logging

from app.middleware.rate_limit import SlidingWindowLimiter
from app.middleware.request_id import RequestIDLogFilter, request_id_var


class TestSlidingWindowLimiter:

    def test_rejects_after_limit(self):
        limiter = SlidingWindowLimiter(limit=2, window=60)

        assert limiter.hit("1.2.3.4", now=100.0) is None
        assert limiter.hit("1.2.3.4", now=110.0) is None
        assert limiter.hit("1.2.3.4", now=120.0) == 41

    def test_keys_are_independent(self):
        limiter = SlidingWindowLimiter(limit=1, window=60)

        assert limiter.hit("a", now=0.0) is None
        assert limiter.hit("b", now=0.0) is None
        assert limiter.hit("a", now=1.0) is not None

    def test_hits_expire(self):
        limiter = SlidingWindowLimiter(limit=1, window=60)
        limiter.hit("a", now=0.0)

        assert limiter.hit("a", now=60.0) is None

    def test_rejected_hits_are_not_recorded(self):
        limiter = SlidingWindowLimiter(limit=1, window=10)
        limiter.hit("a", now=0.0)
        for t in range(1, 10):
            limiter.hit("a", now=float(t))

        assert limiter.hit("a", now=10.0) is None

    def test_sweep_forgets_quiet_keys(self):
        limiter = SlidingWindowLimiter(limit=5, window=10)
        limiter.hit("old", now=0.0)
        limiter.hit("new", now=15.0)

        assert limiter.sweep(now=15.0) == 1
        assert len(limiter) == 1

    def test_sweep_runs_automatically(self):
        limiter = SlidingWindowLimiter(limit=5, window=10, sweep_every=2)
        limiter.hit("old", now=0.0)
        limiter.hit("new", now=20.0)

        assert len(limiter) == 1


class TestRequestIDLogFilter:

    def _record(self):
        return logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)

    def test_outside_a_request(self):
        token = request_id_var.set("")
        try:
            record = self._record()
            RequestIDLogFilter().filter(record)
        finally:
            request_id_var.reset(token)

        assert record.request_id == "-"

    def test_inside_a_request(self):
        token = request_id_var.set("f00dcafe")
        try:
            record = self._record()
            assert RequestIDLogFilter().filter(record) is True
        finally:
            request_id_var.reset(token)

        assert record.request_id == "f00dcafe"
