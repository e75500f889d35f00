"""
Think Board Backend - Rate Limiting
====================================

What:  Sliding-window request limiter applied before routing.
How:   `RateLimiter` holds the counters; `RateLimitMiddleware` asks it about
       every request and answers 429 when the limit is hit. The app factory
       creates one limiter per app and hands it to the middleware, so two
       apps (e.g. two tests) never share counters.

Algorithm: Sliding Window Log
    1. Each bucket keeps the timestamps of its accepted requests
    2. On each request, drop timestamps older than the window
    3. If the remaining count >= limit, reject (the rejection is not recorded)
    4. Otherwise record the current timestamp and allow through

Buckets:
    scope=global  one bucket for the whole process (key "*")
    scope=client  one bucket per client IP
    Endpoints are not distinguished.

Multi-worker deployments keep one limiter per worker process.
"""

import logging
import math
import threading
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from thinkboard.exceptions import RateLimitExceededError
from thinkboard.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

GLOBAL_BUCKET = "*"


class RateLimiter:
    """
    Thread-safe sliding-window counter.

    Args:
        max_requests: Requests allowed per window per bucket
        window_seconds: Window length
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)

    def hit(self, key: str = GLOBAL_BUCKET) -> Optional[int]:
        """
        Record one request against `key`.

        Returns:
            None when the request is allowed, otherwise the whole number of
            seconds until the oldest request leaves the window (at least 1).
        """
        with self._lock:
            now = self._clock()
            window_start = now - self.window_seconds
            hits = self._hits[key]
            while hits and hits[0] <= window_start:
                hits.popleft()

            if len(hits) >= self.max_requests:
                return max(1, math.ceil(hits[0] + self.window_seconds - now))

            hits.append(now)
            if len(self._hits) > 1 and len(hits) == 1:
                self._evict_idle(window_start)
            return None

    def remaining(self, key: str = GLOBAL_BUCKET) -> int:
        """Requests still allowed in the current window for `key`."""
        with self._lock:
            window_start = self._clock() - self.window_seconds
            live = sum(1 for ts in self._hits.get(key, ()) if ts > window_start)
            return max(0, self.max_requests - live)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()

    def _evict_idle(self, window_start: float) -> None:
        # Caller holds the lock. Runs when a bucket starts from empty, which
        # bounds memory by the number of clients active within one window.
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("Evicted %d idle rate-limit buckets", len(idle))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects over-limit requests with 429 before they reach any route.

    Excluded paths:
        /health, /docs, /redoc, /openapi.json

    Response on rate limit:
        HTTP 429 with a Retry-After header and the standard error body
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app: ASGIApp, limiter: RateLimiter, per_client: bool = False):
        super().__init__(app)
        self.limiter = limiter
        self.per_client = per_client

    def _bucket_for(self, request: Request) -> str:
        if not self.per_client:
            return GLOBAL_BUCKET
        return request.client.host if request.client else "unknown"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        bucket = self._bucket_for(request)
        retry_after = self.limiter.hit(bucket)
        if retry_after is None:
            return await call_next(request)

        logger.warning(
            "Rate limit exceeded for bucket %s: %d requests in %ss window",
            bucket,
            self.limiter.max_requests,
            self.limiter.window_seconds,
        )
        # Middleware runs outside the exception handlers, so the error body
        # is built here from the same exception type the handlers use.
        exc = RateLimitExceededError(retry_after=retry_after)
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "details": exc.context,
                "request_id": request_id_var.get(""),
            },
            headers={"Retry-After": str(exc.retry_after)},
        )
