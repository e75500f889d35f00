"""
Think Board Backend - Request Logging Middleware
=================================================

What:  One access-log line per request: method, path, status, duration,
       request id, authenticated user id (when known) and client IP.
When:  Inside RequestIDMiddleware, so the correlation id is already set.

Privacy:
    Request bodies carry passwords and note content, and the Authorization
    header carries the bearer token. Neither is ever logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from thinkboard.middleware.request_id import request_id_var

logger = logging.getLogger("thinkboard.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request at a level derived from its status:
    5xx → ERROR, 4xx → WARNING, otherwise INFO. Health checks are skipped.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == "/health":
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        status = response.status_code
        level = (
            logging.ERROR if status >= 500
            else logging.WARNING if status >= 400
            else logging.INFO
        )

        # Set by the request gate on protected routes only
        user = getattr(request.state, "user", None)
        user_id = str(user.id) if user is not None else "-"
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        logger.log(
            level,
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            request.url.path,
            status,
            elapsed_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "user_id": user_id,
                "status": status,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
        return response
