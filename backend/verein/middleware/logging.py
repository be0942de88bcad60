"""
Verein Backend - Request Logging Middleware
============================================

What:  One access-log line per HTTP request.
Why:   Shows traffic, latency and error rates without a tracing stack.
How:   Measures the time spent in the rest of the chain and logs method, path,
       status, duration, request ID and client IP.
Who:   Applied to every request via Starlette middleware.
When:  After RequestIDMiddleware (uses the request ID for correlation).

Log Level by Status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO.
    GET /health is not logged.

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, client IP, request ID
    ❌ Don't log: request bodies (names, e-mail addresses, addresses),
       headers

Why a dedicated "verein.access" logger:
    Access lines can be routed or silenced on their own, independent of the
    service loggers under verein.*. uvicorn's own access log is raised to
    WARNING in main.setup_logging(), so every request is logged once.

Why the extra= fields:
    The message is human-readable; the same values are attached as record
    attributes for a JSON formatter or log shipper.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from verein.middleware.request_id import request_id_var

logger = logging.getLogger("verein.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs structured information about each HTTP request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        # Probes run every few seconds
        if path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

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
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
