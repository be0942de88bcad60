"""
Verein Backend - Request ID Middleware
=======================================

What:  Assigns an ID to each incoming request and returns it in X-Request-ID.
Why:   Ties every log line and every problem body of one request together.
How:   Uses the client's X-Request-ID when present, otherwise a short UUID.
       The ID is stored in a ContextVar so loggers and exception handlers
       (problem bodies carry `request_id`) can read it.
Who:   Applied to every request via Starlette middleware.
When:  First middleware in the chain.

Why Request IDs matter:
    A 412 or 409 reported by a client is only useful if it can be matched
    to the server side:
    - Problem bodies carry `request_id`, so a client can quote it
    - The access log line of the request carries it
    - A gateway that already assigned an X-Request-ID keeps its value, so
      the ID stays the same across hops

Why 8 characters:
    Short enough to read out of a log, long enough that collisions within
    one log window are unlikely. Client-supplied IDs are taken as they are.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests in one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a unique ID to each request for tracing.

    Behavior:
        1. Use the client's X-Request-ID header if present
        2. Otherwise generate the first 8 characters of a UUID4
        3. Store it in request_id_var and request.state.request_id
        4. Echo it in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
