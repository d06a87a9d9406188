"""
Records Service: Request ID Middleware
========================================

What:  Assigns an ID to each incoming request and returns it in the response.
How:   Uses the client's X-Request-ID when sent, otherwise a short UUID;
       stores it in a ContextVar, on request.state, and as a tag on the
       Sentry scope so reported errors can be matched to log lines.
When:  Runs before request logging and metrics.
"""

import uuid
from contextvars import ContextVar

import sentry_sdk
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: each in-flight request sees its own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to the request, its logs, and its error reports."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid
        # No-op when Sentry is not initialised
        sentry_sdk.set_tag("request_id", rid)

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
