"""
marketplace_auth.observability.middleware

HTTP middleware for request-scoped logging context.

Responsibilities:
- Generate/propagate request IDs.
- Bind request metadata (path, method, client key) into structlog contextvars.
"""

from __future__ import annotations

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from marketplace_auth.ratelimit.deps import client_key_from_request


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Every request gets a request id, and every log line emitted while serving it
    carries the id, the path and the resolved client key.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
            client=client_key_from_request(request),
        )
        try:
            response: Response = await call_next(request)
        finally:
            # Context must not leak across requests served by the same task.
            structlog.contextvars.clear_contextvars()

        response.headers["x-request-id"] = request_id
        return response


# --- Module Notes -----------------------------------------------------------
# The client key uses the same proxy-aware derivation as the rate gate, so a
# denial can be correlated with the caller's other requests.
