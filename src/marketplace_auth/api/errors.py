"""
marketplace_auth.api.errors

Exception handlers translating the error taxonomy into HTTP responses.

Responsibilities:
- Render `MarketplaceAuthError` subclasses as `{error, message}` with their status.
- Render rate-limit denials as 429 with a `retryAfter` hint and `Retry-After` header.
- Add the bearer challenge header on 401s.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_401_UNAUTHORIZED

from marketplace_auth.errors import MarketplaceAuthError, RateLimitedError


async def marketplace_auth_error_handler(
    request: Request, exc: MarketplaceAuthError
) -> JSONResponse:
    headers: dict[str, str] = {}
    if exc.status_code == HTTP_401_UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message},
        headers=headers,
    )


async def rate_limited_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message, "retryAfter": exc.retry_after},
        headers={"Retry-After": str(exc.retry_after)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    # Starlette picks the most specific handler along the exception's MRO.
    app.add_exception_handler(RateLimitedError, rate_limited_handler)  # type: ignore[arg-type]
    app.add_exception_handler(MarketplaceAuthError, marketplace_auth_error_handler)  # type: ignore[arg-type]
