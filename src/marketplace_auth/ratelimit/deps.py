"""
marketplace_auth.ratelimit.deps

FastAPI dependencies for the rate gate.

Responsibilities:
- Derive a client key that survives a reverse proxy.
- Consume from the named profile's gate and raise `RateLimitedError` on denial.
"""

from __future__ import annotations

from fastapi import Request

from marketplace_auth.errors import RateLimitedError
from marketplace_auth.observability.logging import get_logger
from marketplace_auth.ratelimit.gate import RateGate

log = get_logger(__name__)


def client_key_from_request(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(profile_name: str):
    def _dep(request: Request) -> None:
        # Gates are created on app startup in `marketplace_auth.api.app.create_app`.
        gate: RateGate = request.app.state.rate_gates[profile_name]
        client_key = client_key_from_request(request)
        decision = gate.try_consume(client_key)
        if not decision.allowed:
            log.warning(
                "rate_limited",
                profile=profile_name,
                client=client_key,
                path=request.url.path,
                retry_after=decision.retry_after,
            )
            raise RateLimitedError(retry_after=decision.retry_after)

    return _dep


# --- Module Notes -----------------------------------------------------------
# Attach with `dependencies=[Depends(rate_limit("auth"))]` so the gate runs before
# any credential parsing or DB access.
