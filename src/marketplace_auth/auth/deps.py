"""
marketplace_auth.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `Principal`.
- Enforce per-route role requirements via a reusable dependency factory.
- Log token rejections with enough context to tell a bad secret from hostile input.
"""

from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from marketplace_auth.api.deps import codec_dep
from marketplace_auth.auth.authorization import authorize
from marketplace_auth.auth.jwt import CredentialCodec, peek_subject
from marketplace_auth.auth.models import Principal, Role, TokenKind, parse_roles
from marketplace_auth.errors import NotAuthenticatedError, TokenError
from marketplace_auth.observability.logging import get_logger

log = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def _resolve_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials | None,
    codec: CredentialCodec,
) -> Principal:
    if creds is None or not creds.credentials:
        raise NotAuthenticatedError("Missing bearer token")

    token = creds.credentials
    try:
        claims = codec.verify(token, expected_kind=TokenKind.access)
    except TokenError as e:
        # Never log the token itself; the unverified subject is only a diagnostic hint.
        log.warning(
            "bearer_token_rejected",
            reason=type(e).__name__,
            detail=e.message,
            subject=peek_subject(token),
            path=request.url.path,
        )
        raise

    return Principal(subject=claims.subject, user_id=claims.user_id, roles=claims.roles)


def get_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    codec: CredentialCodec = Depends(codec_dep),
) -> Principal:
    return _resolve_principal(request, creds, codec)


def get_optional_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    codec: CredentialCodec = Depends(codec_dep),
) -> Principal | None:
    try:
        return _resolve_principal(request, creds, codec)
    except (NotAuthenticatedError, TokenError):
        return None


def require_roles(*required: Role | str):
    required_set = parse_roles(required)

    def _dep(request: Request, principal: Principal = Depends(get_principal)) -> Principal:
        decision = authorize(principal.roles, required_set)
        if not decision.granted:
            log.warning(
                "access_denied",
                subject=principal.subject,
                reason=decision.reason,
                path=request.url.path,
            )
            decision.raise_for_denial()
        return principal

    return _dep


# --- Module Notes -----------------------------------------------------------
# Role checks use the token's role snapshot; a role change takes effect for a
# principal once their current access token expires.
