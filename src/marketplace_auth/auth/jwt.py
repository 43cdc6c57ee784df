"""
marketplace_auth.auth.jwt

Credential codec: JWT issuing and verification.

Responsibilities:
- Issue signed access tokens (with a role snapshot) and refresh tokens.
- Verify tokens: signature/shape first, then expiry against an injectable clock.
- Project verified claims (subject, role snapshot, expiry).

Note:
- Production systems often prefer RS256 + JWKS; this service uses HS256 with a shared secret.
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import jwt
from jwt import InvalidTokenError

from marketplace_auth.auth.models import Role, TokenClaims, TokenKind, parse_roles
from marketplace_auth.errors import InvalidSignatureError, TokenExpiredError
from marketplace_auth.settings import Settings
from marketplace_auth.timeutil import Clock, utcnow

_REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "sub", "typ", "jti"]


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
        )


class TokenSubject(Protocol):
    """What the codec needs to know about a principal to issue a token."""

    @property
    def id(self) -> uuid.UUID: ...

    @property
    def username(self) -> str: ...

    @property
    def role_set(self) -> frozenset[Role]: ...


class CredentialCodec:
    def __init__(self, cfg: JwtConfig, *, clock: Clock = utcnow) -> None:
        self._cfg = cfg
        self._clock = clock

    def issue(self, principal: TokenSubject, kind: TokenKind, ttl: timedelta) -> str:
        now = self._clock()
        iat = int(now.timestamp())
        # Keep payload minimal and stable; downstream services should avoid parsing arbitrary fields.
        payload: dict[str, Any] = {
            "iss": self._cfg.issuer,
            "aud": self._cfg.audience,
            "sub": principal.username,
            "uid": str(principal.id),
            "typ": kind.value,
            "iat": iat,
            "exp": iat + int(ttl.total_seconds()),
            # Refresh token strings double as ledger keys, so their uniqueness comes from here.
            "jti": secrets.token_urlsafe(32 if kind is TokenKind.refresh else 16),
        }
        if kind is TokenKind.access:
            payload["roles"] = sorted(r.value for r in principal.role_set)
        return jwt.encode(payload, self._cfg.secret, algorithm=self._cfg.alg)

    def verify(self, token: str, *, expected_kind: TokenKind | None = None) -> TokenClaims:
        try:
            # Expiry is checked below against our own clock, after the signature holds.
            payload = jwt.decode(
                token,
                self._cfg.secret,
                algorithms=[self._cfg.alg],
                issuer=self._cfg.issuer,
                audience=self._cfg.audience,
                options={
                    "require": _REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except InvalidTokenError as e:
            raise InvalidSignatureError(f"Invalid token: {e}") from e

        claims = _claims_from_payload(payload)
        if expected_kind is not None and claims.kind is not expected_kind:
            raise InvalidSignatureError(f"Invalid token: expected a {expected_kind.value} token")
        if not claims.expires_at > self._clock():
            raise TokenExpiredError()
        return claims

    def extract_subject(self, token: str) -> str:
        return self.verify(token).subject

    def extract_role_snapshot(self, token: str) -> frozenset[Role]:
        return self.verify(token).roles

    def extract_expiry(self, token: str) -> datetime:
        return self.verify(token).expires_at


def _claims_from_payload(payload: dict[str, Any]) -> TokenClaims:
    try:
        kind = TokenKind(payload["typ"])
        issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=UTC)
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=UTC)
        uid = payload.get("uid")
        user_id = uuid.UUID(str(uid)) if uid else None
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidSignatureError("Invalid token: malformed claims") from e

    roles_raw = payload.get("roles", [])
    if not isinstance(roles_raw, list):
        raise InvalidSignatureError("Invalid token: malformed roles claim")

    subject = str(payload.get("sub", ""))
    if not subject:
        raise InvalidSignatureError("Invalid token: empty subject")

    return TokenClaims(
        subject=subject,
        user_id=user_id,
        kind=kind,
        roles=parse_roles(roles_raw),
        issued_at=issued_at,
        expires_at=expires_at,
        token_id=str(payload["jti"]),
    )


def peek_subject(token: str) -> str | None:
    """
    Best-effort, UNVERIFIED subject read used only to enrich rejection logs.
    Never use the result for an access decision.
    """
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except InvalidTokenError:
        return None
    sub = payload.get("sub") if isinstance(payload, dict) else None
    return str(sub) if sub else None


# --- Module Notes -----------------------------------------------------------
# Token issuing is used by `services/auth_service.py` (login, register, refresh);
# verification is used by the same service and by `auth/deps.py`.
