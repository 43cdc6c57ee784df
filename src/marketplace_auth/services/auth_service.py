"""
marketplace_auth.services.auth_service

Session issuer (transaction + persistence owner for the auth flows).

Responsibilities:
- Login / register: verify identity, issue access + refresh tokens, record the refresh token.
- Refresh: exchange a live, unrevoked refresh token for a new access token.
- Logout / logout-all / suspension: revoke refresh tokens.
- Read-through lookup of the current user for downstream authorization.

Session states, from the issuer's point of view:
UNAUTHENTICATED -> AUTHENTICATED (access+refresh issued)
                -> REFRESHED (new access issued, refresh unchanged)
                -> LOGGED_OUT (refresh revoked)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_auth.auth.jwt import CredentialCodec, JwtConfig, peek_subject
from marketplace_auth.auth.models import Role, TokenKind, primary_role
from marketplace_auth.db.models import User
from marketplace_auth.db.repositories.refresh_tokens import RefreshTokenLedger
from marketplace_auth.db.repositories.users import UserRepo
from marketplace_auth.errors import (
    AccountInactiveError,
    InvalidCredentialsError,
    RefreshExpiredError,
    RegistrationConflictError,
    TokenNotFoundError,
    TokenError,
    TokenRevokedError,
    UserNotFoundError,
)
from marketplace_auth.observability.logging import get_logger
from marketplace_auth.settings import Settings
from marketplace_auth.timeutil import Clock, utcnow

log = get_logger(__name__)

# Self-registered accounts can both buy and sell; ADMIN is never self-assigned.
DEFAULT_REGISTRATION_ROLES = frozenset({Role.buyer, Role.seller})


@dataclass(frozen=True, slots=True)
class AuthResult:
    access_token: str
    refresh_token: str
    expires_in: int
    roles: frozenset[Role]
    username: str
    user_id: uuid.UUID
    token_type: str = "Bearer"

    @property
    def role(self) -> Role | None:
        return primary_role(self.roles)


class AuthService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        settings: Settings,
        codec: CredentialCodec | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._session = session
        self._settings = settings
        self._clock = clock
        self._codec = codec or CredentialCodec(JwtConfig.from_settings(settings), clock=clock)

        self._users = UserRepo(session, bcrypt_rounds=settings.bcrypt_rounds)
        self._ledger = RefreshTokenLedger(session)

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(seconds=self._settings.access_token_ttl_seconds)

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(seconds=self._settings.refresh_token_ttl_seconds)

    async def login(
        self, *, username: str, password: str, device_info: str | None = None
    ) -> AuthResult:
        user = await self._users.authenticate(username, password)
        if user is None:
            log.info("login_failed", username=username, reason="invalid_credentials")
            raise InvalidCredentialsError()
        if not user.is_active:
            log.info("login_failed", username=username, reason="account_inactive")
            raise AccountInactiveError()

        result = await self._open_session(user, device_info=device_info)
        await self._users.record_login(user, at=self._clock())
        await self._session.commit()
        log.info("login_succeeded", username=username, user_id=str(user.id))
        return result

    async def register(self, *, username: str, email: str, password: str) -> AuthResult:
        if await self._users.get_by_username(username) is not None:
            raise RegistrationConflictError("Username already exists")
        if await self._users.get_by_email(email) is not None:
            raise RegistrationConflictError("Email already exists")

        try:
            user = await self._users.create(
                username=username,
                email=email,
                password=password,
                roles=DEFAULT_REGISTRATION_ROLES,
            )
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same username/email.
            await self._session.rollback()
            raise RegistrationConflictError() from e

        result = await self._open_session(user, device_info="registration")
        await self._session.commit()
        log.info("user_registered", username=username, user_id=str(user.id))
        return result

    async def refresh(self, refresh_token: str) -> AuthResult:
        try:
            self._codec.verify(refresh_token, expected_kind=TokenKind.refresh)
        except TokenError as e:
            # Request path comes from the bound contextvars; the token itself is never logged.
            log.warning(
                "refresh_token_rejected",
                reason=type(e).__name__,
                detail=e.message,
                subject=peek_subject(refresh_token),
            )
            raise

        record = await self._ledger.find_active(refresh_token)
        if record is None:
            if await self._ledger.find(refresh_token) is not None:
                log.info("refresh_rejected", reason="revoked")
                raise TokenRevokedError()
            log.info("refresh_rejected", reason="not_found")
            raise TokenNotFoundError()

        if record.is_expired(self._clock()):
            # Lazy cleanup: an expired row is dead weight, drop it while we are here.
            await self._ledger.delete(refresh_token)
            await self._session.commit()
            log.info("refresh_rejected", reason="expired", user_id=str(record.user_id))
            raise RefreshExpiredError()

        user = await self._users.get(record.user_id)
        if user is None:
            raise UserNotFoundError()
        if not user.is_active:
            raise AccountInactiveError()

        access = self._codec.issue(user, TokenKind.access, self.access_ttl)
        log.info("refresh_succeeded", username=user.username)
        return self._result(user, access_token=access, refresh_token=refresh_token)

    async def logout(self, refresh_token: str) -> None:
        revoked = await self._ledger.revoke(refresh_token)
        await self._session.commit()
        log.info("logout", revoked=revoked)

    async def logout_all_devices(self, username: str) -> int:
        user = await self.get_current_user(username)
        count = await self._ledger.revoke_all(user.id)
        await self._session.commit()
        log.info("logout_all_devices", username=username, revoked=count)
        return count

    async def get_current_user(self, username: str) -> User:
        user = await self._users.get_by_username(username)
        if user is None:
            raise UserNotFoundError()
        return user

    async def suspend_user(self, username: str) -> int:
        user = await self.get_current_user(username)
        await self._users.set_active(user, active=False)
        count = await self._ledger.revoke_all(user.id)
        await self._session.commit()
        log.warning("user_suspended", username=username, revoked=count)
        return count

    async def prune_expired_tokens(self) -> int:
        count = await self._ledger.prune(self._clock())
        await self._session.commit()
        return count

    async def _open_session(self, user: User, *, device_info: str | None) -> AuthResult:
        access = self._codec.issue(user, TokenKind.access, self.access_ttl)
        refresh = self._codec.issue(user, TokenKind.refresh, self.refresh_ttl)
        await self._ledger.store(
            token=refresh,
            user_id=user.id,
            ttl=self.refresh_ttl,
            device_info=device_info,
            now=self._clock(),
        )
        return self._result(user, access_token=access, refresh_token=refresh)

    def _result(self, user: User, *, access_token: str, refresh_token: str) -> AuthResult:
        return AuthResult(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._settings.access_token_ttl_seconds,
            roles=user.role_set,
            username=user.username,
            user_id=user.id,
        )


# --- Module Notes -----------------------------------------------------------
# This service is the transaction boundary: repositories only flush, and every
# state change (ledger insert, revocation, lazy delete) is committed here.
# Refresh tokens are deliberately not rotated on use.
