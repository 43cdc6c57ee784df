"""
marketplace_auth.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the credential codec.
- Encapsulate app.state access patterns (settings/sessionmaker/codec/clock).
- Build a request-scoped `AuthService`.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace_auth.auth.jwt import CredentialCodec
from marketplace_auth.services.auth_service import AuthService
from marketplace_auth.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The app factory pins its Settings instance so tests can run with overrides.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created on app startup in `marketplace_auth.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


def codec_dep(request: Request) -> CredentialCodec:
    return request.app.state.codec  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def auth_service_dep(
    request: Request,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    codec: CredentialCodec = Depends(codec_dep),
) -> AuthService:
    return AuthService(
        session=session,
        settings=settings,
        codec=codec,
        clock=request.app.state.clock,  # type: ignore[attr-defined]
    )


# --- Module Notes -----------------------------------------------------------
# Sharing one codec per app keeps issue and verify on the same clock and secret.
