"""
tests.conftest

Shared fixtures: controllable clocks, a per-test SQLite database, user seeding
and an in-process HTTP client bound to the app factory.
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator, Iterable
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace_auth.api.app import create_app
from marketplace_auth.auth.models import Role
from marketplace_auth.db.init_db import init_db
from marketplace_auth.db.models import User
from marketplace_auth.db.repositories.users import UserRepo
from marketplace_auth.db.session import create_engine, create_sessionmaker
from marketplace_auth.settings import Settings


class FakeClock:
    """Wall clock (tz-aware UTC) that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        log_level="WARNING",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}",
        bcrypt_rounds=4,
        ledger_prune_interval_seconds=0,
        # Most API tests log in several times from one client; the auth profile's
        # real limit is exercised explicitly in the rate-limit tests.
        auth_rate_limit_max_requests=50,
    )


@pytest_asyncio.fixture
async def session_factory(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as s:
        yield s


@pytest.fixture
def make_user(session_factory: async_sessionmaker[AsyncSession], settings: Settings):
    async def _make(
        username: str,
        password: str = "correct horse battery",
        *,
        roles: Iterable[Role] = (Role.buyer,),
        email: str | None = None,
        active: bool = True,
    ) -> User:
        async with session_factory() as s:
            user = await UserRepo(s, bcrypt_rounds=settings.bcrypt_rounds).create(
                username=username,
                email=email or f"{username}@campus.example.edu",
                password=password,
                roles=roles,
                is_active=active,
            )
            await s.commit()
            return user

    return _make


@pytest.fixture
def open_client(clock: FakeClock, monotonic: FakeMonotonic):
    @contextlib.asynccontextmanager
    async def _open(app_settings: Settings) -> AsyncIterator[httpx.AsyncClient]:
        app = create_app(settings=app_settings, clock=clock, monotonic=monotonic)
        # httpx's ASGITransport does not drive lifespan; do it explicitly.
        async with app.router.lifespan_context(app):
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
                yield client

    return _open


@pytest_asyncio.fixture
async def client(open_client, settings: Settings) -> AsyncIterator[httpx.AsyncClient]:
    async with open_client(settings) as c:
        yield c
