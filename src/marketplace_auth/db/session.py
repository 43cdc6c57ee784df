"""
marketplace_auth.db.session

Async SQLAlchemy engine + session factory helpers.

Responsibilities:
- Create the async engine from settings.
- Create the async sessionmaker with safe defaults.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from marketplace_auth.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    # pool_pre_ping helps detect stale connections in long-lived processes.
    return create_async_engine(settings.database_url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps ORM rows readable after the service commits.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


# --- Module Notes -----------------------------------------------------------
# The API layer scopes sessions per request (`api.deps.db_session`); the prune task
# opens its own short-lived sessions from the same factory.
