"""
marketplace_auth.db.init_db

DB initialization helpers (dev/test convenience).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from marketplace_auth.db import models  # noqa: F401  # registers tables on Base.metadata
from marketplace_auth.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist.
    Production deployments provision the schema out of band.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
