"""
marketplace_auth.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) that checks the ledger database.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_auth.api.deps import db_session

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    # Login, refresh and logout all need the ledger, so no DB means not ready.
    await session.execute(text("SELECT 1"))
    return {"status": "ready"}
