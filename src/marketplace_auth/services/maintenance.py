"""
marketplace_auth.services.maintenance

Background housekeeping for the refresh token ledger.

Responsibilities:
- Periodically prune ledger rows past their expiry.

Pruning is not correctness-critical: every read path re-checks expiry.
"""

from __future__ import annotations

import asyncio

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace_auth.observability.logging import get_logger
from marketplace_auth.services.auth_service import AuthService
from marketplace_auth.settings import Settings
from marketplace_auth.timeutil import Clock, utcnow

log = get_logger(__name__)


async def prune_once(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    *,
    clock: Clock = utcnow,
) -> int:
    async with session_factory() as session:
        svc = AuthService(session=session, settings=settings, clock=clock)
        pruned = await svc.prune_expired_tokens()
    log.info("ledger_pruned", pruned=pruned)
    return pruned


async def run_prune_loop(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    *,
    clock: Clock = utcnow,
) -> None:
    interval = settings.ledger_prune_interval_seconds
    while True:
        await asyncio.sleep(interval)
        try:
            await prune_once(session_factory, settings, clock=clock)
        except SQLAlchemyError:
            # Keep the loop alive; the next tick retries.
            log.exception("ledger_prune_failed")


# --- Module Notes -----------------------------------------------------------
# Started and cancelled by the app lifespan in `api/app.py`.
