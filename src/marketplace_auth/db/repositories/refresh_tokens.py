"""
marketplace_auth.db.repositories.refresh_tokens

Refresh token ledger.

Responsibilities:
- Persist issued refresh tokens (one row per device/session).
- Revoke one token or every active token of a user; revocation is idempotent and monotonic.
- Prune rows past their expiry.

Reads never filter on expiry: callers check `expires_at` explicitly so that an
expired but unpruned row is still rejected.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from sqlalchemy import delete, desc, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_auth.db.models import RefreshTokenRecord
from marketplace_auth.errors import DuplicateTokenError
from marketplace_auth.timeutil import to_naive_utc, utcnow


class RefreshTokenLedger:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def store(
        self,
        *,
        token: str,
        user_id: uuid.UUID,
        ttl: timedelta,
        device_info: str | None = None,
        now: datetime | None = None,
    ) -> RefreshTokenRecord:
        issued_at = to_naive_utc(now or utcnow())
        if await self.find(token) is not None:
            raise DuplicateTokenError()

        record = RefreshTokenRecord(
            token=token,
            user_id=user_id,
            device_info=device_info,
            issued_at=issued_at,
            expires_at=issued_at + ttl,
            revoked=False,
        )
        self._session.add(record)
        try:
            # A concurrent insert of the same string still trips the unique constraint.
            await self._session.flush()
        except IntegrityError as e:
            raise DuplicateTokenError() from e
        return record

    async def find(self, token: str) -> RefreshTokenRecord | None:
        stmt = (
            select(RefreshTokenRecord)
            .where(RefreshTokenRecord.token == token)
            .execution_options(populate_existing=True)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def find_active(self, token: str) -> RefreshTokenRecord | None:
        stmt = (
            select(RefreshTokenRecord)
            .where(RefreshTokenRecord.token == token, RefreshTokenRecord.revoked.is_(False))
            .execution_options(populate_existing=True)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def revoke(self, token: str) -> bool:
        # Set-true only; an unknown or already revoked token simply matches no rows.
        stmt = (
            update(RefreshTokenRecord)
            .where(RefreshTokenRecord.token == token, RefreshTokenRecord.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return (result.rowcount or 0) > 0

    async def revoke_all(self, user_id: uuid.UUID) -> int:
        stmt = (
            update(RefreshTokenRecord)
            .where(RefreshTokenRecord.user_id == user_id, RefreshTokenRecord.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def delete(self, token: str) -> None:
        stmt = (
            delete(RefreshTokenRecord)
            .where(RefreshTokenRecord.token == token)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    async def prune(self, now: datetime) -> int:
        stmt = (
            delete(RefreshTokenRecord)
            .where(RefreshTokenRecord.expires_at < to_naive_utc(now))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def list_for_user(self, user_id: uuid.UUID) -> list[RefreshTokenRecord]:
        stmt = (
            select(RefreshTokenRecord)
            .where(RefreshTokenRecord.user_id == user_id)
            .order_by(desc(RefreshTokenRecord.issued_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# Hot paths (`find_active`, `revoke_all`) are covered by the unique token constraint
# and the (user_id, revoked) index in `db.models`.
