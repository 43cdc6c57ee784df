"""
marketplace_auth.db.repositories.users

Identity store backed by the `users` / `user_roles` tables.

Responsibilities:
- Look users up by id and by username (or email for registration checks).
- Match passwords via bcrypt in a worker thread, never on the event loop.
- Create users with an initial role set and flip the active flag.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_auth.auth.models import Role
from marketplace_auth.auth.passwords import burn_password_check, hash_password, verify_password
from marketplace_auth.db.models import User, UserRoleAssignment
from marketplace_auth.timeutil import to_naive_utc


class UserRepo:
    def __init__(self, session: AsyncSession, *, bcrypt_rounds: int = 12) -> None:
        self._session = session
        self._bcrypt_rounds = bcrypt_rounds

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def authenticate(self, username: str, password: str) -> User | None:
        """Return the user iff the password matches; inactive users are still returned."""
        user = await self.get_by_username(username)
        if user is None:
            await asyncio.to_thread(burn_password_check, password, rounds=self._bcrypt_rounds)
            return None
        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            return None
        return user

    async def create(
        self,
        *,
        username: str,
        email: str,
        password: str,
        roles: Iterable[Role],
        is_active: bool = True,
    ) -> User:
        password_hash = await asyncio.to_thread(
            hash_password, password, rounds=self._bcrypt_rounds
        )
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            is_active=is_active,
            role_assignments=[UserRoleAssignment(role=r) for r in set(roles)],
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def set_active(self, user: User, *, active: bool) -> None:
        user.is_active = active
        await self._session.flush()

    async def record_login(self, user: User, *, at: datetime) -> None:
        user.last_login_at = to_naive_utc(at)
        await self._session.flush()


# --- Module Notes -----------------------------------------------------------
# This repository stands in for the external identity collaborator; the session
# issuer only relies on lookup, password matching, role set and active flag.
