"""
marketplace_auth.db.models

Persistence schema for the access-control core.

Responsibilities:
- User: identity store row (username, email, bcrypt hash, active flag).
- UserRoleAssignment: many-to-many role tags per user.
- RefreshTokenRecord: refresh token ledger entry with monotonic revocation.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Index, String, UniqueConstraint, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace_auth.auth.models import Role
from marketplace_auth.db.base import Base
from marketplace_auth.timeutil import to_naive_utc, utcnow


def _utcnow() -> datetime:
    # Persist naive UTC timestamps; see `timeutil.to_naive_utc`.
    return to_naive_utc(utcnow())


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    # selectin: roles are read on every login/refresh, and async sessions cannot lazy-load.
    role_assignments: Mapped[list[UserRoleAssignment]] = relationship(
        back_populates="user", cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def role_set(self) -> frozenset[Role]:
        return frozenset(a.role for a in self.role_assignments)


class UserRoleAssignment(Base):
    __tablename__ = "user_roles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[Role] = mapped_column(Enum(Role), primary_key=True)

    user: Mapped[User] = relationship(back_populates="role_assignments")


class RefreshTokenRecord(Base):
    __tablename__ = "refresh_tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    token: Mapped[str] = mapped_column(String(1000), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    device_info: Mapped[str | None] = mapped_column(String(256), nullable=True)

    issued_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    expires_at: Mapped[datetime] = mapped_column(nullable=False, index=True)
    # Monotonic: only ever flipped False -> True.
    revoked: Mapped[bool] = mapped_column(nullable=False, default=False, index=True)

    __table_args__ = (
        UniqueConstraint("token", name="uq_refresh_tokens_token"),
        Index("ix_refresh_tokens_user_revoked", "user_id", "revoked"),
    )

    def is_expired(self, now: datetime) -> bool:
        return not self.expires_at > to_naive_utc(now)


# --- Module Notes -----------------------------------------------------------
# Ledger rows are never un-revoked; expired rows are removed lazily on refresh and
# in bulk by the prune task.
