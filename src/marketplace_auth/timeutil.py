"""Clock helpers shared by the codec, the ledger and the session issuer."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def to_naive_utc(value: datetime) -> datetime:
    # The ledger persists naive UTC timestamps (SQLite drops tzinfo anyway).
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
