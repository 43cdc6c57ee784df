"""
marketplace_auth.ratelimit.gate

Fixed-window, per-client rate gate.

Responsibilities:
- Keep one bucket per client key, created lazily; buckets idle past their window are
  swept (at most once per window) when a new key arrives.
- Reset a bucket's window exactly once when it elapses (compare-and-set).
- Admit a request iff the window's admitted count stays within `max_requests`.
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from marketplace_auth.settings import Settings

MonotonicClock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class RateProfile:
    name: str
    max_requests: int
    window_seconds: float


def auth_profile(settings: Settings) -> RateProfile:
    # Login, register and refresh.
    return RateProfile(
        name="auth",
        max_requests=settings.auth_rate_limit_max_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
    )


def general_profile(settings: Settings) -> RateProfile:
    return RateProfile(
        name="general",
        max_requests=settings.general_rate_limit_max_requests,
        window_seconds=settings.general_rate_limit_window_seconds,
    )


@dataclass(frozen=True, slots=True)
class RateDecision:
    allowed: bool
    remaining: int
    retry_after: int


class _Bucket:
    """
    Window start + admitted count for one client key.

    Both primitives below are atomic with respect to each other; neither holds
    the lock for longer than a couple of field reads/writes.
    """

    __slots__ = ("_lock", "window_start", "count")

    def __init__(self, window_start: float) -> None:
        self._lock = threading.Lock()
        self.window_start = window_start
        self.count = 0

    def compare_and_set_window(self, expected_start: float, new_start: float) -> bool:
        with self._lock:
            if self.window_start != expected_start:
                return False
            self.window_start = new_start
            self.count = 0
            return True

    def try_increment(self, limit: int) -> tuple[bool, int, float]:
        with self._lock:
            if self.count >= limit:
                return False, self.count, self.window_start
            self.count += 1
            return True, self.count, self.window_start


class RateGate:
    def __init__(self, profile: RateProfile, *, clock: MonotonicClock = time.monotonic) -> None:
        self.profile = profile
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._buckets_lock = threading.Lock()
        self._last_sweep = clock()

    def _bucket(self, client_key: str, now: float) -> _Bucket:
        bucket = self._buckets.get(client_key)
        if bucket is not None:
            return bucket
        with self._buckets_lock:
            if now - self._last_sweep > self.profile.window_seconds:
                self._sweep(now)
            return self._buckets.setdefault(client_key, _Bucket(now))

    def _sweep(self, now: float) -> None:
        # Caller holds `_buckets_lock`. An elapsed bucket carries no admission state.
        window = self.profile.window_seconds
        stale = [k for k, b in self._buckets.items() if now - b.window_start > window]
        for key in stale:
            del self._buckets[key]
        self._last_sweep = now

    def try_consume(self, client_key: str) -> RateDecision:
        now = self._clock()
        bucket = self._bucket(client_key, now)

        observed = bucket.window_start
        if now - observed > self.profile.window_seconds:
            # Losers of this race simply count against the window the winner opened.
            bucket.compare_and_set_window(observed, now)

        allowed, count, window_start = bucket.try_increment(self.profile.max_requests)
        if allowed:
            return RateDecision(
                allowed=True,
                remaining=self.profile.max_requests - count,
                retry_after=0,
            )

        remaining_window = self.profile.window_seconds - (now - window_start)
        return RateDecision(
            allowed=False,
            remaining=0,
            retry_after=max(1, math.ceil(remaining_window)),
        )

    def count_for(self, client_key: str) -> int:
        bucket = self._buckets.get(client_key)
        return bucket.count if bucket is not None else 0

    def __len__(self) -> int:
        return len(self._buckets)


# --- Module Notes -----------------------------------------------------------
# Buckets live in process memory, so limits are per instance; the sweep bounds the
# map by the number of distinct keys seen within roughly two windows. A multi-instance
# deployment would need a shared counter store behind the same interface.
