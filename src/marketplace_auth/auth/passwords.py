"""
marketplace_auth.auth.passwords

bcrypt password hashing for the identity store.

Responsibilities:
- Hash new passwords with a configurable work factor.
- Match candidate passwords in (roughly) constant time, including for unknown users.
"""

from __future__ import annotations

from functools import lru_cache

import bcrypt

# bcrypt only looks at the first 72 bytes; newer releases reject longer input outright.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, *, rounds: int = 12) -> str:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("ascii"))
    except ValueError:
        # Corrupt or foreign hash format in storage.
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password("not-a-real-password", rounds=rounds)


def burn_password_check(password: str, *, rounds: int = 12) -> None:
    """Spend the same bcrypt work as a real check so unknown usernames are not cheaper to probe."""
    verify_password(password, _dummy_hash(rounds))


# --- Module Notes -----------------------------------------------------------
# Password hashes are opaque to the rest of the core; only the identity store
# repository calls into this module.
