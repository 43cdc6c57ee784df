"""
marketplace_auth.auth.models

Auth domain models.

Responsibilities:
- Define the role vocabulary and token kinds.
- Define the authenticated identity type (`Principal`) injected into endpoints.
- Define the verified claim set returned by the credential codec.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime


class Role(enum.StrEnum):
    buyer = "BUYER"
    seller = "SELLER"
    # Legacy unified role for students who both buy and sell.
    student = "STUDENT"
    admin = "ADMIN"


class TokenKind(enum.StrEnum):
    access = "access"
    refresh = "refresh"


def parse_roles(raw: Iterable[object]) -> frozenset[Role]:
    """Keep only role tags this service understands; unknown values are dropped."""
    roles: set[Role] = set()
    for value in raw:
        try:
            roles.add(Role(str(value).upper()))
        except ValueError:
            continue
    return frozenset(roles)


def primary_role(roles: Iterable[Role]) -> Role | None:
    # ADMIN wins; otherwise a stable (alphabetical) pick keeps responses deterministic.
    ordered = sorted(roles)
    if Role.admin in ordered:
        return Role.admin
    return ordered[0] if ordered else None


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, reconstructed from a verified access token.

    `roles` is the snapshot embedded at issue time, not a live read of the
    identity store.
    """

    subject: str
    user_id: uuid.UUID | None
    roles: frozenset[Role]


@dataclass(frozen=True, slots=True)
class TokenClaims:
    subject: str
    user_id: uuid.UUID | None
    kind: TokenKind
    roles: frozenset[Role]
    issued_at: datetime
    expires_at: datetime
    token_id: str


# --- Module Notes -----------------------------------------------------------
# Keep these models minimal; they cross the API, service and codec boundaries.
