"""
marketplace_auth.auth.authorization

Role authorization engine.

Responsibilities:
- Decide admission from a principal's role set and a required role set (ANY-of).
- Map denials onto the error taxonomy for the API layer.

The engine holds no state and is safe to call concurrently.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from marketplace_auth.auth.models import Role, parse_roles
from marketplace_auth.errors import (
    InsufficientRoleError,
    NotAuthenticatedError,
    NoValidRolesError,
)

NOT_AUTHENTICATED = "not authenticated"
NO_VALID_ROLES = "no valid roles"


@dataclass(frozen=True, slots=True)
class Decision:
    granted: bool
    reason: str | None = None
    principal_roles: frozenset[Role] = frozenset()
    required_roles: frozenset[Role] = frozenset()

    def raise_for_denial(self) -> None:
        if self.granted:
            return
        if self.reason == NOT_AUTHENTICATED:
            raise NotAuthenticatedError()
        if self.reason == NO_VALID_ROLES:
            raise NoValidRolesError()
        raise InsufficientRoleError(self.reason)


def _fmt(roles: Iterable[Role]) -> str:
    return "[" + ", ".join(sorted(r.value for r in roles)) + "]"


def authorize(
    principal_roles: Iterable[Role | str] | None,
    required_roles: Iterable[Role | str],
) -> Decision:
    if principal_roles is None:
        return Decision(granted=False, reason=NOT_AUTHENTICATED)

    held = parse_roles(principal_roles)
    required = parse_roles(required_roles)
    if not held:
        return Decision(granted=False, reason=NO_VALID_ROLES, required_roles=required)

    if held & required:
        return Decision(granted=True, principal_roles=held, required_roles=required)

    return Decision(
        granted=False,
        reason=(
            f"Access denied: user roles {_fmt(held)} are not authorized. "
            f"Required roles: {_fmt(required)}"
        ),
        principal_roles=held,
        required_roles=required,
    )


# --- Module Notes -----------------------------------------------------------
# Routes declare their requirement through `auth.deps.require_roles`, which is the
# only caller of `authorize` on the request path.
