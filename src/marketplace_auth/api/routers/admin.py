from __future__ import annotations

from fastapi import APIRouter, Depends

from marketplace_auth.api.deps import auth_service_dep
from marketplace_auth.api.schemas import SuspendResponse
from marketplace_auth.auth.deps import require_roles
from marketplace_auth.auth.models import Role
from marketplace_auth.ratelimit.deps import rate_limit
from marketplace_auth.services.auth_service import AuthService

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(rate_limit("general")), Depends(require_roles(Role.admin))],
)


@router.post("/users/{username}/suspend", response_model=SuspendResponse)
async def suspend_user(
    username: str,
    svc: AuthService = Depends(auth_service_dep),
) -> SuspendResponse:
    # Forced de-authorization: deactivate and revoke every refresh token.
    revoked = await svc.suspend_user(username)
    return SuspendResponse(
        message=f"User {username} suspended and logged out from all devices",
        revoked_sessions=revoked,
    )
