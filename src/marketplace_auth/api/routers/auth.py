from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.status import HTTP_401_UNAUTHORIZED

from marketplace_auth.api.deps import auth_service_dep
from marketplace_auth.api.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    UserSummary,
    ValidateResponse,
)
from marketplace_auth.auth.deps import get_optional_principal, get_principal
from marketplace_auth.auth.models import Principal
from marketplace_auth.ratelimit.deps import rate_limit
from marketplace_auth.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])

_auth_gate = [Depends(rate_limit("auth"))]
_general_gate = [Depends(rate_limit("general"))]


@router.post("/login", response_model=AuthResponse, dependencies=_auth_gate)
async def login(
    body: LoginRequest,
    svc: AuthService = Depends(auth_service_dep),
) -> AuthResponse:
    result = await svc.login(
        username=body.username,
        password=body.password,
        device_info=body.device_info,
    )
    return AuthResponse.from_result(result)


@router.post("/register", response_model=AuthResponse, dependencies=_auth_gate)
async def register(
    body: RegisterRequest,
    svc: AuthService = Depends(auth_service_dep),
) -> AuthResponse:
    result = await svc.register(username=body.username, email=body.email, password=body.password)
    return AuthResponse.from_result(result)


@router.post("/refresh", response_model=AuthResponse, dependencies=_auth_gate)
async def refresh(
    body: RefreshTokenRequest,
    svc: AuthService = Depends(auth_service_dep),
) -> AuthResponse:
    return AuthResponse.from_result(await svc.refresh(body.refresh_token))


@router.post("/logout", response_model=MessageResponse, dependencies=_general_gate)
async def logout(
    body: RefreshTokenRequest,
    svc: AuthService = Depends(auth_service_dep),
) -> MessageResponse:
    # Idempotent: unknown or already revoked tokens still get a 200.
    await svc.logout(body.refresh_token)
    return MessageResponse(message="Logged out successfully")


@router.post("/logout-all", response_model=MessageResponse, dependencies=_general_gate)
async def logout_all(
    principal: Principal = Depends(get_principal),
    svc: AuthService = Depends(auth_service_dep),
) -> MessageResponse:
    await svc.logout_all_devices(principal.subject)
    return MessageResponse(message="Logged out from all devices successfully")


@router.get("/me", response_model=UserSummary, dependencies=_general_gate)
async def me(
    principal: Principal = Depends(get_principal),
    svc: AuthService = Depends(auth_service_dep),
) -> UserSummary:
    return UserSummary.from_user(await svc.get_current_user(principal.subject))


@router.get(
    "/validate",
    response_model=ValidateResponse,
    response_model_exclude_none=True,
    dependencies=_general_gate,
)
async def validate(
    principal: Principal | None = Depends(get_optional_principal),
) -> ValidateResponse | JSONResponse:
    if principal is None:
        body = ValidateResponse(valid=False, message="No valid token found")
        return JSONResponse(
            status_code=HTTP_401_UNAUTHORIZED,
            content=body.model_dump(by_alias=True, exclude_none=True),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ValidateResponse(valid=True, username=principal.subject, roles=sorted(principal.roles))
