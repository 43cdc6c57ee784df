"""
marketplace_auth.api.schemas

Request/response bodies for the auth endpoints (camelCase on the wire).
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from marketplace_auth.auth.models import Role, primary_role
from marketplace_auth.auth.passwords import MAX_PASSWORD_BYTES
from marketplace_auth.db.models import User
from marketplace_auth.services.auth_service import AuthResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(CamelModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=256)
    device_info: str | None = Field(default=None, max_length=256)


class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    email: str = Field(min_length=3, max_length=256, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=8)

    @field_validator("password")
    @classmethod
    def _fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class AuthResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    role: Role | None
    roles: list[Role]
    username: str
    user_id: uuid.UUID

    @classmethod
    def from_result(cls, result: AuthResult) -> AuthResponse:
        return cls(
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            token_type=result.token_type,
            expires_in=result.expires_in,
            role=result.role,
            roles=sorted(result.roles),
            username=result.username,
            user_id=result.user_id,
        )


class MessageResponse(CamelModel):
    message: str


class UserSummary(CamelModel):
    id: uuid.UUID
    username: str
    email: str
    role: Role | None
    roles: list[Role]
    is_active: bool

    @classmethod
    def from_user(cls, user: User) -> UserSummary:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=primary_role(user.role_set),
            roles=sorted(user.role_set),
            is_active=user.is_active,
        )


class ValidateResponse(CamelModel):
    valid: bool
    username: str | None = None
    roles: list[Role] = Field(default_factory=list)
    message: str | None = None


class SuspendResponse(CamelModel):
    message: str
    revoked_sessions: int
