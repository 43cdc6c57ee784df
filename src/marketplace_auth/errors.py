"""Error taxonomy for the session and access-control core.

Every class carries the HTTP status it surfaces as and a short ``error`` label
used in JSON error bodies. The API layer renders them via a single exception
handler (see ``marketplace_auth.api.errors``).
"""

from __future__ import annotations

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_409_CONFLICT,
    HTTP_429_TOO_MANY_REQUESTS,
)


class MarketplaceAuthError(Exception):
    """Base class for failures raised by this service."""

    status_code: int = HTTP_400_BAD_REQUEST
    error: str = "Request failed"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(MarketplaceAuthError):
    """Credential or token failure; always surfaces as 401."""

    status_code = HTTP_401_UNAUTHORIZED
    error = "Authentication failed"
    default_message = "Authentication failed"


class InvalidCredentialsError(AuthError):
    default_message = "Invalid username or password"


class AccountInactiveError(AuthError):
    default_message = "Account is disabled"


class TokenError(AuthError):
    """Raised by the credential codec when a token cannot be trusted."""

    error = "Invalid token"
    default_message = "Invalid token"


class InvalidSignatureError(TokenError):
    default_message = "Token signature is invalid or the token is malformed"


class TokenExpiredError(TokenError):
    default_message = "Token has expired"


class RefreshExpiredError(TokenExpiredError):
    default_message = "Refresh token expired"


class TokenNotFoundError(AuthError):
    error = "Token refresh failed"
    default_message = "Refresh token not found"


class TokenRevokedError(AuthError):
    error = "Token refresh failed"
    default_message = "Refresh token has been revoked"


class UserNotFoundError(AuthError):
    default_message = "User not found"


class NotAuthenticatedError(AuthError):
    error = "Unauthorized"
    default_message = "User not authenticated"


class AccessDeniedError(MarketplaceAuthError):
    """Authorization failure; always surfaces as 403."""

    status_code = HTTP_403_FORBIDDEN
    error = "Access denied"
    default_message = "Access denied"


class NoValidRolesError(AccessDeniedError):
    default_message = "Access denied: no valid roles"


class InsufficientRoleError(AccessDeniedError):
    default_message = "Access denied: insufficient role"


class RateLimitedError(MarketplaceAuthError):
    """Raised by the rate gate; the caller may retry after ``retry_after`` seconds."""

    status_code = HTTP_429_TOO_MANY_REQUESTS
    error = "Rate limit exceeded"
    default_message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class RegistrationConflictError(MarketplaceAuthError):
    error = "Registration failed"
    default_message = "Username or email already exists"


class DuplicateTokenError(MarketplaceAuthError):
    """A refresh token string was stored twice; indicates a broken token generator."""

    status_code = HTTP_409_CONFLICT
    error = "Duplicate token"
    default_message = "Refresh token already exists"


__all__ = [
    "MarketplaceAuthError",
    "AuthError",
    "InvalidCredentialsError",
    "AccountInactiveError",
    "TokenError",
    "InvalidSignatureError",
    "TokenExpiredError",
    "RefreshExpiredError",
    "TokenNotFoundError",
    "TokenRevokedError",
    "UserNotFoundError",
    "NotAuthenticatedError",
    "AccessDeniedError",
    "NoValidRolesError",
    "InsufficientRoleError",
    "RateLimitedError",
    "RegistrationConflictError",
    "DuplicateTokenError",
]
