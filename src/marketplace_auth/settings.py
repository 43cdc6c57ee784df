"""
marketplace_auth.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Every field can be set from the environment as `MKTAUTH_<FIELD>`.
    Defaults suit local development only; `jwt_secret` must be overridden in prod.
    """

    model_config = SettingsConfigDict(env_prefix="MKTAUTH_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "marketplace-auth"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Credentials
    jwt_alg: str = "HS256"
    jwt_issuer: str = "marketplace-auth"
    jwt_audience: str = "marketplace-api"
    jwt_secret: str = Field(
        default="dev-secret-change-me-dev-secret-change-me-0123456789",
        repr=False,
    )
    access_token_ttl_seconds: int = Field(default=3600, ge=1)
    refresh_token_ttl_seconds: int = Field(default=7 * 24 * 3600, ge=1)

    # bcrypt work factor; 4 is the library minimum and only suitable for tests.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./marketplace_auth.db"

    # Rate gate profiles
    auth_rate_limit_max_requests: int = Field(default=5, ge=1)
    auth_rate_limit_window_seconds: float = Field(default=60.0, gt=0)
    general_rate_limit_max_requests: int = Field(default=100, ge=1)
    general_rate_limit_window_seconds: float = Field(default=60.0, gt=0)

    # Ledger housekeeping; 0 disables the background prune task.
    ledger_prune_interval_seconds: float = Field(default=3600.0, ge=0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# TTLs are expressed in seconds so they map directly onto the `expiresIn` field
# returned to clients.
