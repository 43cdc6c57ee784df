"""
marketplace_auth.api.app

FastAPI app factory for the marketplace auth service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/exception handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory, codec,
  rate gates, ledger prune task).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import AsyncIterator

from fastapi import FastAPI

from marketplace_auth import __version__
from marketplace_auth.api.errors import register_exception_handlers
from marketplace_auth.api.routers.admin import router as admin_router
from marketplace_auth.api.routers.auth import router as auth_router
from marketplace_auth.api.routers.health import router as health_router
from marketplace_auth.auth.jwt import CredentialCodec, JwtConfig
from marketplace_auth.db.init_db import init_db
from marketplace_auth.db.session import create_engine, create_sessionmaker
from marketplace_auth.observability.logging import configure_logging, get_logger
from marketplace_auth.observability.middleware import RequestContextMiddleware
from marketplace_auth.ratelimit.gate import (
    MonotonicClock,
    RateGate,
    auth_profile,
    general_profile,
)
from marketplace_auth.services.maintenance import run_prune_loop
from marketplace_auth.settings import Settings
from marketplace_auth.timeutil import Clock, utcnow

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    clock: Clock = utcnow,
    monotonic: MonotonicClock = time.monotonic,
) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        cache_loggers=settings.env != "test",
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        # Routers obtain sessions via dependencies (see `marketplace_auth.api.deps`).
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            await init_db(engine)

        prune_task: asyncio.Task[None] | None = None
        if settings.ledger_prune_interval_seconds > 0:
            prune_task = asyncio.create_task(
                run_prune_loop(app.state.sessionmaker, settings, clock=clock)
            )
        try:
            yield
        finally:
            if prune_task is not None:
                prune_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await prune_task
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Marketplace Auth",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Request-independent collaborators; the DB engine is bound in `lifespan`.
    app.state.settings = settings
    app.state.clock = clock
    app.state.codec = CredentialCodec(JwtConfig.from_settings(settings), clock=clock)
    app.state.rate_gates = {
        "auth": RateGate(auth_profile(settings), clock=monotonic),
        "general": RateGate(general_profile(settings), clock=monotonic),
    }

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(admin_router)

    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; decisions stay in
# the auth, ratelimit and services packages.
