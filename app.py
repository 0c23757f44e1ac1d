"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.cache.redis_client import create_redis_client
from middleware.request_logging import setup_request_logging_middleware
from repositories.indexes import ensure_indexes
from routes.health_routes import router as health_router
from routes.redirect_routes import router as redirect_router
from routes.tracer_routes import router as tracer_router
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            environment=settings.env,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(settings.db.mongodb_uri)
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]
        app.state.settings = settings

        # Redis is optional; without it the redirect path skips the cache
        redis_client = await create_redis_client(settings.redis.redis_uri)
        app.state.redis = redis_client

        await ensure_indexes(app.state.db)
        log.info("app_started", app_name=settings.app_name, env=settings.env)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Dashboard calls are cross-origin; the redirect is a plain navigation.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    setup_request_logging_middleware(app, is_production=settings.is_production)

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(redirect_router)
    app.include_router(tracer_router)

    return app
