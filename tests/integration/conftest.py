"""
Integration test app builder.

Builds a FastAPI app from the production routers, middleware and error
handlers, with the database and Redis injected via lifespan. No real network
connections are made.
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

import pytest
from fastapi import FastAPI

from config import AppSettings, DatabaseSettings, TracerSettings
from errors import register_error_handlers
from middleware.request_logging import setup_request_logging_middleware
from routes.health_routes import router as health_router
from routes.redirect_routes import router as redirect_router
from routes.tracer_routes import router as tracer_router

# Ensure a MONGODB_URI is present so AppSettings can be instantiated
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/")


def build_test_app(db, redis=None, settings: Optional[AppSettings] = None) -> FastAPI:
    if settings is None:
        settings = AppSettings(
            db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
            tracer=TracerSettings(jobops_public_base_url="https://jobops.test"),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.db = db
        app.state.redis = redis
        app.state.settings = settings
        yield

    app = FastAPI(lifespan=lifespan)
    setup_request_logging_middleware(app)
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(redirect_router)
    app.include_router(tracer_router)
    return app


@pytest.fixture
def make_app():
    return build_test_app
