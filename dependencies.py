"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Repositories and services are cheap wrappers
around the shared clients on app.state, so they are built per request.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from config import AppSettings
from infrastructure.cache.tracer_link_cache import TracerLinkCache
from repositories.click_event_repository import ClickEventRepository
from repositories.job_repository import JobRepository
from repositories.tracer_link_repository import TracerLinkRepository
from services.analytics_service import AnalyticsService
from services.link_rewriter import LinkRewriterService
from services.redirect_service import RedirectService
from services.tracer_link_service import TracerLinkService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_db(request: Request):
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


def get_redis(request: Request):
    """Return the async Redis client from app.state (may be None if not configured)."""
    return getattr(request.app.state, "redis", None)


# ── Repositories ─────────────────────────────────────────────────────────────


def get_tracer_link_repo(
    db=Depends(get_db), settings: AppSettings = Depends(get_settings)
) -> TracerLinkRepository:
    return TracerLinkRepository(
        db,
        max_attempts=settings.tracer.tracer_create_max_attempts,
        token_length=settings.tracer.tracer_token_length,
    )


def get_job_repo(db=Depends(get_db)) -> JobRepository:
    return JobRepository(db)


def get_click_event_repo(
    db=Depends(get_db),
    link_repo: TracerLinkRepository = Depends(get_tracer_link_repo),
    job_repo: JobRepository = Depends(get_job_repo),
) -> ClickEventRepository:
    return ClickEventRepository(db, link_repo=link_repo, job_repo=job_repo)


# ── Services ─────────────────────────────────────────────────────────────────


def get_tracer_link_cache(
    redis=Depends(get_redis), settings: AppSettings = Depends(get_settings)
) -> Optional[TracerLinkCache]:
    if redis is None:
        return None
    return TracerLinkCache(redis, ttl_seconds=settings.tracer.tracer_link_cache_ttl_seconds)


def get_redirect_service(
    link_repo: TracerLinkRepository = Depends(get_tracer_link_repo),
    click_repo: ClickEventRepository = Depends(get_click_event_repo),
    cache: Optional[TracerLinkCache] = Depends(get_tracer_link_cache),
) -> RedirectService:
    return RedirectService(link_repo, click_repo, cache)


def get_analytics_service(
    click_repo: ClickEventRepository = Depends(get_click_event_repo),
    settings: AppSettings = Depends(get_settings),
) -> AnalyticsService:
    return AnalyticsService(click_repo, settings.tracer.jobops_public_base_url)


def get_link_rewriter_service(
    link_repo: TracerLinkRepository = Depends(get_tracer_link_repo),
    settings: AppSettings = Depends(get_settings),
) -> LinkRewriterService:
    return LinkRewriterService(link_repo, settings.tracer.jobops_public_base_url)


def get_tracer_link_service(
    link_repo: TracerLinkRepository = Depends(get_tracer_link_repo),
    cache: Optional[TracerLinkCache] = Depends(get_tracer_link_cache),
) -> TracerLinkService:
    return TracerLinkService(link_repo, cache)
