"""
Tracer analytics read side.

get_tracer_analytics() fans out the four dashboard aggregates concurrently
over one normalized filter. get_job_tracer_links_analytics() lists every link
of a job and sums the per-link stats into job totals. Those sums are not
re-queried distinct counts, so job-level uniqueOpens can count a visitor once
per link they opened.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from repositories.click_event_repository import (
    ClickEventRepository,
    ClickFilters,
    normalize_limit,
)
from schemas.dto.responses.tracer import (
    JobSummary,
    JobTracerLinksResponse,
    JobTracerLinksTotals,
    TracerAnalyticsFilters,
    TracerAnalyticsResponse,
)
from schemas.models.job import JobDoc
from shared.logging import get_logger, should_sample
from shared.validators import resolve_public_base_url

log = get_logger(__name__)


class AnalyticsService:
    def __init__(
        self,
        click_repo: ClickEventRepository,
        public_base_url_fallback: Optional[str] = None,
    ) -> None:
        self.click_repo = click_repo
        self.public_base_url_fallback = public_base_url_fallback

    def resolve_tracer_public_base_url(
        self, request_origin: Optional[str] = None
    ) -> Optional[str]:
        return resolve_public_base_url(request_origin, self.public_base_url_fallback)

    async def get_tracer_analytics(
        self,
        *,
        job_id: Optional[str] = None,
        from_ts: Optional[int] = None,
        to_ts: Optional[int] = None,
        include_bots: bool = False,
        limit: Optional[int] = None,
    ) -> TracerAnalyticsResponse:
        filters = ClickFilters(
            job_id=job_id or None,
            from_ts=from_ts,
            to_ts=to_ts,
            include_bots=bool(include_bots),
            limit=normalize_limit(limit),
        )

        start = time.perf_counter()
        totals, time_series, top_jobs, top_links = await asyncio.gather(
            self.click_repo.get_tracer_analytics_totals(filters),
            self.click_repo.get_tracer_analytics_time_series(filters),
            self.click_repo.get_tracer_analytics_top_jobs(filters),
            self.click_repo.get_tracer_analytics_top_links(filters),
        )

        if should_sample("tracer_analytics"):
            log.info(
                "tracer_analytics_queried",
                job_id=filters.job_id,
                include_bots=filters.include_bots,
                limit=filters.limit,
                clicks=totals.clicks,
                duration_ms=int((time.perf_counter() - start) * 1000),
            )

        return TracerAnalyticsResponse(
            filters=TracerAnalyticsFilters(
                job_id=filters.job_id,
                from_=filters.from_ts,
                to=filters.to_ts,
                include_bots=filters.include_bots,
                limit=filters.limit,
            ),
            totals=totals,
            time_series=time_series,
            top_jobs=top_jobs,
            top_links=top_links,
        )

    async def get_job_tracer_links_analytics(
        self,
        job: JobDoc,
        *,
        from_ts: Optional[int] = None,
        to_ts: Optional[int] = None,
        include_bots: bool = False,
    ) -> JobTracerLinksResponse:
        links = await self.click_repo.list_tracer_link_stats_by_job(
            job.id,
            ClickFilters(
                job_id=job.id,
                from_ts=from_ts,
                to_ts=to_ts,
                include_bots=bool(include_bots),
            ),
        )

        totals = JobTracerLinksTotals(
            links=len(links),
            clicks=sum(link.clicks for link in links),
            unique_opens=sum(link.unique_opens for link in links),
            bot_clicks=sum(link.bot_clicks for link in links),
            human_clicks=sum(link.human_clicks for link in links),
        )

        return JobTracerLinksResponse(
            job=JobSummary(
                id=job.id,
                title=job.title,
                employer=job.employer,
                tracer_links_enabled=job.tracer_links_enabled,
            ),
            totals=totals,
            links=links,
        )
