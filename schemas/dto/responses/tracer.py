"""
Response DTOs for the tracer analytics endpoints.

TracerAnalyticsResponse  — GET /api/tracer-links/analytics     (200)
JobTracerLinksResponse   — GET /api/tracer-links/jobs/{jobId}  (200)

JSON keys are camelCase (``uniqueOpens``, ``topJobs``); models are built with
snake_case attribute names and serialised by alias.

Every stats row carries the same four counters:
  clicks       — click events in scope (bots only when includeBots)
  uniqueOpens  — distinct daily fingerprints among those events
  botClicks    — bot events in scope, reported whatever includeBots says
  humanClicks  — non-bot events in scope
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TracerClickStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    clicks: int = 0
    unique_opens: int = Field(default=0, alias="uniqueOpens")
    bot_clicks: int = Field(default=0, alias="botClicks")
    human_clicks: int = Field(default=0, alias="humanClicks")


class TracerTimeSeriesPoint(TracerClickStats):
    day: str  # YYYY-MM-DD (UTC)


class TracerTopJob(TracerClickStats):
    job_id: str = Field(alias="jobId")
    title: str
    employer: str
    last_clicked_at: Optional[int] = Field(default=None, alias="lastClickedAt")


class TracerTopLink(TracerClickStats):
    tracer_link_id: str = Field(alias="tracerLinkId")
    token: str
    job_id: str = Field(alias="jobId")
    title: str
    employer: str
    source_path: str = Field(alias="sourcePath")
    source_label: str = Field(alias="sourceLabel")
    destination_url: str = Field(alias="destinationUrl")
    last_clicked_at: Optional[int] = Field(default=None, alias="lastClickedAt")


class TracerLinkStats(TracerClickStats):
    """One row of the per-job drilldown; present even with zero clicks."""

    tracer_link_id: str = Field(alias="tracerLinkId")
    token: str
    source_path: str = Field(alias="sourcePath")
    source_label: str = Field(alias="sourceLabel")
    destination_url: str = Field(alias="destinationUrl")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    is_active: bool = Field(alias="isActive")
    last_clicked_at: Optional[int] = Field(default=None, alias="lastClickedAt")


class TracerAnalyticsFilters(BaseModel):
    """Echo of the filters actually applied."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: Optional[str] = Field(default=None, alias="jobId")
    from_: Optional[int] = Field(default=None, alias="from")
    to: Optional[int] = None
    include_bots: bool = Field(default=False, alias="includeBots")
    limit: int = 20


class TracerAnalyticsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filters: TracerAnalyticsFilters
    totals: TracerClickStats
    time_series: list[TracerTimeSeriesPoint] = Field(alias="timeSeries")
    top_jobs: list[TracerTopJob] = Field(alias="topJobs")
    top_links: list[TracerTopLink] = Field(alias="topLinks")


class JobSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    employer: str
    tracer_links_enabled: bool = Field(alias="tracerLinksEnabled")


class JobTracerLinksTotals(TracerClickStats):
    links: int = 0


class JobTracerLinksResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job: JobSummary
    totals: JobTracerLinksTotals
    links: list[TracerLinkStats]
