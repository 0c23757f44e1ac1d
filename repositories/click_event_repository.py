"""
Repository for the `tracer-click-events` collection.

Writes are unconditional appends. Reads are aggregates that all share the
ClickFilters shape.

Every aggregate runs the same pipeline: $match on job/time range, then three
$group stages. The first groups by (dimension, is_likely_bot, fingerprint), the
second folds the bot and human halves of each fingerprint together, and the
third counts per dimension. Distinct fingerprints are therefore counted on the
server and no group ever carries the fingerprint values themselves. Bot rows
are always fetched and includeBots is applied while reading the result, which
is what lets bot_clicks be reported even when bots are excluded from clicks
and uniqueOpens. A fingerprint seen from both a bot and a human counts once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from bson import ObjectId

from repositories.job_repository import JobRepository
from repositories.tracer_link_repository import TracerLinkRepository
from schemas.dto.responses.tracer import (
    TracerClickStats,
    TracerLinkStats,
    TracerTimeSeriesPoint,
    TracerTopJob,
    TracerTopLink,
)
from schemas.models.click_event import TracerClickEventDoc

COLLECTION_NAME = "tracer-click-events"

DEFAULT_LIMIT = 20
MAX_LIMIT = 500


def normalize_limit(limit: Optional[int]) -> int:
    """Default to 20 and clamp into [1, 500]; out-of-range values are not errors."""
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(int(limit), MAX_LIMIT))


@dataclass
class ClickFilters:
    job_id: Optional[str] = None
    from_ts: Optional[int] = None
    to_ts: Optional[int] = None
    include_bots: bool = False
    limit: int = DEFAULT_LIMIT

    def to_match(self) -> dict:
        match: dict[str, Any] = {}
        if self.job_id:
            match["job_id"] = self.job_id
        clicked_at: dict[str, int] = {}
        if self.from_ts is not None:
            clicked_at["$gte"] = self.from_ts
        if self.to_ts is not None:
            clicked_at["$lte"] = self.to_ts
        if clicked_at:
            match["clicked_at"] = clicked_at
        return match


@dataclass
class _Bucket:
    clicks: int = 0
    bot_clicks: int = 0
    human_clicks: int = 0
    unique_opens: int = 0
    last_clicked_at: Optional[int] = None

    def stats(self) -> dict:
        return {
            "clicks": self.clicks,
            "unique_opens": self.unique_opens,
            "bot_clicks": self.bot_clicks,
            "human_clicks": self.human_clicks,
        }


def _recency(value: Optional[datetime]) -> float:
    return value.timestamp() if value is not None else 0.0


def _rank_key(clicks: int, last_clicked_at: Optional[int], recency: float):
    return (-clicks, -(last_clicked_at or 0), -recency)


class ClickEventRepository:
    def __init__(
        self,
        db,
        *,
        link_repo: Optional[TracerLinkRepository] = None,
        job_repo: Optional[JobRepository] = None,
    ):
        self.collection = db[COLLECTION_NAME]
        self.link_repo = link_repo or TracerLinkRepository(db)
        self.job_repo = job_repo or JobRepository(db)

    async def insert_tracer_click_event(self, event: TracerClickEventDoc) -> ObjectId:
        """Append one click event. Errors propagate to the caller."""
        result = await self.collection.insert_one(event.to_mongo())
        return result.inserted_id

    # ── aggregation helpers ──────────────────────────────────────────────────

    def _build_pipeline(self, filters: ClickFilters, dimension: Optional[str]) -> list:
        first_id: dict[str, Any] = {
            "bot": "$is_likely_bot",
            "fp": {"$ifNull": ["$unique_fingerprint_hash", ""]},
        }
        second_id: dict[str, Any] = {"fp": "$_id.fp"}
        if dimension is not None:
            first_id["key"] = f"${dimension}"
            second_id["key"] = "$_id.key"
        is_bot = "$_id.bot"
        has_fingerprint = {"$ne": ["$_id.fp", ""]}
        return [
            {"$match": filters.to_match()},
            # one row per (dimension, bot, fingerprint); "" stands for no fingerprint
            {
                "$group": {
                    "_id": first_id,
                    "clicks": {"$sum": 1},
                    "last_clicked_at": {"$max": "$clicked_at"},
                }
            },
            # fold bot and human halves of each fingerprint together
            {
                "$group": {
                    "_id": second_id,
                    "human_clicks": {"$sum": {"$cond": [is_bot, 0, "$clicks"]}},
                    "bot_clicks": {"$sum": {"$cond": [is_bot, "$clicks", 0]}},
                    "human_last": {"$max": {"$cond": [is_bot, None, "$last_clicked_at"]}},
                    "bot_last": {"$max": {"$cond": [is_bot, "$last_clicked_at", None]}},
                }
            },
            {
                "$group": {
                    "_id": None if dimension is None else "$_id.key",
                    "human_clicks": {"$sum": "$human_clicks"},
                    "bot_clicks": {"$sum": "$bot_clicks"},
                    "human_opens": {
                        "$sum": {
                            "$cond": [
                                {"$and": [has_fingerprint, {"$gt": ["$human_clicks", 0]}]},
                                1,
                                0,
                            ]
                        }
                    },
                    "all_opens": {"$sum": {"$cond": [has_fingerprint, 1, 0]}},
                    "human_last": {"$max": "$human_last"},
                    "bot_last": {"$max": "$bot_last"},
                }
            },
        ]

    async def _grouped(
        self, filters: ClickFilters, dimension: Optional[str] = None
    ) -> dict[Any, _Bucket]:
        cursor = await self.collection.aggregate(
            self._build_pipeline(filters, dimension), allowDiskUse=True
        )
        rows = await cursor.to_list(length=None)

        buckets: dict[Any, _Bucket] = {}
        for row in rows:
            human_last = row.get("human_last")
            bucket = _Bucket(
                clicks=row["human_clicks"],
                bot_clicks=row["bot_clicks"],
                human_clicks=row["human_clicks"],
                unique_opens=row["human_opens"],
                last_clicked_at=human_last,
            )
            if filters.include_bots:
                bucket.clicks += row["bot_clicks"]
                bucket.unique_opens = row["all_opens"]
                stamps = [t for t in (human_last, row.get("bot_last")) if t is not None]
                bucket.last_clicked_at = max(stamps) if stamps else None
            buckets[row["_id"]] = bucket
        return buckets

    # ── aggregates ───────────────────────────────────────────────────────────

    async def get_tracer_analytics_totals(self, filters: ClickFilters) -> TracerClickStats:
        buckets = await self._grouped(filters)
        bucket = buckets.get(None, _Bucket())
        return TracerClickStats(**bucket.stats())

    async def get_tracer_analytics_time_series(
        self, filters: ClickFilters
    ) -> list[TracerTimeSeriesPoint]:
        buckets = await self._grouped(filters, "day_bucket")
        return [
            TracerTimeSeriesPoint(day=day, **bucket.stats())
            for day, bucket in sorted(buckets.items(), key=lambda kv: kv[0] or "")
            if day and bucket.clicks > 0
        ]

    async def get_tracer_analytics_top_jobs(
        self, filters: ClickFilters
    ) -> list[TracerTopJob]:
        buckets = await self._grouped(filters, "job_id")
        buckets = {k: b for k, b in buckets.items() if k and b.clicks > 0}
        jobs = await self.job_repo.get_jobs_by_ids(list(buckets))

        ranked = []
        for job_id, bucket in buckets.items():
            job = jobs.get(job_id)
            if job is None:
                continue
            ranked.append(
                (
                    _rank_key(bucket.clicks, bucket.last_clicked_at, _recency(job.updated_at)),
                    TracerTopJob(
                        job_id=job_id,
                        title=job.title,
                        employer=job.employer,
                        last_clicked_at=bucket.last_clicked_at,
                        **bucket.stats(),
                    ),
                )
            )
        ranked.sort(key=lambda pair: pair[0])
        return [row for _, row in ranked[: normalize_limit(filters.limit)]]

    async def get_tracer_analytics_top_links(
        self, filters: ClickFilters
    ) -> list[TracerTopLink]:
        buckets = await self._grouped(filters, "tracer_link_id")
        buckets = {str(k): b for k, b in buckets.items() if k and b.clicks > 0}
        links = await self.link_repo.get_links_by_ids(list(buckets))
        jobs = await self.job_repo.get_jobs_by_ids(
            sorted({link.job_id for link in links.values()})
        )

        ranked = []
        for link_id, bucket in buckets.items():
            link = links.get(link_id)
            job = jobs.get(link.job_id) if link is not None else None
            if link is None or job is None:
                continue
            ranked.append(
                (
                    _rank_key(bucket.clicks, bucket.last_clicked_at, _recency(link.updated_at)),
                    TracerTopLink(
                        tracer_link_id=link_id,
                        token=link.token,
                        job_id=link.job_id,
                        title=job.title,
                        employer=job.employer,
                        source_path=link.source_path,
                        source_label=link.source_label,
                        destination_url=link.destination_url,
                        last_clicked_at=bucket.last_clicked_at,
                        **bucket.stats(),
                    ),
                )
            )
        ranked.sort(key=lambda pair: pair[0])
        return [row for _, row in ranked[: normalize_limit(filters.limit)]]

    async def list_tracer_link_stats_by_job(
        self, job_id: str, filters: ClickFilters
    ) -> list[TracerLinkStats]:
        """Every link of the job with its stats, zero-click links included."""
        links = await self.link_repo.list_links_by_job(job_id)
        if not links:
            return []
        scoped = ClickFilters(
            job_id=job_id,
            from_ts=filters.from_ts,
            to_ts=filters.to_ts,
            include_bots=filters.include_bots,
            limit=filters.limit,
        )
        buckets = {str(k): b for k, b in (await self._grouped(scoped, "tracer_link_id")).items()}

        ranked = []
        for link in links:
            link_id = str(link.id)
            bucket = buckets.get(link_id, _Bucket())
            ranked.append(
                (
                    _rank_key(bucket.clicks, bucket.last_clicked_at, _recency(link.updated_at)),
                    TracerLinkStats(
                        tracer_link_id=link_id,
                        token=link.token,
                        source_path=link.source_path,
                        source_label=link.source_label,
                        destination_url=link.destination_url,
                        created_at=link.created_at,
                        updated_at=link.updated_at,
                        is_active=link.is_active,
                        last_clicked_at=bucket.last_clicked_at,
                        **bucket.stats(),
                    ),
                )
            )
        ranked.sort(key=lambda pair: pair[0])
        return [row for _, row in ranked]
