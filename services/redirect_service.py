"""
Tracer redirect resolution.

resolve() looks up an active link by token, records exactly one click event,
and only then hands back the destination. The click insert is awaited before
returning, so a failed insert fails the redirect instead of losing the click.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from bson import ObjectId

from infrastructure.cache.tracer_link_cache import TracerLinkCache, TracerLinkCacheData
from repositories.click_event_repository import ClickEventRepository
from repositories.tracer_link_repository import TracerLinkRepository
from schemas.models.click_event import TracerClickEventDoc
from shared.bot_detection import get_bot_name
from shared.datetime_utils import now_unix_seconds
from shared.fingerprint import build_click_signals
from shared.logging import get_logger, log_with_context, should_sample

log = get_logger(__name__)


@dataclass(frozen=True)
class RedirectTarget:
    destination_url: str
    job_id: str


class RedirectService:
    def __init__(
        self,
        link_repo: TracerLinkRepository,
        click_repo: ClickEventRepository,
        cache: Optional[TracerLinkCache] = None,
        clock: Callable[[], int] = now_unix_seconds,
    ) -> None:
        self.link_repo = link_repo
        self.click_repo = click_repo
        self.cache = cache
        self.clock = clock

    async def _lookup(self, token: str) -> Optional[TracerLinkCacheData]:
        if self.cache is not None:
            cached = await self.cache.get(token)
            if cached is not None:
                return cached

        link = await self.link_repo.find_active_tracer_link_by_token(token)
        if link is None:
            return None

        data = TracerLinkCacheData(
            id=str(link.id),
            token=link.token,
            job_id=link.job_id,
            destination_url=link.destination_url,
        )
        if self.cache is not None:
            await self.cache.set(data)
        return data

    async def resolve(
        self,
        token: str,
        *,
        request_id: Optional[str] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
    ) -> Optional[RedirectTarget]:
        """Return the redirect target for *token*, or None if unknown/inactive.

        Unknown and deactivated tokens are indistinguishable to the caller.
        Click insert errors propagate.
        """
        link = await self._lookup(token)
        if link is None:
            return None

        signals = build_click_signals(
            clicked_at=self.clock(),
            ip=ip,
            user_agent=user_agent,
            referrer=referrer,
        )
        event = TracerClickEventDoc(
            tracer_link_id=ObjectId(link.id),
            job_id=link.job_id,
            clicked_at=signals.clicked_at,
            day_bucket=signals.day_bucket,
            request_id=request_id,
            is_likely_bot=signals.is_likely_bot,
            device_type=signals.device_type,
            ua_family=signals.ua_family,
            os_family=signals.os_family,
            referrer_host=signals.referrer_host,
            ip_hash=signals.ip_hash,
            unique_fingerprint_hash=signals.unique_fingerprint_hash,
        )
        await self.click_repo.insert_tracer_click_event(event)

        if should_sample("tracer_redirect"):
            rlog = log_with_context(log, request_id=request_id, tracer_token=token)
            rlog.info(
                "tracer_redirect",
                job_id=link.job_id,
                is_likely_bot=signals.is_likely_bot,
                bot_name=get_bot_name(user_agent),
                device_type=signals.device_type,
                ua_family=signals.ua_family,
                referrer_host=signals.referrer_host,
            )

        return RedirectTarget(destination_url=link.destination_url, job_id=link.job_id)
