"""
Tracer link lifecycle writes.

Every write that makes a token stop resolving goes through here, so the
redirect cache is invalidated in the same call as the database change.
"""

from __future__ import annotations

from typing import Optional

from infrastructure.cache.tracer_link_cache import TracerLinkCache
from repositories.tracer_link_repository import TracerLinkRepository
from shared.logging import get_logger

log = get_logger(__name__)


class TracerLinkService:
    def __init__(
        self,
        link_repo: TracerLinkRepository,
        cache: Optional[TracerLinkCache] = None,
    ) -> None:
        self.link_repo = link_repo
        self.cache = cache

    async def _invalidate(self, *tokens: str) -> None:
        if self.cache is not None:
            await self.cache.invalidate(*tokens)

    async def deactivate_tracer_link(self, token: str) -> bool:
        found = await self.link_repo.set_tracer_link_active(token, False)
        if found:
            await self._invalidate(token)
            log.info("tracer_link_deactivated", tracer_token=token)
        return found

    async def reactivate_tracer_link(self, token: str) -> bool:
        found = await self.link_repo.set_tracer_link_active(token, True)
        if found:
            log.info("tracer_link_reactivated", tracer_token=token)
        return found

    async def delete_tracer_links_for_job(self, job_id: str) -> int:
        """Remove a job's links, e.g. when the job itself is deleted."""
        tokens = await self.link_repo.delete_links_by_job(job_id)
        await self._invalidate(*tokens)
        log.info("tracer_links_deleted", job_id=job_id, count=len(tokens))
        return len(tokens)
