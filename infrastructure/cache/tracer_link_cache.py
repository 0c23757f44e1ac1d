"""Redis cache for active tracer link lookups on the redirect path.

Entries are JSON (not pickle) so they stay debuggable. Only active links are
cached and misses are never cached, so an unknown token always reaches
MongoDB. Writers that deactivate or delete links call invalidate() so a cached
token stops resolving at once. Every Redis failure degrades to a cache miss.
"""

import json
from dataclasses import asdict, dataclass
from typing import Optional

import redis.asyncio as aioredis

from shared.logging import get_logger

log = get_logger(__name__)


@dataclass
class TracerLinkCacheData:
    """The subset of a tracer link the redirect path needs."""

    id: str  # MongoDB ObjectId as string
    token: str
    job_id: str
    destination_url: str


class TracerLinkCache:
    def __init__(
        self, redis_client: Optional[aioredis.Redis], ttl_seconds: int = 300
    ) -> None:
        self._redis = redis_client
        self.ttl_seconds = ttl_seconds

    def _key(self, token: str) -> str:
        return f"tracer_link:{token}"

    async def get(self, token: str) -> Optional[TracerLinkCacheData]:
        if self._redis is None:
            return None
        try:
            raw = await self._redis.get(self._key(token))
            if raw is None:
                return None
            return TracerLinkCacheData(**json.loads(raw))
        except Exception as e:
            log.warning("tracer_link_cache_get_error", tracer_token=token, error=str(e))
            return None

    async def set(self, data: TracerLinkCacheData) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.setex(
                self._key(data.token),
                self.ttl_seconds,
                json.dumps(asdict(data)),
            )
        except Exception as e:
            log.error("tracer_link_cache_set_error", tracer_token=data.token, error=str(e))

    async def invalidate(self, *tokens: str) -> None:
        """Drop cached entries. Must be called whenever a link stops resolving."""
        if self._redis is None or not tokens:
            return
        try:
            await self._redis.delete(*(self._key(t) for t in tokens))
            log.info("tracer_link_cache_invalidated", count=len(tokens))
        except Exception as e:
            log.error("tracer_link_cache_invalidate_error", count=len(tokens), error=str(e))
