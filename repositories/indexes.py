"""
Index definitions, applied once at startup by the app lifespan.

create_index is idempotent in MongoDB, so running this on every boot is safe.
"""

from __future__ import annotations

from pymongo import ASCENDING, DESCENDING

from repositories.click_event_repository import COLLECTION_NAME as CLICKS
from repositories.tracer_link_repository import COLLECTION_NAME as LINKS
from shared.logging import get_logger

log = get_logger(__name__)


async def ensure_indexes(db) -> None:
    links = db[LINKS]
    await links.create_index([("token", ASCENDING)], unique=True)
    await links.create_index(
        [
            ("job_id", ASCENDING),
            ("source_path", ASCENDING),
            ("destination_url_hash", ASCENDING),
        ],
        unique=True,
    )
    await links.create_index([("job_id", ASCENDING), ("created_at", ASCENDING)])

    clicks = db[CLICKS]
    await clicks.create_index(
        [("tracer_link_id", ASCENDING), ("clicked_at", DESCENDING)]
    )
    await clicks.create_index([("job_id", ASCENDING), ("clicked_at", DESCENDING)])
    await clicks.create_index([("clicked_at", DESCENDING)])

    log.info("indexes_ensured", collections=[LINKS, CLICKS])
