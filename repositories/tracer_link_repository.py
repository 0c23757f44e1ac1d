"""
Repository for the `tracer-links` collection.

Links are created idempotently per (job_id, source_path, destination_url_hash).
After creation only is_active and updated_at change, and only through
set_tracer_link_active().
"""

from __future__ import annotations

from typing import Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from errors import TracerLinkCreationError
from schemas.models.tracer_link import TracerLinkDoc
from shared.datetime_utils import utc_now
from shared.generators import generate_tracer_token
from shared.logging import get_logger

log = get_logger(__name__)

COLLECTION_NAME = "tracer-links"


class TracerLinkRepository:
    def __init__(self, db, *, max_attempts: int = 5, token_length: int = 10):
        self.collection = db[COLLECTION_NAME]
        self.max_attempts = max_attempts
        self.token_length = token_length

    async def find_by_key(
        self, job_id: str, source_path: str, destination_url_hash: str
    ) -> Optional[TracerLinkDoc]:
        doc = await self.collection.find_one(
            {
                "job_id": job_id,
                "source_path": source_path,
                "destination_url_hash": destination_url_hash,
            }
        )
        return TracerLinkDoc.from_mongo(doc)

    async def get_or_create_tracer_link(
        self,
        *,
        job_id: str,
        source_path: str,
        source_label: str,
        destination_url: str,
        destination_url_hash: str,
        slug_prefix: str,
    ) -> TracerLinkDoc:
        """Return the link for the triple, creating it when missing.

        An existing row is returned untouched even if destination_url differs
        in surface form; the hash is authoritative. A DuplicateKeyError on
        insert means either a concurrent creator won the triple (re-fetch and
        return the winner) or the random token collided (retry with a new one).

        Raises:
            TracerLinkCreationError: max_attempts inserts all conflicted
                without a winner becoming visible.
        """
        existing = await self.find_by_key(job_id, source_path, destination_url_hash)
        if existing is not None:
            return existing

        for attempt in range(1, self.max_attempts + 1):
            now = utc_now()
            link = TracerLinkDoc(
                token=generate_tracer_token(slug_prefix, self.token_length),
                job_id=job_id,
                source_path=source_path,
                source_label=source_label,
                destination_url=destination_url,
                destination_url_hash=destination_url_hash,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            try:
                result = await self.collection.insert_one(link.to_mongo())
            except DuplicateKeyError:
                winner = await self.find_by_key(
                    job_id, source_path, destination_url_hash
                )
                if winner is not None:
                    log.info(
                        "tracer_link_create_race_lost",
                        job_id=job_id,
                        source_path=source_path,
                        attempt=attempt,
                    )
                    return winner
                log.warning(
                    "tracer_link_token_collision",
                    job_id=job_id,
                    source_path=source_path,
                    attempt=attempt,
                )
                continue

            link.id = result.inserted_id
            log.info(
                "tracer_link_created",
                job_id=job_id,
                source_path=source_path,
                tracer_token=link.token,
            )
            return link

        log.error(
            "tracer_link_create_failed",
            job_id=job_id,
            source_path=source_path,
            attempts=self.max_attempts,
        )
        raise TracerLinkCreationError(
            f"Could not create tracer link for {source_path!r} "
            f"after {self.max_attempts} attempts"
        )

    async def find_active_tracer_link_by_token(
        self, token: str
    ) -> Optional[TracerLinkDoc]:
        doc = await self.collection.find_one({"token": token, "is_active": True})
        return TracerLinkDoc.from_mongo(doc)

    async def list_links_by_job(self, job_id: str) -> list[TracerLinkDoc]:
        cursor = self.collection.find(
            {"job_id": job_id}, sort=[("created_at", 1), ("_id", 1)]
        )
        docs = await cursor.to_list(length=None)
        return [TracerLinkDoc.from_mongo(d) for d in docs]

    async def get_links_by_ids(self, ids: list) -> dict[str, TracerLinkDoc]:
        """Fetch links by ObjectId; returns a dict keyed by the id as string."""
        if not ids:
            return {}
        object_ids = [i if isinstance(i, ObjectId) else ObjectId(i) for i in ids]
        cursor = self.collection.find({"_id": {"$in": object_ids}})
        docs = await cursor.to_list(length=None)
        return {str(d["_id"]): TracerLinkDoc.from_mongo(d) for d in docs}

    async def set_tracer_link_active(self, token: str, is_active: bool) -> bool:
        """Flip is_active for one token. Returns False when the token is unknown."""
        result = await self.collection.update_one(
            {"token": token},
            {"$set": {"is_active": is_active, "updated_at": utc_now()}},
        )
        return result.matched_count > 0

    async def delete_links_by_job(self, job_id: str) -> list[str]:
        """Delete every link of a job and return the tokens that were removed."""
        cursor = self.collection.find({"job_id": job_id}, projection={"token": 1})
        tokens = [d["token"] for d in await cursor.to_list(length=None)]
        if tokens:
            await self.collection.delete_many({"job_id": job_id})
        return tokens
