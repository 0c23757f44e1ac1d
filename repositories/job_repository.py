"""
Read-only access to the `jobs` collection owned by the job tracker.
"""

from __future__ import annotations

from typing import Optional

from schemas.models.job import JobDoc

COLLECTION_NAME = "jobs"

_PROJECTION = {"_id": 1, "title": 1, "employer": 1, "tracer_links_enabled": 1, "updated_at": 1}


class JobRepository:
    def __init__(self, db):
        self.collection = db[COLLECTION_NAME]

    async def get_job_by_id(self, job_id: str) -> Optional[JobDoc]:
        doc = await self.collection.find_one({"_id": job_id}, _PROJECTION)
        return JobDoc.from_mongo(doc)

    async def get_jobs_by_ids(self, job_ids: list[str]) -> dict[str, JobDoc]:
        if not job_ids:
            return {}
        cursor = self.collection.find({"_id": {"$in": list(job_ids)}}, _PROJECTION)
        docs = await cursor.to_list(length=None)
        return {str(d["_id"]): JobDoc.from_mongo(d) for d in docs}
