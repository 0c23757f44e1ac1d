"""
Tracer click event document model.

Maps to the `tracer-click-events` MongoDB collection. Append-only: one
document per resolved redirect, bots included.

job_id and day_bucket are copies derived at insert time (the owning link's
job and the UTC day of clicked_at) so job filters and daily series need no
join. ip_hash is SHA-256 of the coarsened IP prefix, never of the raw IP.
"""

from __future__ import annotations

from typing import Optional

from schemas.models.base import MongoBaseModel, PyObjectId


class TracerClickEventDoc(MongoBaseModel):
    """Document model for the `tracer-click-events` collection."""

    tracer_link_id: PyObjectId
    job_id: str

    clicked_at: int  # Unix seconds
    day_bucket: str  # YYYY-MM-DD (UTC)
    request_id: Optional[str] = None

    is_likely_bot: bool = False
    device_type: str = "unknown"
    ua_family: str = "unknown"
    os_family: str = "unknown"
    referrer_host: Optional[str] = None

    ip_hash: Optional[str] = None
    unique_fingerprint_hash: Optional[str] = None
