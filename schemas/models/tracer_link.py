"""
Tracer link document model.

Maps to the `tracer-links` MongoDB collection.

One document per (job_id, source_path, destination_url_hash). The hash, not
the URL itself, takes part in the unique index so long URLs never end up in
an index key. token is the public path segment of /t/{token} and never
changes once written.
"""

from __future__ import annotations

from datetime import datetime

from schemas.models.base import MongoBaseModel


class TracerLinkDoc(MongoBaseModel):
    """Document model for the `tracer-links` collection."""

    token: str
    job_id: str
    source_path: str
    source_label: str
    destination_url: str
    destination_url_hash: str
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
