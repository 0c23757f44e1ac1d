"""
Job document model (read-only view).

Maps to the `jobs` MongoDB collection, which belongs to the job tracker.
This service only reads the fields it shows next to tracer analytics.

`_id` is the tracker's own string job id, not an ObjectId, so the inherited
`id` field is overridden with a plain string.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from schemas.models.base import MongoBaseModel


class JobDoc(MongoBaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="ignore",
    )

    id: str = Field(alias="_id")

    title: str = ""
    employer: str = ""
    tracer_links_enabled: bool = False
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        return v if isinstance(v, str) else str(v)
