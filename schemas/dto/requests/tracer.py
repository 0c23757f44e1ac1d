"""
Request DTOs for the tracer analytics endpoints.

TracerRangeQuery      — GET /api/tracer-links/jobs/{jobId}  (query parameters)
TracerAnalyticsQuery  — GET /api/tracer-links/analytics     (query parameters;
                        superset of TracerRangeQuery)

Query keys are camelCase on the wire (``includeBots``, ``jobId``); ``from`` is
a Python keyword so the attribute is ``from_``.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_LIMIT = 20
MAX_LIMIT = 500
JOB_ID_MAX_LENGTH = 255

_TRUTHY = frozenset({"1", "true", "yes"})


def parse_include_bots(value: Any) -> bool:
    """Coerce ``"1"``/``"true"``/``"yes"`` (any case) to True, anything else False."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def validate_job_id(value: Any) -> str:
    """Strip a job id and enforce 1–255 characters."""
    job_id = str(value).strip()
    if not job_id:
        raise ValueError("jobId must not be empty")
    if len(job_id) > JOB_ID_MAX_LENGTH:
        raise ValueError(f"jobId must be at most {JOB_ID_MAX_LENGTH} characters")
    return job_id


class TracerRangeQuery(BaseModel):
    """Time range and bot filter shared by both analytics endpoints."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Unix seconds, both bounds inclusive
    from_: Optional[int] = Field(default=None, alias="from", ge=0)
    to: Optional[int] = Field(default=None, ge=0)

    include_bots: bool = Field(default=False, alias="includeBots")

    @field_validator("include_bots", mode="before")
    @classmethod
    def _coerce_include_bots(cls, v: Any) -> bool:
        return parse_include_bots(v)

    @model_validator(mode="after")
    def _check_range(self) -> "TracerRangeQuery":
        if self.from_ is not None and self.to is not None and self.from_ > self.to:
            raise ValueError("`from` must be less than or equal to `to`.")
        return self


class TracerAnalyticsQuery(TracerRangeQuery):
    """Query parameters for GET /api/tracer-links/analytics."""

    job_id: Optional[str] = Field(default=None, alias="jobId")
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)

    @field_validator("job_id", mode="before")
    @classmethod
    def _validate_job_id(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return validate_job_id(v)
