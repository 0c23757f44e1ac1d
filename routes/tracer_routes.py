"""
Tracer analytics API.

GET /api/tracer-links/analytics        — dashboard totals, daily series, top jobs/links
GET /api/tracer-links/jobs/{job_id}    — every tracer link of one job with its stats

Query strings are parsed into the request DTOs by hand so that pydantic
failures become a 400 ValidationError instead of FastAPI's default 422.
"""

from __future__ import annotations

from typing import TypeVar

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from dependencies import get_analytics_service, get_job_repo
from errors import NotFoundError, ValidationError
from repositories.job_repository import JobRepository
from schemas.dto.requests.tracer import (
    TracerAnalyticsQuery,
    TracerRangeQuery,
    validate_job_id,
)
from schemas.dto.responses.common import ErrorResponse
from schemas.dto.responses.tracer import JobTracerLinksResponse, TracerAnalyticsResponse
from services.analytics_service import AnalyticsService

router = APIRouter(prefix="/api/tracer-links", tags=["tracer"])

Q = TypeVar("Q", bound=BaseModel)

_VALUE_ERROR_PREFIX = "Value error, "

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed query or path parameter"},
    500: {"model": ErrorResponse, "description": "Internal error"},
}


def parse_query(model: type[Q], request: Request) -> Q:
    """Validate the request's query string against *model*.

    Raises:
        ValidationError: first failing field's message, with all pydantic
            errors attached as details.
    """
    try:
        return model.model_validate(dict(request.query_params))
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False)
        first = errors[0]
        message = first["msg"]
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(message, field=field, details=errors) from exc


@router.get(
    "/analytics",
    response_model=TracerAnalyticsResponse,
    response_model_by_alias=True,
    responses=ERROR_RESPONSES,
)
async def tracer_analytics(
    request: Request,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> TracerAnalyticsResponse:
    query = parse_query(TracerAnalyticsQuery, request)
    return await analytics.get_tracer_analytics(
        job_id=query.job_id,
        from_ts=query.from_,
        to_ts=query.to,
        include_bots=query.include_bots,
        limit=query.limit,
    )


@router.get(
    "/jobs/{job_id}",
    response_model=JobTracerLinksResponse,
    response_model_by_alias=True,
    responses={
        **ERROR_RESPONSES,
        404: {"model": ErrorResponse, "description": "Job not found"},
    },
)
async def job_tracer_links(
    job_id: str,
    request: Request,
    analytics: AnalyticsService = Depends(get_analytics_service),
    job_repo: JobRepository = Depends(get_job_repo),
) -> JobTracerLinksResponse:
    try:
        job_id = validate_job_id(job_id)
    except ValueError as exc:
        raise ValidationError(str(exc), field="jobId") from exc

    query = parse_query(TracerRangeQuery, request)

    job = await job_repo.get_job_by_id(job_id)
    if job is None:
        raise NotFoundError("Job not found")

    return await analytics.get_job_tracer_links_analytics(
        job,
        from_ts=query.from_,
        to_ts=query.to,
        include_bots=query.include_bots,
    )
