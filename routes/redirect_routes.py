"""
Public tracer redirect.

GET /t/{token} — record a click and 302 to the stored destination.
Unknown and deactivated tokens both answer 404 with the same body.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from config import AppSettings
from dependencies import get_redirect_service, get_settings
from errors import NotFoundError
from services.link_rewriter import TRACER_PATH_PREFIX
from services.redirect_service import RedirectService
from shared.ip_utils import get_client_ip

router = APIRouter(prefix=TRACER_PATH_PREFIX, tags=["tracer"])


@router.get("/{token}", include_in_schema=False)
async def tracer_redirect(
    token: str,
    request: Request,
    redirect_service: RedirectService = Depends(get_redirect_service),
    settings: AppSettings = Depends(get_settings),
) -> RedirectResponse:
    target = await redirect_service.resolve(
        token,
        request_id=getattr(request.state, "request_id", None),
        ip=get_client_ip(request, settings.trust_proxy_headers),
        user_agent=request.headers.get("User-Agent"),
        referrer=request.headers.get("Referer") or request.headers.get("Referrer"),
    )
    if target is None:
        raise NotFoundError("Tracer link not found")

    return RedirectResponse(
        url=target.destination_url,
        status_code=302,
        headers={"Cache-Control": "no-store"},
    )
