"""
Client IP resolution for FastAPI requests.

The resolved IP is only ever handed to ``shared.fingerprint`` for coarsening;
it is not stored or logged.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

PROXY_IP_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
    "X-Client-IP",
)


def get_client_ip(request: Request, trust_proxy_headers: bool = True) -> Optional[str]:
    """Extract the client IP from a FastAPI ``Request``.

    With *trust_proxy_headers* the proxy headers are checked in priority order
    (Cloudflare, Akamai, ``X-Forwarded-For`` first hop, nginx ``X-Real-IP``,
    ``X-Client-IP``) before falling back to the socket peer address.

    Returns:
        The resolved IP string, or ``None`` if none can be found.
    """
    if trust_proxy_headers:
        for header in PROXY_IP_HEADERS:
            ip_value: Optional[str] = request.headers.get(header)
            if ip_value:
                client_ip = ip_value.split(",")[0].strip()
                if client_ip:
                    return client_ip

    return request.client.host if request.client else None
