"""
URL validators and normalisers — framework-agnostic, pure functions.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

ALLOWED_SCHEMES = frozenset({"http", "https"})


def is_http_url(value: Optional[str]) -> bool:
    """Return True if *value* is an absolute ``http``/``https`` URL with a host.

    ``mailto:``, ``tel:`` and relative references are rejected.
    """
    if not value:
        return False
    try:
        parsed = urlsplit(value)
        hostname = parsed.hostname
    except ValueError:
        return False
    return parsed.scheme.lower() in ALLOWED_SCHEMES and bool(hostname)


def normalize_base_url(value: Optional[str]) -> Optional[str]:
    """Trim *value* and strip trailing slashes.

    Returns:
        The normalised base URL, or ``None`` when *value* is empty or is not
        an absolute http(s) URL.
    """
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed or not is_http_url(trimmed):
        return None
    return trimmed.rstrip("/")


def resolve_public_base_url(
    request_origin: Optional[str], fallback: Optional[str]
) -> Optional[str]:
    """Prefer the request-derived origin, then the configured fallback."""
    return normalize_base_url(request_origin) or normalize_base_url(fallback)
