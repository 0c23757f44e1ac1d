"""
Click fingerprinting and user-agent classification — pure functions.

Every function here is total: malformed input degrades to ``"unknown"`` or
``None`` and never raises, because classification runs on the public
redirect path.

Privacy boundary: the raw client IP is coarsened by ``normalize_ip_prefix``
(IPv4 ``/24``, IPv6 ``/64``) before anything is hashed. Only hashes of the
prefix are stored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from shared.bot_detection import BOT_UA_PATTERN, is_likely_bot_user_agent
from shared.crypto import hash_text, unique_fingerprint_hash
from shared.datetime_utils import day_bucket_from_unix_seconds

_IPV4_RE = re.compile(r"^\d+\.\d+\.\d+\.\d+$")
_IPV4_MAPPED_PREFIX = "::ffff:"

_TABLET_RE = re.compile(r"(tablet|ipad)")
_MOBILE_RE = re.compile(r"(mobile|iphone|android)")
_DESKTOP_RE = re.compile(r"(windows|macintosh|linux|x11|cros)")


def classify_device_type(user_agent: Optional[str]) -> str:
    # Tablets often also carry "mobile"/"android", so check them first
    ua = (user_agent or "").lower()
    if _TABLET_RE.search(ua):
        return "tablet"
    if _MOBILE_RE.search(ua):
        return "mobile"
    if _DESKTOP_RE.search(ua):
        return "desktop"
    return "unknown"


def classify_ua_family(user_agent: Optional[str]) -> str:
    # Edge and Opera UAs also contain "chrome/"
    ua = (user_agent or "").lower()
    if "edg/" in ua:
        return "edge"
    if "opr/" in ua or "opera" in ua:
        return "opera"
    if "chrome/" in ua:
        return "chrome"
    if "firefox/" in ua:
        return "firefox"
    if "safari/" in ua:
        return "safari"
    if BOT_UA_PATTERN.search(ua):
        return "bot"
    return "unknown"


def classify_os_family(user_agent: Optional[str]) -> str:
    ua = (user_agent or "").lower()
    if "windows" in ua:
        return "windows"
    if "android" in ua:
        return "android"
    if "iphone" in ua or "ipad" in ua or "ios" in ua:
        return "ios"
    if "mac os" in ua or "macintosh" in ua:
        return "macos"
    if "linux" in ua:
        return "linux"
    return "unknown"


def normalize_ip_prefix(ip: Optional[str]) -> Optional[str]:
    """Coarsen *ip* to a network prefix.

    - ``203.0.113.42`` → ``203.0.113.0/24``
    - ``::ffff:203.0.113.42`` → ``203.0.113.0/24``
    - ``2001:db8:85a3:8d3:1319:8a2e:370:7348`` → ``2001:db8:85a3:8d3::/64``

    Returns:
        The prefix string, or ``None`` for empty or unrecognised input.
    """
    if not ip:
        return None
    cleaned = ip.strip()
    if not cleaned:
        return None

    if cleaned.lower().startswith(_IPV4_MAPPED_PREFIX):
        cleaned = cleaned[len(_IPV4_MAPPED_PREFIX):]

    if _IPV4_RE.match(cleaned):
        octets = cleaned.split(".")
        return f"{octets[0]}.{octets[1]}.{octets[2]}.0/24"

    if ":" in cleaned:
        groups = [part for part in cleaned.split(":") if part][:4]
        if not groups:
            return None
        return f"{':'.join(groups)}::/64"

    return None


def get_referrer_host(referrer: Optional[str]) -> Optional[str]:
    """Return the host (with port, without credentials) of *referrer*.

    Returns ``None`` for empty input or anything that is not an absolute URL.
    """
    if not referrer:
        return None
    try:
        parsed = urlsplit(referrer.strip())
        netloc = parsed.netloc
    except ValueError:
        return None
    if not parsed.scheme or not netloc:
        return None
    host = netloc.rpartition("@")[2].lower()
    return host or None


@dataclass(frozen=True)
class ClickSignals:
    """Privacy-safe signals derived from one redirect request."""

    clicked_at: int
    day_bucket: str
    is_likely_bot: bool
    device_type: str
    ua_family: str
    os_family: str
    referrer_host: Optional[str]
    ip_hash: Optional[str]
    unique_fingerprint_hash: Optional[str]


def build_click_signals(
    *,
    clicked_at: int,
    ip: Optional[str],
    user_agent: Optional[str],
    referrer: Optional[str],
) -> ClickSignals:
    """Classify a request and derive its hashes. The raw IP does not escape."""
    ua = (user_agent or "").strip()
    day_bucket = day_bucket_from_unix_seconds(clicked_at)
    ip_prefix = normalize_ip_prefix(ip)

    return ClickSignals(
        clicked_at=clicked_at,
        day_bucket=day_bucket,
        is_likely_bot=is_likely_bot_user_agent(ua),
        device_type=classify_device_type(ua),
        ua_family=classify_ua_family(ua),
        os_family=classify_os_family(ua),
        referrer_host=get_referrer_host(referrer),
        ip_hash=hash_text(ip_prefix) if ip_prefix else None,
        unique_fingerprint_hash=unique_fingerprint_hash(ip_prefix, ua, day_bucket),
    )
