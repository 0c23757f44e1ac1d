"""
Hashing helpers for tracer links and click fingerprints.

SHA-256 everywhere: destination URL hashes (part of the link uniqueness key),
IP-prefix hashes and daily visitor fingerprints.
"""

from __future__ import annotations

import hashlib
from typing import Optional


def hash_text(value: str) -> str:
    """Return the hex-encoded SHA-256 digest of *value* (UTF-8).

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def build_fingerprint_source(
    ip_prefix: Optional[str], user_agent: Optional[str], day_bucket: str
) -> str:
    """Return the ``"{ipPrefix}|{ua}|{day}"`` string hashed into a fingerprint.

    Missing parts are replaced by ``"na"``; the user agent is lowercased.
    """
    ua = (user_agent or "").strip().lower()
    return f"{ip_prefix or 'na'}|{ua or 'na'}|{day_bucket}"


def unique_fingerprint_hash(
    ip_prefix: Optional[str], user_agent: Optional[str], day_bucket: str
) -> Optional[str]:
    """Hash a per-day visitor fingerprint.

    Returns ``None`` when neither a coarsened IP nor a user agent is known,
    so anonymous-looking clicks never share one fingerprint bucket.
    """
    ua = (user_agent or "").strip()
    if not ip_prefix and not ua:
        return None
    return hash_text(build_fingerprint_source(ip_prefix, ua, day_bucket))
