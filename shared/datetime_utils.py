"""
Date/time helpers — framework-agnostic.

Click timestamps are stored as integer Unix seconds; day buckets are UTC
calendar days.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone


def now_unix_seconds() -> int:
    """Return the current time as whole Unix seconds."""
    return int(time.time())


def day_bucket_from_unix_seconds(seconds: int) -> str:
    """Return the UTC calendar day of *seconds* as ``YYYY-MM-DD``."""
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc).strftime("%Y-%m-%d")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
