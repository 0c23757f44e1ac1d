"""
MongoDB repositories.

Each repository wraps one collection and returns document models; callers
never touch raw pymongo dicts.
"""

from repositories.click_event_repository import ClickEventRepository, ClickFilters
from repositories.indexes import ensure_indexes
from repositories.job_repository import JobRepository
from repositories.tracer_link_repository import TracerLinkRepository

__all__ = [
    "ClickEventRepository",
    "ClickFilters",
    "JobRepository",
    "TracerLinkRepository",
    "ensure_indexes",
]
