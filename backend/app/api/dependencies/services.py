# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.calendar_cache import CalendarViewCache
from ...services.time_block_service import TimeBlockService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_calendar_cache_singleton() -> CalendarViewCache:
    """Get the process-wide calendar view cache."""
    logger.info("Creating calendar view cache")
    return CalendarViewCache()


def get_calendar_cache() -> CalendarViewCache:
    """Get calendar view cache for dependency injection."""
    return get_calendar_cache_singleton()


def get_time_block_service(
    db: Session = Depends(get_db),
    cache: CalendarViewCache = Depends(get_calendar_cache),
) -> TimeBlockService:
    """
    Get time block service instance with all dependencies.

    Args:
        db: Database session
        cache: Shared calendar view cache

    Returns:
        TimeBlockService instance
    """
    return TimeBlockService(db, cache)
