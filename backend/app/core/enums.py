# backend/app/core/enums.py
"""
Core enums for the Planner backend.

This module contains enumeration types used throughout the application
for type safety and consistency.
"""

from enum import Enum


class CalendarViewType(str, Enum):
    """
    Calendar view resolutions.

    Each view maps to a canonical date range (see DateRangeCalculator)
    and a base cache TTL.
    """

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class SortOrder(str, Enum):
    """Sort direction for paginated listings."""

    ASC = "asc"
    DESC = "desc"


class TimeBlockSortField(str, Enum):
    """Fields a time block listing can be sorted by."""

    TITLE = "title"
    START_TIME = "start_time"
    END_TIME = "end_time"
