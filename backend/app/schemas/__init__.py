# backend/app/schemas/__init__.py
"""
Pydantic schemas for the Planner backend.
"""

from .base import StandardizedModel, StrictModel, StrictRequestModel
from .time_block import (
    CalendarBlockPosition,
    CalendarPagination,
    CalendarTimeBlock,
    CalendarViewResponse,
    TimeBlockCreate,
    TimeBlockListResponse,
    TimeBlockResponse,
    TimeBlockUpdate,
)

__all__ = [
    "CalendarBlockPosition",
    "CalendarPagination",
    "CalendarTimeBlock",
    "CalendarViewResponse",
    "StandardizedModel",
    "StrictModel",
    "StrictRequestModel",
    "TimeBlockCreate",
    "TimeBlockListResponse",
    "TimeBlockResponse",
    "TimeBlockUpdate",
]
