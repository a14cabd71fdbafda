# backend/app/schemas/time_block.py
"""
Time block schemas for the Planner backend.

Request DTOs are strict (unknown fields rejected). Calendar projections are
loose on purpose: mobile and low-memory shaping drop fields, and the
calendar route serializes with ``exclude_none`` so dropped fields are
omitted rather than sent as null.
"""

import datetime
from typing import Any, List, Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.constants import (
    HEX_COLOR_PATTERN,
    MAX_DESCRIPTION_LENGTH,
    MAX_TITLE_LENGTH,
    MIN_TITLE_LENGTH,
)
from ..core.enums import CalendarViewType
from .base import StandardizedModel, StrictRequestModel

# Type aliases for clarity
DateType = datetime.date
DateTimeType = datetime.datetime


def _ends_before_start(start: Optional[DateTimeType], end: Optional[DateTimeType]) -> bool:
    # Mixed naive/aware pairs are ordered by the service once both are local
    if not start or not end or (start.tzinfo is None) != (end.tzinfo is None):
        return False
    return end <= start


class TimeBlockBase(StrictRequestModel):
    """Fields shared by create requests."""

    title: str = Field(..., min_length=MIN_TITLE_LENGTH, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    start_time: DateTimeType
    end_time: DateTimeType
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    task_id: Optional[str] = None


class TimeBlockCreate(TimeBlockBase):
    """Schema for scheduling a new time block."""

    model_config = StrictRequestModel.model_config

    @field_validator("end_time")
    @classmethod
    def validate_time_order(cls, v: DateTimeType, info: Any) -> DateTimeType:
        """Ensure end time is after start time."""
        data = getattr(info, "data", None)
        if isinstance(data, dict) and _ends_before_start(data.get("start_time"), v):
            raise ValueError("End time must be after start time")
        return v


class TimeBlockUpdate(StrictRequestModel):
    """
    Partial update. Only fields present in the request are applied.

    Time ordering is checked by the service after merging with the stored
    block, since either bound may be omitted here.
    """

    model_config = StrictRequestModel.model_config

    title: Optional[str] = Field(None, min_length=MIN_TITLE_LENGTH, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    start_time: Optional[DateTimeType] = None
    end_time: Optional[DateTimeType] = None
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    task_id: Optional[str] = None
    last_synced: Optional[DateTimeType] = None

    @field_validator("end_time")
    @classmethod
    def validate_time_order(cls, v: Optional[DateTimeType], info: Any) -> Optional[DateTimeType]:
        """Ensure end time is after start time if both provided."""
        data = getattr(info, "data", None)
        if isinstance(data, dict) and _ends_before_start(data.get("start_time"), v):
            raise ValueError("End time must be after start time")
        return v


class TimeBlockResponse(StandardizedModel):
    """Persisted time block."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    start_time: DateTimeType
    end_time: DateTimeType
    color: Optional[str] = None
    user_id: str
    task_id: Optional[str] = None
    task_title: str = ""
    version: int
    last_synced: Optional[DateTimeType] = None
    created_at: Optional[DateTimeType] = None
    updated_at: Optional[DateTimeType] = None


class CalendarBlockPosition(StandardizedModel):
    """Layout box on the calendar grid (percent width, 1000-unit day height)."""

    top: float
    left: float
    height: float
    width: float


class CalendarTimeBlock(StandardizedModel):
    """A time block as projected into a calendar view."""

    id: str
    title: str
    description: Optional[str] = None
    start_time: DateTimeType
    end_time: DateTimeType
    color: Optional[str] = None
    task_id: Optional[str] = None
    task_title: Optional[str] = None
    position: Optional[CalendarBlockPosition] = None
    display_date: Optional[DateType] = None
    event_count: Optional[int] = None


class CalendarPagination(StandardizedModel):
    total: int
    page: int
    page_size: int
    total_pages: int


class CalendarViewResponse(StandardizedModel):
    """Computed calendar view for one reference date."""

    view_type: CalendarViewType
    reference_date: DateType
    start_date: DateTimeType
    end_date: DateTimeType
    previous_reference_date: Optional[DateType] = None
    next_reference_date: Optional[DateType] = None
    time_blocks: List[CalendarTimeBlock] = Field(default_factory=list)
    pagination: Optional[CalendarPagination] = None


class TimeBlockListResponse(StandardizedModel):
    time_blocks: List[TimeBlockResponse]
    total: int
