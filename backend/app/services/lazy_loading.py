# backend/app/services/lazy_loading.py
"""
Viewport-first loading helpers for long calendar lists.

A block is in the viewport when it starts on or before the viewport end
and ends on or after the viewport start.
"""

from datetime import datetime
import logging
from typing import Any, Dict, Iterable, Iterator, List, Union

from ..core.constants import DEFAULT_LAZY_LOAD_BATCH_SIZE
from ..core.enums import CalendarViewType
from ..core.exceptions import ValidationException
from .calendar_data_aggregator import Projection, to_projection
from .date_range_calculator import parse_view_type
from .mobile_optimization import summarize_by_day

logger = logging.getLogger(__name__)

ZOOMED_OUT_LEVEL = 0.5


def in_viewport(block: Projection, viewport_start: datetime, viewport_end: datetime) -> bool:
    return block["start_time"] <= viewport_end and block["end_time"] >= viewport_start


def load_incrementally(
    time_blocks: Iterable[Any],
    viewport_start: datetime,
    viewport_end: datetime,
    batch_size: int = DEFAULT_LAZY_LOAD_BATCH_SIZE,
) -> Iterator[List[Projection]]:
    """
    Yield batches of at most ``batch_size`` projections.

    Blocks visible in the viewport come first; each group is chronological.
    """
    if batch_size < 1:
        raise ValidationException("Batch size must be positive", code="INVALID_BATCH_SIZE")

    projections = [to_projection(block) for block in time_blocks]
    ordered = sorted(
        projections,
        key=lambda p: (not in_viewport(p, viewport_start, viewport_end), p["start_time"]),
    )
    for offset in range(0, len(ordered), batch_size):
        yield ordered[offset : offset + batch_size]


def load_with_progressive_enhancement(
    time_blocks: Iterable[Any],
    viewport_start: datetime,
    viewport_end: datetime,
) -> Dict[str, List[Projection]]:
    """Split into ``primary`` (in viewport) and ``secondary`` projections, input order kept."""
    primary: List[Projection] = []
    secondary: List[Projection] = []
    for block in time_blocks:
        projection = to_projection(block)
        if in_viewport(projection, viewport_start, viewport_end):
            primary.append(projection)
        else:
            secondary.append(projection)

    logger.debug(f"Loaded {len(primary)} primary and {len(secondary)} secondary time blocks")
    return {"primary": primary, "secondary": secondary}


def load_with_level_of_detail(
    time_blocks: Iterable[Any],
    view_type: Union[str, CalendarViewType],
    zoom_level: float = 1.0,
) -> List[Projection]:
    """Zoomed-out month views collapse to per-day summaries; everything else is full detail."""
    if zoom_level < ZOOMED_OUT_LEVEL and parse_view_type(view_type) == CalendarViewType.MONTH:
        return summarize_by_day(time_blocks)
    return [to_projection(block) for block in time_blocks]
