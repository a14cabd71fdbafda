# backend/app/services/calendar_data_aggregator.py
"""
Calendar Data Aggregator for the Planner backend

Turns a flat list of time blocks into view projections: plain dicts that
the calendar route serializes as CalendarTimeBlock. Day and week views get
a grid ``position``; month view gets a ``display_date``. Blocks outside the
view range are dropped and the result is ordered by start time.
"""

from datetime import date, datetime, timedelta
import logging
from typing import Any, Dict, Iterable, List, Tuple, Union

from ..core.constants import CALENDAR_GRID_HEIGHT, CALENDAR_GRID_WIDTH, DAYS_PER_WEEK, MINUTES_PER_DAY
from ..core.enums import CalendarViewType
from .date_range_calculator import END_OF_DAY, parse_view_type

logger = logging.getLogger(__name__)

Projection = Dict[str, Any]

PROJECTION_FIELDS = (
    "id",
    "title",
    "description",
    "start_time",
    "end_time",
    "color",
    "task_id",
    "task_title",
)


def to_projection(block: Any) -> Projection:
    """
    Full-fidelity projection of a TimeBlock (or a copy of an existing projection).

    Projections are always new dicts so later shaping never mutates cached data.
    """
    if isinstance(block, dict):
        return dict(block)
    return {
        "id": block.id,
        "title": block.title,
        "description": block.description,
        "start_time": block.start_time,
        "end_time": block.end_time,
        "color": block.color,
        "task_id": block.task_id,
        "task_title": getattr(block, "task_title", "") or "",
    }


def _field(block: Any, name: str) -> Any:
    return block[name] if isinstance(block, dict) else getattr(block, name)


def sort_by_start(blocks: Iterable[Any]) -> List[Any]:
    """Stable ascending start-time order."""
    return sorted(blocks, key=lambda b: _field(b, "start_time"))


def _minutes(delta: timedelta) -> float:
    return delta.total_seconds() / 60


def _grid_offset(minutes: float) -> float:
    return round(minutes / MINUTES_PER_DAY * CALENDAR_GRID_HEIGHT, 4)


class CalendarDataAggregator:
    """Stateless transform from fetched time blocks to view projections."""

    def aggregate(
        self,
        time_blocks: Iterable[Any],
        view_type: Union[str, CalendarViewType],
        start_date: datetime,
        end_date: datetime,
    ) -> List[Projection]:
        """
        Project ``time_blocks`` for ``view_type`` over [start_date, end_date].

        Args:
            time_blocks: TimeBlock models or projections
            view_type: day, week or month
            start_date: First instant of the view
            end_date: Last instant of the view (inclusive)

        Returns:
            One projection per block in range, ascending by start time
        """
        view = parse_view_type(view_type)
        in_range = [
            block
            for block in sort_by_start(time_blocks)
            if _field(block, "start_time") <= end_date and _field(block, "end_time") > start_date
        ]

        projections = []
        for block in in_range:
            projection = to_projection(block)
            if view == CalendarViewType.DAY:
                projection["position"] = self.day_position(projection, start_date, end_date)
            elif view == CalendarViewType.WEEK:
                projection["position"] = self.week_position(projection, start_date, end_date)
            else:
                projection["display_date"] = self.display_date(projection, start_date)
            projections.append(projection)

        logger.debug(f"Aggregated {len(projections)} time blocks for {view.value} view")
        return projections

    def day_position(self, block: Projection, start_date: datetime, end_date: datetime) -> Dict[str, float]:
        """Single full-width column; top/height on a 24h grid, clipped to the day."""
        top, height = self._vertical_extent(block, start_date, end_date)
        return {"top": top, "left": 0.0, "height": height, "width": CALENDAR_GRID_WIDTH}

    def week_position(self, block: Projection, start_date: datetime, end_date: datetime) -> Dict[str, float]:
        """
        One column per day counted from the week's first day.

        A block running past midnight is drawn in its start column up to the
        end of that day.
        """
        clipped_start = max(block["start_time"], start_date)
        column = (clipped_start.date() - start_date.date()).days
        day_start = datetime.combine(clipped_start.date(), datetime.min.time())
        day_end = min(datetime.combine(clipped_start.date(), END_OF_DAY), end_date)
        top, height = self._vertical_extent(block, day_start, day_end)
        column_width = CALENDAR_GRID_WIDTH / DAYS_PER_WEEK
        return {
            "top": top,
            "left": round(column * column_width, 4),
            "height": height,
            "width": round(column_width, 4),
        }

    def display_date(self, block: Projection, start_date: datetime) -> date:
        """Calendar day a block is listed under in month view."""
        return max(block["start_time"], start_date).date()

    def _vertical_extent(self, block: Projection, day_start: datetime, day_end: datetime) -> Tuple[float, float]:
        clipped_start = max(block["start_time"], day_start)
        clipped_end = min(block["end_time"], day_end)
        top = _grid_offset(_minutes(clipped_start - day_start))
        height = _grid_offset(max(_minutes(clipped_end - clipped_start), 0.0))
        return top, height
