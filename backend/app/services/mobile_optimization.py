# backend/app/services/mobile_optimization.py
"""
Payload reduction for mobile and low-memory clients.

Every function returns new projection dicts and never mutates its input,
since the input usually comes straight out of the calendar view cache.
"""

import base64
from collections import OrderedDict
from datetime import date, datetime
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Union
import zlib

from ..core.config import settings
from ..core.constants import DEFAULT_BLOCK_COLOR
from ..core.enums import CalendarViewType
from ..core.exceptions import ValidationException
from .calendar_data_aggregator import Projection, sort_by_start, to_projection
from .date_range_calculator import parse_view_type

logger = logging.getLogger(__name__)

LOW_MEMORY_FIELDS = ("id", "title", "start_time", "end_time", "color", "task_id")
DATETIME_FIELDS = ("start_time", "end_time", "last_synced")
DATE_FIELDS = ("display_date",)


def optimize_for_mobile(time_blocks: Iterable[Any], is_mobile: bool) -> List[Projection]:
    """Drop ``description`` from each projection for mobile clients."""
    projections = [to_projection(block) for block in time_blocks]
    if not is_mobile:
        return projections
    for projection in projections:
        projection.pop("description", None)
    return projections


def summarize_by_day(time_blocks: Iterable[Any]) -> List[Projection]:
    """
    One summary entry per calendar day: "<count> event(s)" spanning the day's blocks.

    Summaries take the color of the day's first block.
    """
    by_day: "OrderedDict[date, List[Projection]]" = OrderedDict()
    for projection in sort_by_start(to_projection(block) for block in time_blocks):
        day = projection.get("display_date") or projection["start_time"].date()
        by_day.setdefault(day, []).append(projection)

    summaries = []
    for day, blocks in by_day.items():
        count = len(blocks)
        summaries.append(
            {
                "id": f"mobile-aggregated-{day.isoformat()}",
                "title": f"{count} event{'s' if count > 1 else ''}",
                "start_time": min(block["start_time"] for block in blocks),
                "end_time": max(block["end_time"] for block in blocks),
                "color": blocks[0].get("color") or DEFAULT_BLOCK_COLOR,
                "display_date": day,
                "event_count": count,
            }
        )
    return summaries


def reduce_resolution(
    time_blocks: Iterable[Any],
    view_type: Union[str, CalendarViewType],
    is_mobile: bool,
    week_max_items: Optional[int] = None,
) -> List[Projection]:
    """
    Shape a view for the client's resolution.

    Desktop clients and mobile day views get the list unchanged. Mobile
    month views are summarized per day, and mobile week views are cut to
    the first ``week_max_items`` entries.
    """
    view = parse_view_type(view_type)
    projections = [to_projection(block) for block in time_blocks]
    if not is_mobile:
        return projections
    if view == CalendarViewType.MONTH:
        return summarize_by_day(projections)
    if view == CalendarViewType.WEEK:
        limit = settings.mobile_week_max_items if week_max_items is None else week_max_items
        if len(projections) > limit:
            logger.debug(f"Truncating mobile week view from {len(projections)} to {limit} blocks")
        return projections[:limit]
    return projections


def optimize_for_low_memory(time_blocks: Iterable[Any], max_items: Optional[int] = None) -> List[Projection]:
    """
    Last-resort minimal payload: at most ``max_items`` entries.

    Only id, title, times, color, task id and, for linked blocks, the task
    title survive.
    """
    limit = settings.low_memory_max_items if max_items is None else max_items
    minimal = []
    for block in list(time_blocks)[:limit]:
        projection = to_projection(block)
        reduced = {name: projection[name] for name in LOW_MEMORY_FIELDS if name in projection}
        if projection.get("task_id") and projection.get("task_title"):
            reduced["task_title"] = projection["task_title"]
        minimal.append(reduced)
    return minimal


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def compress_time_blocks(time_blocks: Iterable[Any]) -> str:
    """Serialize projections to compact JSON, deflate and base64-encode."""
    payload = json.dumps(
        [to_projection(block) for block in time_blocks],
        default=_json_default,
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(zlib.compress(payload.encode("utf-8"))).decode("ascii")


def decompress_time_blocks(data: str) -> List[Projection]:
    """
    Inverse of compress_time_blocks; timestamps come back as datetimes.

    Raises:
        ValidationException: If ``data`` is not a compressed block list
    """
    try:
        raw = zlib.decompress(base64.urlsafe_b64decode(data.encode("ascii")))
        items = json.loads(raw.decode("utf-8"))
    except (ValueError, zlib.error) as exc:
        logger.error(f"Error decompressing time blocks: {exc}")
        raise ValidationException(
            "Compressed time block payload is invalid", code="INVALID_COMPRESSED_PAYLOAD"
        ) from exc

    return [_restore_types(item) for item in items]


def _restore_types(item: Dict[str, Any]) -> Projection:
    restored = dict(item)
    for name in DATETIME_FIELDS:
        if isinstance(restored.get(name), str):
            restored[name] = datetime.fromisoformat(restored[name])
    for name in DATE_FIELDS:
        if isinstance(restored.get(name), str):
            restored[name] = date.fromisoformat(restored[name])
    return restored
