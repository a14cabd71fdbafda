# backend/app/services/date_range_calculator.py
"""
Date range arithmetic for calendar views.

Ranges are inclusive on both ends at millisecond resolution:
the day view of 2023-06-15 is [2023-06-15 00:00:00.000, 2023-06-15 23:59:59.999].
All values are naive local wall time in the calculator's timezone.
"""

import calendar
from datetime import date, datetime, time, timedelta
import logging
from typing import NamedTuple, Optional, TypeVar, Union

from ..core.config import settings
from ..core.constants import DAYS_PER_WEEK
from ..core.enums import CalendarViewType
from ..core.exceptions import UnsupportedViewTypeException
from ..core.timezone_utils import TimezoneLike, as_datetime, get_timezone, to_local_naive

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]
D = TypeVar("D", date, datetime)

END_OF_DAY = time(23, 59, 59, 999000)


class DateRange(NamedTuple):
    start_date: datetime
    end_date: datetime


def parse_view_type(view_type: Union[str, CalendarViewType]) -> CalendarViewType:
    """
    Coerce a view type name to CalendarViewType.

    Raises:
        UnsupportedViewTypeException: For anything but day, week or month
    """
    if isinstance(view_type, CalendarViewType):
        return view_type
    try:
        return CalendarViewType(str(view_type).strip().lower())
    except ValueError as exc:
        raise UnsupportedViewTypeException(view_type) from exc


def add_months(value: D, months: int) -> D:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


class DateRangeCalculator:
    """
    Computes canonical calendar ranges for day, week and month views.

    Args:
        week_start: ``datetime.weekday()`` index of the first day of the week
            (``calendar.SUNDAY`` or ``calendar.MONDAY``); configured default when None
        timezone: Zone used to localize timezone-aware reference dates
    """

    def __init__(self, week_start: Optional[int] = None, timezone: TimezoneLike = None):
        self.week_start = settings.week_start_day if week_start is None else week_start
        self.timezone = get_timezone(timezone)

    def localize(self, reference: DateLike) -> datetime:
        """Reference date as naive local wall time."""
        return to_local_naive(as_datetime(reference), self.timezone)

    def reference_day(self, reference: DateLike) -> date:
        """Calendar day a reference falls on, used as the cache bucket."""
        return self.localize(reference).date()

    def start_of_week(self, day: date) -> date:
        offset = (day.weekday() - self.week_start) % DAYS_PER_WEEK
        return day - timedelta(days=offset)

    def calculate_range(self, view_type: Union[str, CalendarViewType], reference: DateLike) -> DateRange:
        """
        Canonical [start, end] range of ``view_type`` anchored at ``reference``.

        Raises:
            UnsupportedViewTypeException: For unknown view types
        """
        view = parse_view_type(view_type)
        day = self.reference_day(reference)

        if view == CalendarViewType.DAY:
            first, last = day, day
        elif view == CalendarViewType.WEEK:
            first = self.start_of_week(day)
            last = first + timedelta(days=DAYS_PER_WEEK - 1)
        else:
            first = day.replace(day=1)
            last = day.replace(day=calendar.monthrange(day.year, day.month)[1])

        return DateRange(
            start_date=datetime.combine(first, time.min),
            end_date=datetime.combine(last, END_OF_DAY),
        )

    def next_reference_date(self, view_type: Union[str, CalendarViewType], reference: D) -> D:
        return self._shift(parse_view_type(view_type), reference, 1)

    def previous_reference_date(self, view_type: Union[str, CalendarViewType], reference: D) -> D:
        return self._shift(parse_view_type(view_type), reference, -1)

    def _shift(self, view: CalendarViewType, reference: D, steps: int) -> D:
        if view == CalendarViewType.DAY:
            return reference + timedelta(days=steps)
        if view == CalendarViewType.WEEK:
            return reference + timedelta(days=DAYS_PER_WEEK * steps)
        return add_months(reference, steps)
