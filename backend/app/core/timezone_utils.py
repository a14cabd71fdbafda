"""
Timezone utilities for the Planner backend.

Time blocks are stored as naive local wall-clock timestamps. Anything that
arrives timezone-aware is converted into the owner's calendar timezone and
then made naive, so day/week/month arithmetic is always done in local time.
"""

from datetime import date, datetime, tzinfo
from typing import TYPE_CHECKING, Optional, Union

import pytz

from .config import settings

if TYPE_CHECKING:
    from app.models.user import User

TimezoneLike = Union[str, tzinfo, None]


def get_timezone(tz: TimezoneLike = None) -> tzinfo:
    """
    Resolve a timezone name or object to a tzinfo.

    Args:
        tz: IANA name, tzinfo instance, or None for the configured default

    Returns:
        pytz timezone object
    """
    if tz is None:
        return pytz.timezone(settings.default_timezone)
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def get_user_timezone(user: Optional["User"]) -> tzinfo:
    """
    Get a user's calendar timezone, falling back to the configured default.

    Args:
        user: User object, or None when the owner is unknown

    Returns:
        pytz timezone object
    """
    if user is not None and getattr(user, "timezone", None):
        return pytz.timezone(user.timezone)
    return get_timezone(None)


def to_local_naive(dt: datetime, tz: TimezoneLike = None) -> datetime:
    """
    Normalize a datetime to naive local wall time in ``tz``.

    Naive values are already local and are returned untouched.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(get_timezone(tz)).replace(tzinfo=None)


def as_datetime(value: Union[date, datetime]) -> datetime:
    """Promote a bare date to local midnight."""
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)
