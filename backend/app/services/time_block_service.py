# backend/app/services/time_block_service.py
"""
Time Block Service for the Planner backend

Schedules time blocks on a user's calendar and serves calendar views.

Writes: validate ordering, lock the owner, check for overlaps, persist and
invalidate the owner's cached views, all inside one transaction.

Reads: calendar views go through the CalendarViewCache. A miss computes the
date range, fetches the owner's blocks in it, then either paginates (large
sets) or aggregates them with layout. The cache always holds the full view;
mobile and low-memory shaping is applied per request on top of it.
"""

from datetime import date, datetime, time, tzinfo
import logging
from typing import Any, Dict, List, NoReturn, Optional, Union

from sqlalchemy.orm import Session

from ..core.enums import CalendarViewType
from ..core.exceptions import (
    InvalidTimeRangeException,
    OverlapConstraintViolation,
    TimeBlockConflictException,
    TimeBlockNotFoundException,
    ValidationException,
)
from ..core.timezone_utils import get_user_timezone, to_local_naive
from ..models.time_block import TimeBlock
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.time_block_repository import TimeBlockRepository
from ..repositories.user_repository import UserRepository
from ..schemas.time_block import TimeBlockCreate, TimeBlockUpdate
from .base import BaseService
from .calendar_cache import CalendarViewCache
from .calendar_data_aggregator import CalendarDataAggregator, to_projection
from .conflict_checker import TimeBlockConflictChecker
from .date_range_calculator import END_OF_DAY, DateLike, DateRangeCalculator, parse_view_type
from .mobile_optimization import optimize_for_low_memory, optimize_for_mobile, reduce_resolution
from .virtual_scrolling import VirtualScrollingPaginator

logger = logging.getLogger(__name__)

# Columns a client may not null out on update
REQUIRED_FIELDS = ("title", "start_time", "end_time")
MUTABLE_FIELDS = ("title", "description", "start_time", "end_time", "color", "task_id", "last_synced")


def _is_aware(value: Optional[datetime]) -> bool:
    return isinstance(value, datetime) and value.tzinfo is not None


class TimeBlockService(BaseService):
    """
    Service layer for time block scheduling and calendar views.

    All public methods take the caller's user id as ``owner_id``; blocks of
    other owners are indistinguishable from missing ones.
    """

    def __init__(
        self,
        db: Session,
        cache: Optional[CalendarViewCache] = None,
        repository: Optional[TimeBlockRepository] = None,
        user_repository: Optional[UserRepository] = None,
        conflict_checker: Optional[TimeBlockConflictChecker] = None,
        aggregator: Optional[CalendarDataAggregator] = None,
        paginator: Optional[VirtualScrollingPaginator] = None,
        week_start: Optional[int] = None,
    ):
        """
        Initialize time block service.

        Args:
            db: Database session
            cache: Process-wide calendar view cache (views are not cached when None)
            repository: Optional TimeBlockRepository instance
            user_repository: Optional UserRepository instance
            conflict_checker: Optional TimeBlockConflictChecker instance
            aggregator: Optional CalendarDataAggregator instance
            paginator: Optional VirtualScrollingPaginator instance
            week_start: First weekday of week views; configured default when None
        """
        super().__init__(db, cache)
        self.repository = repository or RepositoryFactory.create_time_block_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.conflict_checker = conflict_checker or TimeBlockConflictChecker(db, self.repository)
        self.aggregator = aggregator or CalendarDataAggregator()
        self.paginator = paginator or VirtualScrollingPaginator()
        self.week_start = week_start

    # Writes

    @BaseService.measure_operation("create_time_block")
    def create_time_block(
        self, owner_id: str, data: Union[TimeBlockCreate, Dict[str, Any]]
    ) -> TimeBlock:
        """
        Schedule a new block for ``owner_id``.

        Returns:
            The persisted block with version 1

        Raises:
            InvalidTimeRangeException: If end_time is not after start_time
            ValidationException: If task_id is not one of the owner's tasks
            TimeBlockConflictException: If the interval overlaps existing blocks
        """
        fields = data.model_dump() if isinstance(data, TimeBlockCreate) else dict(data)
        start_time, end_time = fields["start_time"], fields["end_time"]

        # Ordering is decidable without the database unless awareness is mixed
        if _is_aware(start_time) == _is_aware(end_time):
            self._validate_time_range(start_time, end_time)
        start_time, end_time = self._to_owner_local(owner_id, start_time, end_time)
        self._validate_time_range(start_time, end_time)

        self.log_operation("create_time_block", owner_id=owner_id)
        self._validate_task(owner_id, fields.get("task_id"))

        with self.transaction():
            self.repository.lock_owner(owner_id)
            self._ensure_no_conflicts("create", owner_id, start_time, end_time)
            try:
                time_block = self.repository.create(
                    user_id=owner_id,
                    title=fields["title"],
                    description=fields.get("description"),
                    start_time=start_time,
                    end_time=end_time,
                    color=fields.get("color"),
                    task_id=fields.get("task_id"),
                    version=1,
                )
            except OverlapConstraintViolation:
                self._raise_constraint_conflict("create", owner_id, start_time, end_time)

        self._invalidate_calendar(owner_id)
        self.logger.info(f"Created time block {time_block.id} for {owner_id}")
        return time_block

    @BaseService.measure_operation("update_time_block")
    def update_time_block(
        self,
        owner_id: str,
        time_block_id: str,
        data: Union[TimeBlockUpdate, Dict[str, Any]],
    ) -> TimeBlock:
        """
        Apply a partial update and bump the block's version.

        The new interval is checked against the owner's other blocks; the
        block never conflicts with itself.

        Raises:
            TimeBlockNotFoundException: If the block is missing or not owned
            InvalidTimeRangeException: If the merged interval is empty or inverted
            TimeBlockConflictException: If the merged interval overlaps other blocks
        """
        if isinstance(data, TimeBlockUpdate):
            changes = data.model_dump(exclude_unset=True)
        else:
            changes = {key: value for key, value in dict(data).items() if key in MUTABLE_FIELDS}
        changes = {
            key: value
            for key, value in changes.items()
            if not (key in REQUIRED_FIELDS and value is None)
        }

        time_block = self.get_time_block(owner_id, time_block_id)

        for key in ("start_time", "end_time", "last_synced"):
            if _is_aware(changes.get(key)):
                changes[key] = to_local_naive(changes[key], self._owner_timezone(owner_id))

        start_time = changes.get("start_time", time_block.start_time)
        end_time = changes.get("end_time", time_block.end_time)
        self._validate_time_range(start_time, end_time)
        if changes.get("task_id"):
            self._validate_task(owner_id, changes["task_id"])

        self.log_operation("update_time_block", owner_id=owner_id, time_block_id=time_block_id)

        with self.transaction():
            self.repository.lock_owner(owner_id)
            if "start_time" in changes or "end_time" in changes:
                self._ensure_no_conflicts(
                    "update", owner_id, start_time, end_time, exclude_block_id=time_block.id
                )
            changes["version"] = (time_block.version or 1) + 1
            try:
                time_block = self.repository.apply_changes(time_block, **changes)
            except OverlapConstraintViolation:
                self._raise_constraint_conflict(
                    "update", owner_id, start_time, end_time, exclude_block_id=time_block_id
                )

        self._invalidate_calendar(owner_id)
        return time_block

    @BaseService.measure_operation("delete_time_block")
    def delete_time_block(self, owner_id: str, time_block_id: str) -> None:
        """
        Delete one of the owner's blocks.

        Raises:
            TimeBlockNotFoundException: If the block is missing or not owned
        """
        time_block = self.get_time_block(owner_id, time_block_id)
        self.log_operation("delete_time_block", owner_id=owner_id, time_block_id=time_block_id)

        with self.transaction():
            self.repository.delete_entity(time_block)

        self._invalidate_calendar(owner_id)

    # Reads

    def get_time_block(self, owner_id: str, time_block_id: str) -> TimeBlock:
        time_block = self.repository.get_owned(owner_id, time_block_id)
        if time_block is None:
            raise TimeBlockNotFoundException(time_block_id)
        return time_block

    @BaseService.measure_operation("list_time_blocks")
    def list_time_blocks(
        self,
        owner_id: str,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
    ) -> List[TimeBlock]:
        """
        Owner's blocks ordered by start time, optionally limited to a window.

        Bare dates cover the whole day: ``start_date`` from midnight and
        ``end_date`` through 23:59:59.999.
        """
        window_start = self._window_bound(owner_id, start_date, time.min)
        window_end = self._window_bound(owner_id, end_date, END_OF_DAY)
        if window_start is not None and window_end is not None and window_end < window_start:
            raise ValidationException(
                "end_date must not be before start_date",
                code="INVALID_DATE_WINDOW",
                details={"start_date": window_start.isoformat(), "end_date": window_end.isoformat()},
            )
        return self.repository.find_for_user(owner_id, window_start, window_end)

    @BaseService.measure_operation("get_calendar_view")
    def get_calendar_view(
        self,
        owner_id: str,
        view_type: Union[str, CalendarViewType],
        reference_date: DateLike,
        mobile: bool = False,
        low_memory: bool = False,
    ) -> Dict[str, Any]:
        """
        Calendar view of ``owner_id`` for the range containing ``reference_date``.

        Args:
            owner_id: Calendar owner
            view_type: day, week or month
            reference_date: Any instant or date inside the wanted range
            mobile: Shape the view for mobile clients
            low_memory: Reduce the view to a minimal payload

        Returns:
            Dict with view_type, reference_date, start_date, end_date,
            previous/next reference dates, time_blocks and pagination (None
            unless the range held more blocks than the pagination threshold)

        Raises:
            UnsupportedViewTypeException: For unknown view types
        """
        view = parse_view_type(view_type)
        calculator = self._range_calculator(owner_id, reference_date)
        day = calculator.reference_day(reference_date)

        calendar_view = self.cache.get(owner_id, view, day) if self.cache is not None else None
        if calendar_view is None:
            calendar_view = self._compute_calendar_view(owner_id, view, day, calculator)
            if self.cache is not None:
                self.cache.set(owner_id, view, day, calendar_view)

        return self._shape_for_client(calendar_view, view, mobile, low_memory)

    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache.get_stats() if self.cache is not None else {}

    # Helpers

    def _compute_calendar_view(
        self,
        owner_id: str,
        view: CalendarViewType,
        day: date,
        calculator: DateRangeCalculator,
    ) -> Dict[str, Any]:
        date_range = calculator.calculate_range(view, day)
        with self.measure_operation_context("fetch_calendar_range"):
            time_blocks = self.repository.find_in_range(
                owner_id, date_range.start_date, date_range.end_date
            )

        pagination = None
        if self.paginator.should_paginate(len(time_blocks)):
            page = self.paginator.paginate([to_projection(block) for block in time_blocks], 1)
            projections = page["items"]
            pagination = {key: page[key] for key in ("total", "page", "page_size", "total_pages")}
            self.logger.debug(
                f"Paginated {len(time_blocks)} blocks for {owner_id} {view.value} view of {day}"
            )
        else:
            projections = self.aggregator.aggregate(
                time_blocks, view, date_range.start_date, date_range.end_date
            )

        return {
            "view_type": view.value,
            "reference_date": day,
            "start_date": date_range.start_date,
            "end_date": date_range.end_date,
            "previous_reference_date": calculator.previous_reference_date(view, day),
            "next_reference_date": calculator.next_reference_date(view, day),
            "time_blocks": projections,
            "pagination": pagination,
        }

    def _shape_for_client(
        self,
        calendar_view: Dict[str, Any],
        view: CalendarViewType,
        mobile: bool,
        low_memory: bool,
    ) -> Dict[str, Any]:
        if not mobile and not low_memory:
            return calendar_view

        time_blocks = calendar_view["time_blocks"]
        if mobile:
            time_blocks = reduce_resolution(optimize_for_mobile(time_blocks, True), view, True)
        if low_memory:
            time_blocks = optimize_for_low_memory(time_blocks)

        shaped = dict(calendar_view)
        shaped["time_blocks"] = time_blocks
        return shaped

    def _ensure_no_conflicts(
        self,
        operation: str,
        owner_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_block_id: Optional[str] = None,
    ) -> None:
        try:
            self.conflict_checker.ensure_no_conflicts(owner_id, start_time, end_time, exclude_block_id)
        except TimeBlockConflictException:
            prometheus_metrics.inc_time_block_conflict(operation)
            raise

    def _raise_constraint_conflict(
        self,
        operation: str,
        owner_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_block_id: Optional[str] = None,
    ) -> NoReturn:
        """A concurrent writer won the race; report its block as the conflict."""
        self.db.rollback()
        prometheus_metrics.inc_time_block_conflict(operation)
        conflicts = self.conflict_checker.find_conflicts(owner_id, start_time, end_time, exclude_block_id)
        raise TimeBlockConflictException(conflicts)

    @staticmethod
    def _validate_time_range(start_time: datetime, end_time: datetime) -> None:
        if end_time <= start_time:
            raise InvalidTimeRangeException(start_time, end_time)

    def _validate_task(self, owner_id: str, task_id: Optional[str]) -> None:
        if task_id and not self.user_repository.owns_task(owner_id, task_id):
            raise ValidationException(
                "Task not found for this user",
                code="INVALID_TASK",
                details={"task_id": task_id},
            )

    def _owner_timezone(self, owner_id: str) -> tzinfo:
        return get_user_timezone(self.user_repository.get_by_id(owner_id))

    def _to_owner_local(self, owner_id: str, *values: datetime) -> List[datetime]:
        """Naive local wall times; the owner is only looked up for aware values."""
        if not any(_is_aware(value) for value in values):
            return list(values)
        tz = self._owner_timezone(owner_id)
        return [to_local_naive(value, tz) for value in values]

    def _range_calculator(self, owner_id: str, reference_date: DateLike) -> DateRangeCalculator:
        tz = self._owner_timezone(owner_id) if _is_aware(reference_date) else None
        return DateRangeCalculator(week_start=self.week_start, timezone=tz)

    def _window_bound(self, owner_id: str, value: Optional[DateLike], day_time: time) -> Optional[datetime]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return self._to_owner_local(owner_id, value)[0]
        return datetime.combine(value, day_time)

    def _invalidate_calendar(self, owner_id: str) -> None:
        if self.cache is not None:
            self.cache.clear_user(owner_id)
