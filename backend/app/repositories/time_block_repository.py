# backend/app/repositories/time_block_repository.py
"""
TimeBlock Repository for the Planner backend.

Owns every query that touches the ``time_blocks`` table:
- Ownership-scoped lookups
- Overlap candidate queries for conflict detection
- Range queries for calendar views (ordered by start time)
- Owner row locking so check-then-write is serialized per owner
"""

from datetime import datetime
import logging
from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import OverlapConstraintViolation, RepositoryException
from ..models.time_block import TimeBlock
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

# PostgreSQL exclusion_violation SQLSTATE and the constraint added by revision 001_time_blocks
EXCLUSION_VIOLATION_PGCODE = "23P01"
OVERLAP_CONSTRAINT_NAME = "excl_time_blocks_no_overlap"


class TimeBlockRepository(BaseRepository[TimeBlock]):
    """Repository for time block data access."""

    def __init__(self, db: Session):
        super().__init__(db, TimeBlock)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(TimeBlock.task))

    def get_owned(self, owner_id: str, time_block_id: str) -> Optional[TimeBlock]:
        """
        Get a block only if ``owner_id`` owns it.

        Returns None for both missing and foreign blocks.
        """
        try:
            return (
                self._apply_eager_loading(self._build_query())
                .filter(TimeBlock.id == time_block_id, TimeBlock.user_id == owner_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting time block {time_block_id}: {str(e)}")
            raise RepositoryException(f"Failed to get time block: {str(e)}")

    def find_conflicting(
        self,
        owner_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[str] = None,
    ) -> List[TimeBlock]:
        """
        Blocks of ``owner_id`` whose [start, end) intersects [start_time, end_time).

        Args:
            owner_id: Owner whose blocks are candidates
            start_time: Proposed start
            end_time: Proposed end
            exclude_id: Block to ignore (the block being updated)

        Returns:
            Overlapping blocks ordered by start time
        """
        try:
            query = self._build_query().filter(
                TimeBlock.user_id == owner_id,
                TimeBlock.start_time < end_time,
                TimeBlock.end_time > start_time,
            )
            if exclude_id:
                query = query.filter(TimeBlock.id != exclude_id)
            return self._execute_query(query.order_by(TimeBlock.start_time))
        except RepositoryException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding conflicting time blocks: {str(e)}")
            raise RepositoryException(f"Failed to find conflicting time blocks: {str(e)}")

    def find_in_range(self, owner_id: str, range_start: datetime, range_end: datetime) -> List[TimeBlock]:
        """
        Blocks of ``owner_id`` that touch the inclusive range [range_start, range_end].

        A block is included when it starts on or before the range end and ends
        after the range start, so blocks straddling a boundary are kept.
        """
        query = (
            self._apply_eager_loading(self._build_query())
            .filter(
                TimeBlock.user_id == owner_id,
                TimeBlock.start_time <= range_end,
                TimeBlock.end_time > range_start,
            )
            .order_by(TimeBlock.start_time, TimeBlock.id)
        )
        return self._execute_query(query)

    def find_for_user(
        self,
        owner_id: str,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[TimeBlock]:
        """All blocks of ``owner_id``, optionally bounded, ordered by start time."""
        query = self._apply_eager_loading(self._build_query()).filter(TimeBlock.user_id == owner_id)
        if start_time is not None:
            query = query.filter(TimeBlock.end_time > start_time)
        if end_time is not None:
            query = query.filter(TimeBlock.start_time <= end_time)
        return self._execute_query(query.order_by(TimeBlock.start_time, TimeBlock.id))

    def lock_owner(self, owner_id: str) -> None:
        """
        Take a row lock on the owner so concurrent writers queue up.

        SQLite serializes writers on its own and has no FOR UPDATE.
        """
        if self.dialect_name != "postgresql":
            return
        try:
            self.db.query(User.id).filter(User.id == owner_id).with_for_update().first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking owner {owner_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock owner: {str(e)}")

    def create(self, **kwargs: Any) -> TimeBlock:
        try:
            return super().create(**kwargs)
        except RepositoryException as e:
            self._raise_if_overlap(e)
            raise

    def apply_changes(self, entity: TimeBlock, **kwargs: Any) -> TimeBlock:
        try:
            return super().apply_changes(entity, **kwargs)
        except RepositoryException as e:
            self._raise_if_overlap(e)
            raise

    @staticmethod
    def _raise_if_overlap(error: RepositoryException) -> None:
        cause = error.__cause__
        if not isinstance(cause, IntegrityError):
            return
        if (
            getattr(cause.orig, "pgcode", None) == EXCLUSION_VIOLATION_PGCODE
            or OVERLAP_CONSTRAINT_NAME in str(cause)
        ):
            raise OverlapConstraintViolation(str(error)) from cause
