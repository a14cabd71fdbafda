# backend/app/services/conflict_checker.py
"""
Conflict Checker Service for the Planner backend

Detects overlapping time blocks for a single owner. Intervals are half-open:
[a_start, a_end) and [b_start, b_end) overlap iff a_start < b_end and
b_start < a_end, so blocks that only touch at an endpoint never conflict.
"""

from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import TimeBlockConflictException
from ..models.time_block import TimeBlock
from ..repositories import RepositoryFactory
from ..repositories.time_block_repository import TimeBlockRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap test."""
    return a_start < b_end and b_start < a_end


class TimeBlockConflictChecker(BaseService):
    """
    Service for checking time block conflicts.

    The repository narrows candidates with an indexed range query; the
    overlap rule is re-applied here so the decision never depends on how a
    backend compares timestamps.
    """

    def __init__(self, db: Session, repository: Optional[TimeBlockRepository] = None):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional TimeBlockRepository instance
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_time_block_repository(db)

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        owner_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_block_id: Optional[str] = None,
    ) -> List[TimeBlock]:
        """
        Blocks of ``owner_id`` overlapping [start_time, end_time).

        Args:
            owner_id: Owner whose blocks are checked
            start_time: Candidate start
            end_time: Candidate end
            exclude_block_id: Block to ignore, used when updating a block

        Returns:
            Conflicting blocks in ascending start order (empty when free)
        """
        candidates = self.repository.find_conflicting(owner_id, start_time, end_time, exclude_block_id)
        conflicts = [
            block
            for block in candidates
            if block.id != exclude_block_id
            and intervals_overlap(start_time, end_time, block.start_time, block.end_time)
        ]

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} time block conflicts for {owner_id} "
                f"between {start_time.isoformat()}-{end_time.isoformat()}"
            )

        return conflicts

    def check_conflicts(
        self,
        owner_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_block_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Conflict summaries (id, title, start_time, end_time) for display."""
        return [
            {
                "id": block.id,
                "title": block.title,
                "start_time": block.start_time.isoformat(),
                "end_time": block.end_time.isoformat(),
            }
            for block in self.find_conflicts(owner_id, start_time, end_time, exclude_block_id)
        ]

    def has_conflicts(
        self,
        owner_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_block_id: Optional[str] = None,
    ) -> bool:
        return len(self.find_conflicts(owner_id, start_time, end_time, exclude_block_id)) > 0

    def ensure_no_conflicts(
        self,
        owner_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_block_id: Optional[str] = None,
    ) -> None:
        """
        Raise TimeBlockConflictException carrying every overlapping block.

        Raises:
            TimeBlockConflictException: If any block overlaps
        """
        conflicts = self.find_conflicts(owner_id, start_time, end_time, exclude_block_id)
        if conflicts:
            raise TimeBlockConflictException(conflicts)
