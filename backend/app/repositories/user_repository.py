# backend/app/repositories/user_repository.py
"""
User Repository for the Planner backend

Calendar owners are created by the authentication service. The scheduling
core only reads them to resolve calendar timezones and validate task links.
"""

import logging
from typing import Any, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.task import Task
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        """Initialize with User model."""
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    def get_by_id(self, id: Any, load_relationships: bool = False) -> Optional[User]:
        """Get user by ID; None for a missing id or user."""
        if id is None:
            return None
        try:
            return cast(Optional[User], self.db.query(User).filter(User.id == str(id)).first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting user by ID {id}: {str(e)}")
            raise RepositoryException(f"Failed to get user: {str(e)}")

    def owns_task(self, user_id: str, task_id: str) -> bool:
        """True when ``task_id`` exists and belongs to ``user_id``."""
        try:
            return (
                self.db.query(Task.id).filter(Task.id == task_id, Task.user_id == user_id).first()
                is not None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking task ownership for {task_id}: {str(e)}")
            raise RepositoryException(f"Failed to check task ownership: {str(e)}")
