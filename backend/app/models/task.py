# backend/app/models/task.py
"""
Task model for the Planner backend.

Task CRUD lives in the task service; time blocks only need a task's id and
title for display.
"""

import logging

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class Task(Base):
    """A user's task that time blocks can be scheduled against."""

    __tablename__ = "tasks"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="tasks")
    time_blocks = relationship("TimeBlock", back_populates="task", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Task {self.title}>"
