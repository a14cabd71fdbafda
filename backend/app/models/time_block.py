# backend/app/models/time_block.py
"""
TimeBlock model for the Planner backend.

A time block is a scheduled [start_time, end_time) interval owned by one
user and optionally linked to one task. Timestamps are naive local wall
time. Blocks of the same owner never overlap; the service checks this
before writing and PostgreSQL enforces it with an exclusion constraint
(see alembic revision 001_time_blocks).
"""

import logging

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class TimeBlock(Base):
    """
    Scheduled interval on a user's calendar.

    Attributes:
        id: ULID primary key
        title: 1-100 characters
        description: Optional, up to 500 characters
        start_time: Inclusive start (naive local time)
        end_time: Exclusive end, strictly after start_time
        color: Optional #RRGGBB hex color
        user_id: Owner
        task_id: Optional linked task (nulled when the task is deleted)
        version: Incremented on every mutation, starts at 1
        last_synced: Last offline-sync reconciliation time
    """

    __tablename__ = "time_blocks"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    color = Column(String(7), nullable=True)

    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    task_id = Column(String(26), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)

    # Version tracking for sync
    version = Column(Integer, nullable=False, default=1, server_default="1")
    last_synced = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="time_blocks")
    task = relationship("Task", back_populates="time_blocks", lazy="joined")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="check_time_block_order"),
        Index("idx_time_blocks_user_time", "user_id", "start_time", "end_time"),
        Index("idx_time_blocks_task_id", "task_id"),
    )

    @property
    def task_title(self) -> str:
        return self.task.title if self.task is not None else ""

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def __repr__(self) -> str:
        return f"<TimeBlock {self.title} {self.start_time}-{self.end_time}>"
