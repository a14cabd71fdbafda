# backend/app/models/user.py
"""
User model for the Planner backend.

Users are owned by the authentication service; this table only keeps the
fields the scheduling core needs (identity and calendar timezone).

Classes:
    User: Calendar owner
"""

import logging

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class User(Base):
    """
    Calendar owner.

    Attributes:
        id: ULID primary key
        email: Unique email address
        timezone: IANA timezone for calendar boundaries (None = server default)
        created_at: Creation timestamp

    Relationships:
        tasks: One-to-many with Task
        time_blocks: One-to-many with TimeBlock (deleted with the user)
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    timezone = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tasks = relationship("Task", back_populates="user", cascade="all, delete-orphan")
    time_blocks = relationship(
        "TimeBlock",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
