"""
Database models for the Planner backend.

This module exports all SQLAlchemy models used in the application:
- User: calendar owner (authentication lives outside this service)
- Task: minimal task reference a time block may be linked to
- TimeBlock: a user-owned scheduled interval
"""

from .task import Task
from .time_block import TimeBlock
from .user import User

__all__ = [
    "Task",
    "TimeBlock",
    "User",
]
