# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the Planner backend

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- IRepository: Interface defining required methods for all repositories
- RepositoryFactory: Factory for creating repository instances
- TimeBlockRepository: Ownership, overlap and range queries for time blocks
- UserRepository: Calendar owner lookups

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_time_block_repository(db)
    blocks = repository.find_in_range(owner_id, range_start, range_end)
"""

from .base_repository import BaseRepository, IRepository
from .factory import RepositoryFactory
from .time_block_repository import TimeBlockRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "IRepository",
    "RepositoryFactory",
    "TimeBlockRepository",
    "UserRepository",
]
