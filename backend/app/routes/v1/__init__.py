# backend/app/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import health, time_blocks

__all__ = [
    "health",
    "time_blocks",
]
