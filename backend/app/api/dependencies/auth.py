# backend/app/api/dependencies/auth.py
"""
Caller identity dependency.

Authentication happens upstream (API gateway / auth service), which forwards
the authenticated user's id in the ``X-User-Id`` header. This module only
checks that the id is well formed and belongs to a known user.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ...core.ulid_helper import is_valid_ulid
from ...repositories import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message, "code": "UNAUTHENTICATED", "details": {}},
    )


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
    db: Session = Depends(get_db),
) -> str:
    """
    Resolve the calling user's id.

    Raises:
        HTTPException: 401 if the header is missing, malformed or unknown
    """
    if not x_user_id:
        raise _unauthorized(f"Missing {USER_ID_HEADER} header")
    if not is_valid_ulid(x_user_id):
        raise _unauthorized(f"Malformed {USER_ID_HEADER} header")

    user = RepositoryFactory.create_user_repository(db).get_by_id(x_user_id)
    if user is None:
        logger.warning(f"Request for unknown user {x_user_id}")
        raise _unauthorized("Unknown user")
    return str(user.id)
