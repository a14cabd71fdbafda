# backend/app/routes/v1/time_blocks.py
"""
Time block routes - API v1

Versioned time block endpoints under /api/v1/time-blocks.
All business logic delegated to TimeBlockService.

Endpoints:
    GET /calendar          → Calendar view (day/week/month) around a date
    POST /                 → Schedule a time block
    GET /                  → List time blocks, optionally within a date window
    GET /{time_block_id}   → Get one time block
    PATCH /{time_block_id} → Partially update a time block
    DELETE /{time_block_id} → Delete a time block
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, Response, status

from ...api.dependencies.auth import get_current_user_id
from ...api.dependencies.services import get_time_block_service
from ...core.exceptions import DomainException
from ...schemas.time_block import (
    CalendarViewResponse,
    TimeBlockCreate,
    TimeBlockListResponse,
    TimeBlockResponse,
    TimeBlockUpdate,
)
from ...services.time_block_service import TimeBlockService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["time-blocks-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# =============================================================================
# Static routes first (before dynamic routes with path parameters)
# =============================================================================


@router.get(
    "/calendar",
    response_model=CalendarViewResponse,
    response_model_exclude_none=True,
)
async def get_calendar_view(
    view: str = Query("week", description="day, week or month"),
    reference_date: date = Query(..., alias="date", description="Any date inside the wanted range"),
    mobile: bool = Query(False, description="Reduce the payload for mobile clients"),
    low_memory: bool = Query(False, description="Minimal payload for memory-constrained clients"),
    user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> CalendarViewResponse:
    """
    Get the caller's calendar for the day, week or month containing ``date``.

    Views are cached per user, view and day; any write to the user's time
    blocks invalidates them.
    """
    try:
        result = await asyncio.to_thread(
            service.get_calendar_view,
            user_id,
            view,
            reference_date,
            mobile=mobile,
            low_memory=low_memory,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return CalendarViewResponse(**result)


@router.post(
    "",
    response_model=TimeBlockResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_time_block(
    payload: TimeBlockCreate = Body(...),
    user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> TimeBlockResponse:
    """
    Schedule a time block.

    Returns 409 with the overlapping blocks when the interval is taken.
    """
    try:
        time_block = await asyncio.to_thread(service.create_time_block, user_id, payload)
    except DomainException as e:
        handle_domain_exception(e)
    return TimeBlockResponse.model_validate(time_block)


@router.get("", response_model=TimeBlockListResponse)
async def list_time_blocks(
    start_date: Optional[date] = Query(None, description="First day of the window"),
    end_date: Optional[date] = Query(None, description="Last day of the window (inclusive)"),
    user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> TimeBlockListResponse:
    try:
        time_blocks = await asyncio.to_thread(
            service.list_time_blocks, user_id, start_date, end_date
        )
    except DomainException as e:
        handle_domain_exception(e)
    items = [TimeBlockResponse.model_validate(block) for block in time_blocks]
    return TimeBlockListResponse(time_blocks=items, total=len(items))


# =============================================================================
# Dynamic routes
# =============================================================================


@router.get("/{time_block_id}", response_model=TimeBlockResponse)
async def get_time_block(
    time_block_id: str = Path(..., pattern=ULID_PATH_PATTERN, description="Time block ULID"),
    user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> TimeBlockResponse:
    try:
        time_block = await asyncio.to_thread(service.get_time_block, user_id, time_block_id)
    except DomainException as e:
        handle_domain_exception(e)
    return TimeBlockResponse.model_validate(time_block)


@router.patch("/{time_block_id}", response_model=TimeBlockResponse)
async def update_time_block(
    time_block_id: str = Path(..., pattern=ULID_PATH_PATTERN, description="Time block ULID"),
    payload: TimeBlockUpdate = Body(...),
    user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> TimeBlockResponse:
    """
    Update only the fields present in the body.

    The block's version is incremented on success.
    """
    try:
        time_block = await asyncio.to_thread(
            service.update_time_block, user_id, time_block_id, payload
        )
    except DomainException as e:
        handle_domain_exception(e)
    return TimeBlockResponse.model_validate(time_block)


@router.delete("/{time_block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_block(
    time_block_id: str = Path(..., pattern=ULID_PATH_PATTERN, description="Time block ULID"),
    user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> Response:
    try:
        await asyncio.to_thread(service.delete_time_block, user_id, time_block_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
