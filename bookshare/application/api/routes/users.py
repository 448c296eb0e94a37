"""
Current User Routes

    GET /api/user    the caller's user record
    PUT /api/user    onboarding / profile update, synced with the identity provider
"""

from typing import Any

from fastapi import APIRouter

from bookshare.application.api.dependencies import CallerIdDep, UserServiceDep
from bookshare.application.api.models import ErrorResponse, UserResponse, UserUpdateRequest

router = APIRouter(prefix="/api/user", tags=["Users"])


@router.get(
    "",
    response_model=UserResponse,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def get_current_user(users: UserServiceDep, caller_id: CallerIdDep) -> dict[str, Any]:
    return await users.get_current(caller_id)


@router.put(
    "",
    response_model=UserResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def update_current_user(
    body: UserUpdateRequest, users: UserServiceDep, caller_id: CallerIdDep
) -> dict[str, Any]:
    """
    Create or update the caller's record.

    Name and email always come from the identity provider; role, mobile
    number, location and bio from the body (omitted fields keep their
    stored values).
    """
    return await users.update_current(caller_id, body)
