"""User API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from core29.database import get_session
from core29.users.schemas import UserCreateRequest, UserResponse, UserSummaryResponse
from core29.users.service import get_or_create_user, get_user_summary

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreateRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
):
    """Register a user by name; an existing name returns that user with 200."""
    user, created = await get_or_create_user(db, body.name)
    if not created:
        response.status_code = status.HTTP_200_OK
    return UserResponse(id=user.id, name=user.name, avatar_color=user.avatar_color, created_at=user.created_at)


@router.get("/{user_id}/summary", response_model=UserSummaryResponse)
async def summary(user_id: int, db: AsyncSession = Depends(get_session)):
    """Journey totals, streak, earned achievements and weekly goal progress."""
    return await get_user_summary(db, user_id)
