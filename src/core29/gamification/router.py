"""Achievement, streak and goal API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core29.database import get_session
from core29.gamification.achievement_service import list_user_achievements
from core29.gamification.goal_service import set_weekly_goal
from core29.gamification.schemas import (
    AchievementResponse,
    StreakResponse,
    WeeklyGoalRequest,
    WeeklyGoalResponse,
)
from core29.gamification.streak_service import get_streak

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


@router.get("/achievements", response_model=list[AchievementResponse])
async def get_achievements(
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_session),
):
    """All achievements with the user's earned status."""
    return await list_user_achievements(db, user_id)


@router.get("/streaks/{user_id}", response_model=StreakResponse)
async def get_user_streak(user_id: int, db: AsyncSession = Depends(get_session)):
    """Current and best streak for a user."""
    streak = await get_streak(db, user_id)
    return StreakResponse(
        current_streak=streak.current,
        best_streak=streak.best,
        last_journey_date=streak.last_date,
    )


@router.post("/goals", response_model=WeeklyGoalResponse)
async def post_goal(body: WeeklyGoalRequest, db: AsyncSession = Depends(get_session)):
    """Set this week's CO2-saving target."""
    goal = await set_weekly_goal(db, body.user_id, body.target_co2_saved_g)
    return WeeklyGoalResponse(
        user_id=goal.user_id,
        week_start=goal.week_start,
        target_co2_saved_g=goal.target_co2_saved_g,
    )
