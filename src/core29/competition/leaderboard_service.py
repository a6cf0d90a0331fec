"""Leaderboards: top users by CO2 saved, calories burned and best streak."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core29.config import get_settings
from core29.db.models import Journey, JourneyResult, Streak, User
from core29.impact.calculator import round2


async def _top_by_total(db: AsyncSession, column, label: str, limit: int) -> list[dict]:  # noqa: ANN001
    total = func.coalesce(func.sum(column), 0.0)
    result = await db.execute(
        select(User.id, User.name, User.avatar_color, total.label("total"))
        .select_from(User)
        .join(Journey, Journey.user_id == User.id)
        .join(JourneyResult, JourneyResult.journey_id == Journey.id)
        .group_by(User.id, User.name, User.avatar_color)
        .having(total > 0)
        .order_by(total.desc(), User.id)
        .limit(limit)
    )
    return [
        {"rank": i, "id": row.id, "name": row.name, "avatar_color": row.avatar_color, label: round2(float(row.total))}
        for i, row in enumerate(result.all(), start=1)
    ]


async def get_leaderboards(db: AsyncSession, limit: int | None = None) -> dict[str, list[dict]]:
    """All three boards in one call."""
    if limit is None:
        limit = get_settings().leaderboard_size

    co2 = await _top_by_total(db, JourneyResult.vs_drive_co2_saved_g, "total_co2_saved_g", limit)
    calories = await _top_by_total(db, JourneyResult.calories_kcal, "total_calories", limit)

    streak_result = await db.execute(
        select(User.id, User.name, User.avatar_color, Streak.best_streak, Streak.current_streak)
        .join(Streak, Streak.user_id == User.id)
        .where(Streak.best_streak > 0)
        .order_by(Streak.best_streak.desc(), Streak.current_streak.desc(), User.id)
        .limit(limit)
    )
    streaks = [
        {
            "rank": i,
            "id": row.id,
            "name": row.name,
            "avatar_color": row.avatar_color,
            "best_streak": row.best_streak,
            "current_streak": row.current_streak,
        }
        for i, row in enumerate(streak_result.all(), start=1)
    ]

    return {
        "co2": co2,
        "calories": calories,
        "streaks": streaks,
    }
