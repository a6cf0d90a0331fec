"""User registration by name and per-user impact summary."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core29.db.models import User
from core29.exceptions import NotFoundError, ValidationError
from core29.gamification.achievement_service import get_earned_achievements, get_user_stats
from core29.gamification.goal_service import get_weekly_progress
from core29.gamification.streak_service import get_streak
from core29.impact.calculator import round2

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


async def get_or_create_user(db: AsyncSession, name: str) -> tuple[User, bool]:
    """Find a user by exact (trimmed) name or create one. Returns (user, created)."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")

    result = await db.execute(select(User).where(User.name == name))
    user = result.scalar_one_or_none()
    if user is not None:
        return user, False

    user = User(name=name)
    db.add(user)
    await db.commit()
    logger.info("Created user %d (%s)", user.id, name)
    return user, True


async def get_user_summary(db: AsyncSession, user_id: int, today: date | None = None) -> dict:
    """Totals, streak, earned achievements and weekly goal progress."""
    await get_user(db, user_id)
    stats = await get_user_stats(db, user_id)
    streak = await get_streak(db, user_id)

    return {
        "user_id": user_id,
        "journey_count": stats.journey_count,
        "total_co2_saved_g": round2(stats.total_co2_saved_g),
        "total_calories_kcal": round2(stats.total_calories_kcal),
        "streak": {
            "current_streak": streak.current,
            "best_streak": streak.best,
            "last_journey_date": streak.last_date,
        },
        "badges": await get_earned_achievements(db, user_id),
        "weekly_goal": await get_weekly_progress(db, user_id, today),
    }
