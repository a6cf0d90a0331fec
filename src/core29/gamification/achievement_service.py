"""Achievement evaluation with idempotent awarding.

Each catalog entry names one of four cumulative stats and a threshold. After
every journey the user's stats are snapshotted and every not-yet-earned entry
is checked through a single dispatch table.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core29.db.dialect import insert_for
from core29.db.models import Achievement, Journey, JourneyResult, UserAchievement
from core29.events import ACHIEVEMENT_EARNED_CHANNEL, publish_event
from core29.gamification.streak_service import get_streak

logger = logging.getLogger(__name__)


class ThresholdType(str, Enum):
    JOURNEY_COUNT = "journey_count"
    CO2_SAVED_G = "co2_saved_g"
    CALORIES_KCAL = "calories_kcal"
    STREAK = "streak"


@dataclass(frozen=True)
class UserStats:
    """Cumulative figures the thresholds are checked against."""

    journey_count: int = 0
    total_co2_saved_g: float = 0.0
    total_calories_kcal: float = 0.0
    current_streak: int = 0


_COMPARATORS: dict[ThresholdType, Callable[[UserStats, float], bool]] = {
    ThresholdType.JOURNEY_COUNT: lambda s, v: s.journey_count >= v,
    ThresholdType.CO2_SAVED_G: lambda s, v: s.total_co2_saved_g >= v,
    ThresholdType.CALORIES_KCAL: lambda s, v: s.total_calories_kcal >= v,
    ThresholdType.STREAK: lambda s, v: s.current_streak >= v,
}


def qualifies(threshold_type: str | ThresholdType, threshold_value: float, stats: UserStats) -> bool:
    """True if stats meet the threshold. Unknown threshold types raise ValueError."""
    return _COMPARATORS[ThresholdType(threshold_type)](stats, threshold_value)


async def get_user_stats(db: AsyncSession, user_id: int) -> UserStats:
    """Snapshot journey count, CO2 saved, calories and current streak for a user."""
    result = await db.execute(
        select(
            func.count(Journey.id),
            func.coalesce(func.sum(JourneyResult.vs_drive_co2_saved_g), 0.0),
            func.coalesce(func.sum(JourneyResult.calories_kcal), 0.0),
        )
        .select_from(Journey)
        .join(JourneyResult, JourneyResult.journey_id == Journey.id)
        .where(Journey.user_id == user_id)
    )
    count, co2, calories = result.one()
    streak = await get_streak(db, user_id)
    return UserStats(
        journey_count=int(count),
        total_co2_saved_g=float(co2),
        total_calories_kcal=float(calories),
        current_streak=streak.current,
    )


async def get_unearned_achievements(db: AsyncSession, user_id: int) -> list[Achievement]:
    """Catalog entries the user has not earned yet."""
    earned = select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    result = await db.execute(
        select(Achievement)
        .where(Achievement.id.not_in(earned))
        .order_by(Achievement.sort_order, Achievement.id)
    )
    return list(result.scalars().all())


async def award_achievement(
    db: AsyncSession,
    user_id: int,
    achievement_id: int,
    now: datetime | None = None,
) -> bool:
    """Record an achievement for a user.

    Returns True only if this call inserted the row; a concurrent or repeated
    award hits the unique constraint and is silently skipped.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    stmt = insert_for(db, UserAchievement).values(
        user_id=user_id,
        achievement_id=achievement_id,
        earned_at=now,
    )
    stmt = stmt.on_conflict_do_nothing(index_elements=["user_id", "achievement_id"])
    result = await db.execute(stmt)
    return result.rowcount == 1


async def award_qualified_achievements(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
) -> list[Achievement]:
    """Award every achievement the user now qualifies for, inside the caller's transaction.

    Returns only the achievements newly earned by this invocation.
    """
    stats = await get_user_stats(db, user_id)
    newly_earned: list[Achievement] = []

    for achievement in await get_unearned_achievements(db, user_id):
        if not qualifies(achievement.threshold_type, achievement.threshold_value, stats):
            continue
        if await award_achievement(db, user_id, achievement.id, now):
            newly_earned.append(achievement)

    for achievement in newly_earned:
        logger.info("User %d earned achievement %s", user_id, achievement.key)
    return newly_earned


async def publish_achievements(redis: object, user_id: int, achievements: list[Achievement]) -> None:
    """Announce committed awards to the notification layer."""
    for achievement in achievements:
        await publish_event(redis, ACHIEVEMENT_EARNED_CHANNEL, {
            "user_id": user_id,
            "key": achievement.key,
            "title": achievement.title,
            "icon": achievement.icon,
        })


async def evaluate_achievements(
    db: AsyncSession,
    redis: object,
    user_id: int,
    now: datetime | None = None,
) -> list[Achievement]:
    """Award, commit and announce whatever the user has newly earned."""
    newly_earned = await award_qualified_achievements(db, user_id, now)
    await db.commit()
    await publish_achievements(redis, user_id, newly_earned)
    return newly_earned


async def list_user_achievements(db: AsyncSession, user_id: int) -> list[dict]:
    """Full catalog with earned flag and timestamp for one user."""
    result = await db.execute(
        select(Achievement, UserAchievement.earned_at)
        .outerjoin(
            UserAchievement,
            (UserAchievement.achievement_id == Achievement.id) & (UserAchievement.user_id == user_id),
        )
        .order_by(Achievement.sort_order, Achievement.id)
    )
    return [
        {
            "key": achievement.key,
            "title": achievement.title,
            "icon": achievement.icon,
            "description": achievement.description,
            "threshold_type": achievement.threshold_type,
            "threshold_value": achievement.threshold_value,
            "earned": earned_at is not None,
            "earned_at": earned_at,
        }
        for achievement, earned_at in result.all()
    ]


async def get_earned_achievements(db: AsyncSession, user_id: int) -> list[dict]:
    """Earned achievements, most recent first."""
    result = await db.execute(
        select(Achievement, UserAchievement.earned_at)
        .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.earned_at.desc(), Achievement.id)
    )
    return [
        {"key": a.key, "title": a.title, "icon": a.icon, "earned_at": earned_at}
        for a, earned_at in result.all()
    ]
