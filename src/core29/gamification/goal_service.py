"""Weekly CO2-saving goals (weeks start on Monday)."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core29.config import get_settings
from core29.db.dialect import insert_for
from core29.db.models import Journey, JourneyResult, User, WeeklyGoal
from core29.exceptions import NotFoundError, ValidationError
from core29.impact.calculator import round2


def get_monday(d: date | datetime) -> date:
    """Get the Monday of the ISO week containing d."""
    day = d.date() if isinstance(d, datetime) else d
    return day - timedelta(days=day.weekday())


async def set_weekly_goal(
    db: AsyncSession,
    user_id: int,
    target_co2_saved_g: float,
    today: date | None = None,
) -> WeeklyGoal:
    """Create or replace this week's target for a user."""
    if target_co2_saved_g <= 0:
        raise ValidationError("target_co2_saved_g must be positive")
    if await db.get(User, user_id) is None:
        raise NotFoundError(f"User {user_id} not found")
    if today is None:
        today = datetime.now(timezone.utc).date()
    week_start = get_monday(today)

    stmt = insert_for(db, WeeklyGoal).values(
        user_id=user_id,
        week_start=week_start,
        target_co2_saved_g=target_co2_saved_g,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "week_start"],
        set_={"target_co2_saved_g": stmt.excluded.target_co2_saved_g},
    )
    await db.execute(stmt)
    await db.commit()

    result = await db.execute(
        select(WeeklyGoal)
        .where(WeeklyGoal.user_id == user_id, WeeklyGoal.week_start == week_start)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_weekly_progress(db: AsyncSession, user_id: int, today: date | None = None) -> dict:
    """This week's target (configured default when unset) and CO2 saved so far."""
    if today is None:
        today = datetime.now(timezone.utc).date()
    week_start = get_monday(today)

    progress = await db.execute(
        select(func.coalesce(func.sum(JourneyResult.vs_drive_co2_saved_g), 0.0))
        .select_from(Journey)
        .join(JourneyResult, JourneyResult.journey_id == Journey.id)
        .where(Journey.user_id == user_id, Journey.journey_date >= week_start)
    )
    goal = await db.execute(
        select(WeeklyGoal.target_co2_saved_g).where(
            WeeklyGoal.user_id == user_id,
            WeeklyGoal.week_start == week_start,
        )
    )
    target = goal.scalar_one_or_none()
    return {
        "week_start": week_start,
        "target_g": target if target is not None else get_settings().default_weekly_goal_g,
        "progress_g": round2(float(progress.scalar_one())),
    }
