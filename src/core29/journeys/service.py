"""Journey logging: the event that drives streaks, achievements and battle scores."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core29.competition.battle_service import publish_battle_completions, rescore_active_battles
from core29.config import get_settings
from core29.db.models import Achievement, Journey, JourneyResult, Location, User
from core29.exceptions import NotFoundError
from core29.gamification.achievement_service import award_qualified_achievements, publish_achievements
from core29.gamification.streak_service import StreakState, get_streak, to_calendar_date, update_streak
from core29.impact.calculator import (
    JourneyCalculation,
    TransportMode,
    calculate_journey,
    get_calorie_equivalents,
    get_impact_equivalents,
    parse_mode,
    validate_distance,
)

logger = logging.getLogger(__name__)


@dataclass
class JourneyLogResult:
    journey: Journey
    results: JourneyCalculation
    impact_equivalents: dict[str, float]
    calorie_equivalents: dict[str, float]
    streak: StreakState
    new_achievements: list[Achievement] = field(default_factory=list)
    battles_updated: int = 0


async def _require_location(db: AsyncSession, location_id: int | None) -> None:
    if location_id is not None and await db.get(Location, location_id) is None:
        raise NotFoundError(f"Location {location_id} not found")


async def log_journey(
    db: AsyncSession,
    redis: object,
    user_id: int,
    distance_km: float,
    mode: str | TransportMode,
    journey_date: date | datetime | None = None,
    start_location_id: int | None = None,
    end_location_id: int | None = None,
    now: datetime | None = None,
) -> JourneyLogResult:
    """Record a journey and apply all of its side effects as one transaction.

    1. Validate input and references (nothing is written on failure)
    2. Store the journey and its computed impact
    3. Advance the streak (non-drive journeys only)
    4. Award newly qualified achievements
    5. Refresh scores of the user's active battles

    Events for new achievements and completed battles go out after the commit.
    """
    settings = get_settings()
    distance_km = validate_distance(distance_km, settings.max_distance_km)
    transport_mode = parse_mode(mode)

    if now is None:
        now = datetime.now(timezone.utc)
    day = to_calendar_date(journey_date) if journey_date is not None else now.date()

    if await db.get(User, user_id) is None:
        raise NotFoundError(f"User {user_id} not found")
    await _require_location(db, start_location_id)
    await _require_location(db, end_location_id)

    calc = calculate_journey(distance_km, transport_mode)

    try:
        journey = Journey(
            user_id=user_id,
            journey_date=day,
            distance_km=distance_km,
            mode=transport_mode.value,
            start_location_id=start_location_id,
            end_location_id=end_location_id,
            created_at=now,
        )
        journey.result = JourneyResult(**calc.as_dict())
        db.add(journey)
        await db.flush()

        if transport_mode is not TransportMode.DRIVE:
            streak = await update_streak(db, user_id, day)
        else:
            streak = await get_streak(db, user_id)

        new_achievements = await award_qualified_achievements(db, user_id, now)
        battles_updated, completed = await rescore_active_battles(db, user_id, now)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await publish_achievements(redis, user_id, new_achievements)
    await publish_battle_completions(redis, completed)

    logger.info(
        "Journey %d logged for user %d: %.2f km by %s, %.2f g CO2 saved",
        journey.id, user_id, distance_km, transport_mode.value, calc.vs_drive_co2_saved_g,
    )
    return JourneyLogResult(
        journey=journey,
        results=calc,
        impact_equivalents=get_impact_equivalents(calc.vs_drive_co2_saved_g),
        calorie_equivalents=get_calorie_equivalents(calc.calories_kcal),
        streak=streak,
        new_achievements=new_achievements,
        battles_updated=battles_updated,
    )


async def list_journeys(db: AsyncSession, user_id: int, limit: int | None = None) -> list[Journey]:
    """Latest journeys for a user, newest first, with their results loaded."""
    if limit is None:
        limit = get_settings().journey_history_limit
    result = await db.execute(
        select(Journey)
        .where(Journey.user_id == user_id)
        .order_by(Journey.journey_date.desc(), Journey.created_at.desc(), Journey.id.desc())
        .limit(limit)
    )
    return list(result.unique().scalars().all())
