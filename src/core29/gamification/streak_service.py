"""Streak tracking: consecutive calendar days with at least one non-drive journey."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core29.db.dialect import insert_for
from core29.db.models import Streak

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakState:
    """Snapshot of a user's streak. last_date None is the NoRecord state."""

    current: int = 0
    best: int = 0
    last_date: date | None = None

    @property
    def has_record(self) -> bool:
        return self.last_date is not None


def to_calendar_date(value: date | datetime) -> date:
    """Drop any time-of-day so day gaps are counted on calendar dates."""
    if isinstance(value, datetime):
        return value.date()
    return value


def advance_streak(state: StreakState, journey_date: date | datetime) -> StreakState:
    """Apply one qualifying journey to a streak.

    NoRecord -> 1; same day -> unchanged; next day -> +1; any larger gap -> 1.
    best never decreases. A journey dated before last_date leaves the streak alone.
    """
    day = to_calendar_date(journey_date)

    if not state.has_record:
        return StreakState(current=1, best=max(1, state.best), last_date=day)

    gap = (day - state.last_date).days  # type: ignore[operator]
    if gap <= 0:
        return state
    if gap == 1:
        current = state.current + 1
        return StreakState(current=current, best=max(current, state.best), last_date=day)
    return StreakState(current=1, best=max(1, state.best), last_date=day)


def _state_of(row: Streak | None) -> StreakState:
    if row is None:
        return StreakState()
    return StreakState(
        current=row.current_streak,
        best=row.best_streak,
        last_date=row.last_journey_date,
    )


async def get_streak(db: AsyncSession, user_id: int) -> StreakState:
    """Current streak for a user (zeros when nothing has been logged)."""
    result = await db.execute(select(Streak).where(Streak.user_id == user_id))
    return _state_of(result.scalar_one_or_none())


async def _ensure_streak_row(db: AsyncSession, user_id: int) -> None:
    """Insert an empty streak row if absent. Safe under concurrent first journeys."""
    stmt = insert_for(db, Streak).values(
        user_id=user_id, current_streak=0, best_streak=0, last_journey_date=None,
    )
    await db.execute(stmt.on_conflict_do_nothing(index_elements=["user_id"]))


async def update_streak(
    db: AsyncSession,
    user_id: int,
    journey_date: date | datetime,
) -> StreakState:
    """Advance a user's streak for a qualifying journey date.

    The row is locked for the rest of the caller's transaction so two journeys
    logged at once for the same user apply one after the other. The caller owns
    the commit. Returns the resulting state.
    """
    await _ensure_streak_row(db, user_id)
    result = await db.execute(
        select(Streak)
        .where(Streak.user_id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one()

    before = _state_of(row)
    after = advance_streak(before, journey_date)
    if after == before:
        return before

    row.current_streak = after.current
    row.best_streak = after.best
    row.last_journey_date = after.last_date
    await db.flush()

    if before.has_record and after.current == 1 and before.current > 1:
        logger.info("Streak reset for user %d after %d days", user_id, before.current)
    else:
        logger.debug("Streak for user %d now %d (best %d)", user_id, after.current, after.best)
    return after
