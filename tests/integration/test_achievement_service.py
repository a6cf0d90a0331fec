"""Integration tests for achievement evaluation and awarding."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select

from core29.db.models import Achievement, UserAchievement
from core29.gamification.achievement_service import (
    award_achievement,
    evaluate_achievements,
    get_earned_achievements,
    get_user_stats,
    list_user_achievements,
)
from core29.journeys.service import log_journey

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


async def _earned_keys(db, user_id: int) -> set[str]:
    return {a["key"] for a in await get_earned_achievements(db, user_id)}


class TestEvaluateAchievements:
    async def test_no_journeys_earns_nothing(self, db_session, alice):
        assert await evaluate_achievements(db_session, None, alice.id, NOW) == []

    async def test_first_journey(self, db_session, alice):
        logged = await log_journey(db_session, None, alice.id, 2, "walk", date(2026, 3, 2), now=NOW)
        assert [a.key for a in logged.new_achievements] == ["first_journey"]

    async def test_fifth_journey_earns_once(self, db_session, alice):
        keys = []
        for _ in range(5):
            logged = await log_journey(db_session, None, alice.id, 1, "walk", date(2026, 3, 2), now=NOW)
            keys.extend(a.key for a in logged.new_achievements)

        assert keys.count("journeys_5") == 1
        assert await evaluate_achievements(db_session, None, alice.id, NOW) == []

    async def test_co2_and_calorie_thresholds(self, db_session, alice):
        logged = await log_journey(db_session, None, alice.id, 20, "cycle", date(2026, 3, 2), now=NOW)
        # 20 km cycling: 3400 g saved, 600 kcal
        assert {a.key for a in logged.new_achievements} == {"first_journey", "co2_1kg", "calories_500"}

    async def test_streak_threshold(self, db_session, alice):
        for day in (2, 3, 4):
            logged = await log_journey(db_session, None, alice.id, 1, "walk", date(2026, 3, day), now=NOW)
        assert "streak_3" in {a.key for a in logged.new_achievements}

    async def test_earned_achievement_survives_streak_reset(self, db_session, alice):
        for day in (2, 3, 4, 10):
            await log_journey(db_session, None, alice.id, 1, "walk", date(2026, 3, day), now=NOW)
        assert "streak_3" in await _earned_keys(db_session, alice.id)


class TestAwardAchievement:
    async def test_second_award_is_skipped(self, db_session, alice):
        result = await db_session.execute(select(Achievement).where(Achievement.key == "journeys_25"))
        achievement = result.scalar_one()

        assert await award_achievement(db_session, alice.id, achievement.id, NOW) is True
        assert await award_achievement(db_session, alice.id, achievement.id, NOW) is False
        await db_session.commit()

        count = await db_session.execute(
            select(func.count()).select_from(UserAchievement).where(UserAchievement.user_id == alice.id)
        )
        assert count.scalar_one() == 1


class TestQueries:
    async def test_user_stats(self, db_session, alice):
        await log_journey(db_session, None, alice.id, 5, "cycle", date(2026, 3, 2), now=NOW)
        await log_journey(db_session, None, alice.id, 100, "plane", date(2026, 3, 3), now=NOW)

        stats = await get_user_stats(db_session, alice.id)
        assert stats.journey_count == 2
        assert stats.total_co2_saved_g == 850.0 - 8500.0
        assert stats.total_calories_kcal == 150.0
        assert stats.current_streak == 2

    async def test_catalog_with_earned_flags(self, db_session, alice):
        await log_journey(db_session, None, alice.id, 2, "walk", date(2026, 3, 2), now=NOW)

        catalog = await list_user_achievements(db_session, alice.id)
        assert len(catalog) == 11
        earned = [a["key"] for a in catalog if a["earned"]]
        assert earned == ["first_journey"]
        assert catalog[0]["key"] == "first_journey"
        assert catalog[0]["earned_at"] is not None
        assert all(a["earned_at"] is None for a in catalog[1:])

    async def test_earned_achievements_are_per_user(self, db_session, alice, bob):
        await log_journey(db_session, None, alice.id, 2, "walk", date(2026, 3, 2), now=NOW)
        assert await get_earned_achievements(db_session, bob.id) == []
