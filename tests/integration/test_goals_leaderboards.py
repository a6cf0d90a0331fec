"""Integration tests for weekly goals, user summaries and leaderboards."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from core29.competition.leaderboard_service import get_leaderboards
from core29.exceptions import NotFoundError, ValidationError
from core29.gamification.goal_service import get_weekly_progress, set_weekly_goal
from core29.journeys.service import log_journey
from core29.users.service import get_or_create_user, get_user_summary

pytestmark = pytest.mark.asyncio

WEDNESDAY = date(2026, 3, 4)
NOW = datetime(2026, 3, 4, 18, 0, tzinfo=timezone.utc)


class TestWeeklyGoals:
    async def test_set_goal_uses_monday(self, db_session, alice):
        goal = await set_weekly_goal(db_session, alice.id, 3000, today=WEDNESDAY)
        assert goal.week_start == date(2026, 3, 2)
        assert goal.target_co2_saved_g == 3000

    async def test_set_goal_twice_replaces(self, db_session, alice):
        await set_weekly_goal(db_session, alice.id, 3000, today=WEDNESDAY)
        goal = await set_weekly_goal(db_session, alice.id, 4500, today=date(2026, 3, 8))
        assert goal.target_co2_saved_g == 4500

        progress = await get_weekly_progress(db_session, alice.id, today=WEDNESDAY)
        assert progress["target_g"] == 4500

    async def test_default_target(self, db_session, alice):
        progress = await get_weekly_progress(db_session, alice.id, today=WEDNESDAY)
        assert progress == {"week_start": date(2026, 3, 2), "target_g": 5000.0, "progress_g": 0.0}

    async def test_progress_counts_this_week_only(self, db_session, alice):
        await log_journey(db_session, None, alice.id, 5, "cycle", date(2026, 3, 1), now=NOW)
        await log_journey(db_session, None, alice.id, 5, "cycle", date(2026, 3, 2), now=NOW)
        await log_journey(db_session, None, alice.id, 1, "walk", WEDNESDAY, now=NOW)

        progress = await get_weekly_progress(db_session, alice.id, today=WEDNESDAY)
        assert progress["progress_g"] == 1020.0

    async def test_invalid_target(self, db_session, alice):
        with pytest.raises(ValidationError):
            await set_weekly_goal(db_session, alice.id, 0, today=WEDNESDAY)

    async def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await set_weekly_goal(db_session, 999, 1000, today=WEDNESDAY)


class TestUsers:
    async def test_get_or_create_is_idempotent(self, db_session):
        first, created = await get_or_create_user(db_session, "  Dana ")
        again, created_again = await get_or_create_user(db_session, "Dana")
        assert created is True
        assert created_again is False
        assert first.id == again.id
        assert first.name == "Dana"

    async def test_blank_name(self, db_session):
        with pytest.raises(ValidationError, match="Name is required"):
            await get_or_create_user(db_session, "   ")

    async def test_summary(self, db_session, alice):
        await log_journey(db_session, None, alice.id, 5, "cycle", WEDNESDAY, now=NOW)
        await log_journey(db_session, None, alice.id, 10, "drive", WEDNESDAY, now=NOW)

        summary = await get_user_summary(db_session, alice.id, today=WEDNESDAY)
        assert summary["journey_count"] == 2
        assert summary["total_co2_saved_g"] == 850.0
        assert summary["total_calories_kcal"] == 150.0
        assert summary["streak"]["current_streak"] == 1
        assert [b["key"] for b in summary["badges"]] == ["first_journey"]
        assert summary["weekly_goal"]["progress_g"] == 850.0

    async def test_summary_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await get_user_summary(db_session, 999)


class TestLeaderboards:
    async def test_empty(self, db_session, alice):
        assert await get_leaderboards(db_session) == {"co2": [], "calories": [], "streaks": []}

    async def test_rankings(self, db_session, alice, bob, carol):
        await log_journey(db_session, None, alice.id, 2, "walk", WEDNESDAY, now=NOW)
        await log_journey(db_session, None, bob.id, 10, "cycle", WEDNESDAY, now=NOW)
        await log_journey(db_session, None, carol.id, 10, "drive", WEDNESDAY, now=NOW)

        boards = await get_leaderboards(db_session)

        assert [(e["rank"], e["name"], e["total_co2_saved_g"]) for e in boards["co2"]] == [
            (1, "Bob", 1700.0),
            (2, "Alice", 340.0),
        ]
        assert [(e["name"], e["total_calories"]) for e in boards["calories"]] == [
            ("Bob", 300.0),
            ("Alice", 100.0),
        ]
        assert [e["name"] for e in boards["streaks"]] == ["Alice", "Bob"]
        assert boards["streaks"][0]["best_streak"] == 1

    async def test_limit(self, db_session, alice, bob):
        await log_journey(db_session, None, alice.id, 2, "walk", WEDNESDAY, now=NOW)
        await log_journey(db_session, None, bob.id, 10, "cycle", WEDNESDAY, now=NOW)
        boards = await get_leaderboards(db_session, limit=1)
        assert len(boards["co2"]) == 1
        assert boards["co2"][0]["name"] == "Bob"
