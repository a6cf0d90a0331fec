"""Integration tests for friend battle creation, responses, scoring and completion."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from core29.competition import battle_service
from core29.competition.battle_service import (
    ACTIVE,
    COMPLETED,
    DECLINED,
    PENDING,
    accept_battle,
    create_battle,
    decline_battle,
    get_battle,
    get_battle_score,
    list_battles,
    refresh_battle_scores,
    search_users,
)
from core29.db.models import Battle
from core29.exceptions import ConflictError, NotFoundError, ValidationError
from core29.journeys.service import log_journey

pytestmark = pytest.mark.asyncio

START = date(2026, 3, 2)


def _at(d: date, hour: int = 12) -> datetime:
    return datetime(d.year, d.month, d.day, hour, tzinfo=timezone.utc)


class TestCreateBattle:
    async def test_instant_battle_is_active(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", today=START)
        assert battle.status == ACTIVE
        assert battle.opponent_id == bob.id
        assert battle.start_date == START
        assert battle.end_date == START + timedelta(days=7)
        assert battle.challenger_co2_saved_g == 0.0
        assert battle.winner_id is None

    async def test_opponent_name_case_insensitive(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "  bOB ", duration_days=3, today=START)
        assert battle.opponent_id == bob.id
        assert battle.end_date == START + timedelta(days=3)

    async def test_pending_when_not_instant(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", instant=False, today=START)
        assert battle.status == PENDING

    async def test_duplicate_open_battle_conflicts(self, db_session, alice, bob):
        await create_battle(db_session, None, alice.id, "Bob", today=START)
        with pytest.raises(ConflictError):
            await create_battle(db_session, None, alice.id, "Bob", today=START)

    async def test_reverse_direction_conflicts(self, db_session, alice, bob):
        await create_battle(db_session, None, alice.id, "Bob", instant=False, today=START)
        with pytest.raises(ConflictError):
            await create_battle(db_session, None, bob.id, "Alice", today=START)

    async def test_schema_allows_one_open_battle_per_pair(self, db_session, alice, bob):
        await create_battle(db_session, None, alice.id, "Bob", today=START)
        db_session.add(Battle(
            challenger_id=bob.id,
            opponent_id=alice.id,
            status=PENDING,
            start_date=START,
            end_date=START + timedelta(days=7),
        ))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    async def test_concurrent_challenge_is_conflict(self, db_session, alice, bob, monkeypatch):
        await create_battle(db_session, None, alice.id, "Bob", today=START)

        # Both requests passed the open-battle check before either committed
        async def no_open_battle(db, user_a, user_b):
            return None

        monkeypatch.setattr(battle_service, "find_open_battle", no_open_battle)
        with pytest.raises(ConflictError, match="already have an active battle"):
            await create_battle(db_session, None, bob.id, "Alice", today=START)

    async def test_third_party_may_challenge(self, db_session, alice, bob, carol):
        await create_battle(db_session, None, alice.id, "Bob", today=START)
        battle = await create_battle(db_session, None, carol.id, "Alice", today=START)
        assert battle.status == ACTIVE

    async def test_new_battle_after_decline(self, db_session, alice, bob):
        first = await create_battle(db_session, None, alice.id, "Bob", instant=False, today=START)
        await decline_battle(db_session, None, first.id, bob.id)
        second = await create_battle(db_session, None, alice.id, "Bob", today=START)
        assert second.id != first.id

    async def test_unknown_opponent(self, db_session, alice):
        with pytest.raises(NotFoundError, match="register first"):
            await create_battle(db_session, None, alice.id, "Nobody", today=START)

    async def test_cannot_challenge_self(self, db_session, alice):
        with pytest.raises(NotFoundError):
            await create_battle(db_session, None, alice.id, "alice", today=START)

    async def test_unknown_challenger(self, db_session, bob):
        with pytest.raises(NotFoundError):
            await create_battle(db_session, None, 999, "Bob", today=START)

    @pytest.mark.parametrize("days", [0, -1, 366])
    async def test_duration_out_of_range(self, db_session, alice, bob, days):
        with pytest.raises(ValidationError):
            await create_battle(db_session, None, alice.id, "Bob", duration_days=days, today=START)

    async def test_empty_opponent_name(self, db_session, alice):
        with pytest.raises(ValidationError):
            await create_battle(db_session, None, alice.id, "   ", today=START)


class TestRespondToBattle:
    async def test_accept(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", instant=False, today=START)
        battle = await accept_battle(db_session, None, battle.id, bob.id)
        assert battle.status == ACTIVE

    async def test_decline(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", instant=False, today=START)
        battle = await decline_battle(db_session, None, battle.id, bob.id)
        assert battle.status == DECLINED

    async def test_challenger_cannot_accept_own_challenge(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", instant=False, today=START)
        battle = await accept_battle(db_session, None, battle.id, alice.id)
        assert battle.status == PENDING

    async def test_responding_twice_is_noop(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", instant=False, today=START)
        await decline_battle(db_session, None, battle.id, bob.id)
        battle = await accept_battle(db_session, None, battle.id, bob.id)
        assert battle.status == DECLINED

    async def test_non_participant(self, db_session, alice, bob, carol):
        battle = await create_battle(db_session, None, alice.id, "Bob", instant=False, today=START)
        with pytest.raises(NotFoundError):
            await accept_battle(db_session, None, battle.id, carol.id)

    async def test_unknown_battle(self, db_session, alice):
        with pytest.raises(NotFoundError):
            await accept_battle(db_session, None, 12345, alice.id)


class TestScoring:
    async def test_journey_updates_active_battle(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", today=START)

        logged = await log_journey(db_session, None, alice.id, 10, "cycle", START, now=_at(START))
        assert logged.battles_updated == 1

        battle = await get_battle(db_session, battle.id)
        assert battle.challenger_co2_saved_g == 1700.0
        assert battle.opponent_co2_saved_g == 0.0
        assert battle.status == ACTIVE

    async def test_pending_battle_not_scored(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", instant=False, today=START)
        logged = await log_journey(db_session, None, alice.id, 10, "cycle", START, now=_at(START))
        assert logged.battles_updated == 0
        assert (await get_battle(db_session, battle.id)).challenger_co2_saved_g == 0.0

    async def test_window_bounds_inclusive(self, db_session, alice):
        now = _at(START + timedelta(days=10))
        for d in (START - timedelta(days=1), START, START + timedelta(days=7), START + timedelta(days=8)):
            await log_journey(db_session, None, alice.id, 1, "walk", d, now=now)
        # 1 km walk saves 170 g; only the two in-window journeys count
        assert await get_battle_score(db_session, alice.id, START, START + timedelta(days=7)) == 340.0

    async def test_drive_journeys_excluded(self, db_session, alice, bob):
        await create_battle(db_session, None, alice.id, "Bob", today=START)
        await log_journey(db_session, None, bob.id, 10, "drive", START, now=_at(START))
        assert await get_battle_score(db_session, bob.id, START, START + timedelta(days=7)) == 0.0

    async def test_negative_savings_count(self, db_session, alice):
        await log_journey(db_session, None, alice.id, 100, "plane", START, now=_at(START))
        assert await get_battle_score(db_session, alice.id, START, START) == -8500.0


class TestCompletion:
    async def test_expired_battle_completes_with_winner(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", today=START)
        await log_journey(db_session, None, alice.id, 10, "cycle", START, now=_at(START))
        await log_journey(db_session, None, bob.id, 2, "walk", START + timedelta(days=1), now=_at(START))

        after_end = _at(battle.end_date + timedelta(days=1))
        assert await refresh_battle_scores(db_session, None, alice.id, now=after_end) == 1

        battle = await get_battle(db_session, battle.id)
        assert battle.status == COMPLETED
        assert battle.winner_id == alice.id
        assert battle.completed_at is not None
        assert (battle.challenger_co2_saved_g, battle.opponent_co2_saved_g) == (1700.0, 340.0)

    async def test_still_active_late_on_day_before_end(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", today=START)
        day_before_end = battle.end_date - timedelta(days=1)
        await refresh_battle_scores(db_session, None, alice.id, now=_at(day_before_end, 23))
        assert (await get_battle(db_session, battle.id)).status == ACTIVE

    async def test_completes_once_end_date_begins(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", today=START)
        await log_journey(db_session, None, bob.id, 2, "walk", battle.end_date, now=_at(battle.end_date, 0))

        battle = await get_battle(db_session, battle.id)
        assert battle.status == COMPLETED
        # A journey dated end_date still lands in the final score
        assert battle.opponent_co2_saved_g == 340.0
        assert battle.winner_id == bob.id

    async def test_tie_has_no_winner(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", today=START)
        await log_journey(db_session, None, alice.id, 5, "cycle", START, now=_at(START))
        await log_journey(db_session, None, bob.id, 5, "walk", START, now=_at(START))

        await refresh_battle_scores(db_session, None, bob.id, now=_at(START + timedelta(days=30)))
        battle = await get_battle(db_session, battle.id)
        assert battle.status == COMPLETED
        assert battle.challenger_co2_saved_g == battle.opponent_co2_saved_g == 850.0
        assert battle.winner_id is None

    async def test_completed_battle_is_frozen(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", today=START)
        later = _at(START + timedelta(days=9))
        await refresh_battle_scores(db_session, None, alice.id, now=later)

        # A back-dated journey inside the old window must not reopen or rescore it
        logged = await log_journey(db_session, None, bob.id, 10, "cycle", START, now=later)
        assert logged.battles_updated == 0

        battle = await get_battle(db_session, battle.id)
        assert battle.status == COMPLETED
        assert battle.opponent_co2_saved_g == 0.0
        assert battle.winner_id is None

    async def test_refresh_with_no_battles(self, db_session, alice):
        assert await refresh_battle_scores(db_session, None, alice.id) == 0

    async def test_completed_pair_can_battle_again(self, db_session, alice, bob):
        battle = await create_battle(db_session, None, alice.id, "Bob", today=START)
        await refresh_battle_scores(db_session, None, alice.id, now=_at(START + timedelta(days=8)))
        again = await create_battle(db_session, None, bob.id, "Alice", today=START + timedelta(days=8))
        assert again.id != battle.id


class TestListing:
    async def test_list_battles_includes_names(self, db_session, alice, bob, carol):
        await create_battle(db_session, None, alice.id, "Bob", today=START)
        await create_battle(db_session, None, carol.id, "Alice", today=START)

        battles = await list_battles(db_session, alice.id)
        assert len(battles) == 2
        assert {b["challenger_name"] for b in battles} == {"Alice", "Carol"}
        assert all(b["winner_name"] is None for b in battles)
        assert await list_battles(db_session, bob.id, limit=5) != []

    async def test_search_users(self, db_session, alice, bob, make_user):
        await make_user("Alicia")
        names = [u.name for u in await search_users(db_session, "ali", exclude_user_id=alice.id)]
        assert names == ["Alicia"]

    async def test_search_needs_two_characters(self, db_session, alice):
        assert await search_users(db_session, "a") == []

    async def test_search_escapes_wildcards(self, db_session, alice, bob):
        assert await search_users(db_session, "%%") == []
