"""Friend battles: two-user CO2-saving challenges over a date window.

State progression: pending -> active | declined, active -> completed.
declined and completed are terminal; a completed battle's scores and winner
never change again.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from core29.config import get_settings
from core29.db.models import Battle, Journey, JourneyResult, User
from core29.events import BATTLE_UPDATE_CHANNEL, publish_event
from core29.exceptions import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from core29.impact.calculator import TransportMode, round2

logger = logging.getLogger(__name__)

PENDING = "pending"
ACTIVE = "active"
DECLINED = "declined"
COMPLETED = "completed"

OPEN_STATUSES = (PENDING, ACTIVE)

VALID_TRANSITIONS: dict[str, list[str]] = {
    PENDING: [ACTIVE, DECLINED],
    ACTIVE: [COMPLETED],
    DECLINED: [],
    COMPLETED: [],
}


def validate_transition(current_status: str, target_status: str) -> None:
    """Validate a state transition. Raises InvalidTransitionError if invalid."""
    valid = VALID_TRANSITIONS.get(current_status, [])
    if target_status not in valid:
        raise InvalidTransitionError(
            f"Invalid transition: {current_status} -> {target_status}. "
            f"Valid transitions: {valid}"
        )


def decide_winner(battle: Battle) -> int | None:
    """Participant with the strictly higher score; None on an exact tie."""
    if battle.challenger_co2_saved_g > battle.opponent_co2_saved_g:
        return battle.challenger_id
    if battle.opponent_co2_saved_g > battle.challenger_co2_saved_g:
        return battle.opponent_id
    return None


def is_expired(battle: Battle, today: date) -> bool:
    """A battle is over once its end date begins (journeys dated end_date still score)."""
    return today >= battle.end_date


async def get_battle(db: AsyncSession, battle_id: int, lock: bool = False) -> Battle:
    """Get a battle by ID, optionally locking the row."""
    stmt = select(Battle).where(Battle.id == battle_id)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    battle = result.scalar_one_or_none()
    if battle is None:
        raise NotFoundError(f"Battle {battle_id} not found")
    return battle


async def find_open_battle(db: AsyncSession, user_a: int, user_b: int) -> Battle | None:
    """The pending or active battle between two users, in either direction."""
    result = await db.execute(
        select(Battle)
        .where(
            Battle.status.in_(OPEN_STATUSES),
            or_(
                and_(Battle.challenger_id == user_a, Battle.opponent_id == user_b),
                and_(Battle.challenger_id == user_b, Battle.opponent_id == user_a),
            ),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _find_opponent(db: AsyncSession, name: str, challenger_id: int) -> User:
    result = await db.execute(
        select(User)
        .where(func.lower(User.name) == name.strip().lower(), User.id != challenger_id)
        .limit(1)
    )
    opponent = result.scalar_one_or_none()
    if opponent is None:
        raise NotFoundError(f'No user found with name "{name}". They need to register first!')
    return opponent


async def create_battle(
    db: AsyncSession,
    redis: object,
    challenger_id: int,
    opponent_name: str,
    duration_days: int | None = None,
    instant: bool = True,
    today: date | None = None,
) -> Battle:
    """Challenge another user by name.

    instant=True starts the battle straight away (active); instant=False leaves
    it pending until the opponent accepts or declines.
    """
    settings = get_settings()
    if not opponent_name or not opponent_name.strip():
        raise ValidationError("opponent_name is required")
    if duration_days is None:
        duration_days = settings.default_battle_duration_days
    if duration_days < 1 or duration_days > settings.max_battle_duration_days:
        raise ValidationError(
            f"duration_days must be between 1 and {settings.max_battle_duration_days}"
        )
    if today is None:
        today = datetime.now(timezone.utc).date()

    if await db.get(User, challenger_id) is None:
        raise NotFoundError(f"User {challenger_id} not found")
    opponent = await _find_opponent(db, opponent_name, challenger_id)

    if await find_open_battle(db, challenger_id, opponent.id) is not None:
        raise ConflictError("You already have an active battle with this user!")

    battle = Battle(
        challenger_id=challenger_id,
        opponent_id=opponent.id,
        status=ACTIVE if instant else PENDING,
        start_date=today,
        end_date=today + timedelta(days=duration_days),
        challenger_co2_saved_g=0.0,
        opponent_co2_saved_g=0.0,
    )
    db.add(battle)
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent challenge for the same pair won the unique open-pair index
        await db.rollback()
        raise ConflictError("You already have an active battle with this user!") from None

    logger.info(
        "Battle %d created: user %d vs user %d (%s, %d days)",
        battle.id, challenger_id, opponent.id, battle.status, duration_days,
    )
    await _emit_battle_update(redis, battle, "created")
    return battle


async def respond_to_battle(
    db: AsyncSession,
    redis: object,
    battle_id: int,
    user_id: int,
    accept: bool,
) -> Battle:
    """Accept or decline a pending battle as its opponent.

    Anything else (already resolved, or the challenger responding) is a no-op
    and returns the battle unchanged. Raises NotFoundError if the battle does
    not exist or the user is not part of it.
    """
    battle = await get_battle(db, battle_id, lock=True)
    if user_id not in (battle.challenger_id, battle.opponent_id):
        raise NotFoundError(f"Battle {battle_id} not found")

    if battle.status != PENDING or battle.opponent_id != user_id:
        # Nothing to change; end the transaction to release the row lock.
        await db.commit()
        return battle

    target = ACTIVE if accept else DECLINED
    validate_transition(battle.status, target)
    battle.status = target
    await db.commit()

    logger.info("Battle %d %s by user %d", battle.id, "accepted" if accept else "declined", user_id)
    await _emit_battle_update(redis, battle, target)
    return battle


async def accept_battle(db: AsyncSession, redis: object, battle_id: int, user_id: int) -> Battle:
    return await respond_to_battle(db, redis, battle_id, user_id, accept=True)


async def decline_battle(db: AsyncSession, redis: object, battle_id: int, user_id: int) -> Battle:
    return await respond_to_battle(db, redis, battle_id, user_id, accept=False)


async def get_battle_score(db: AsyncSession, user_id: int, start_date: date, end_date: date) -> float:
    """CO2 saved versus driving by a user's non-drive journeys within [start_date, end_date]."""
    result = await db.execute(
        select(func.coalesce(func.sum(JourneyResult.vs_drive_co2_saved_g), 0.0))
        .select_from(Journey)
        .join(JourneyResult, JourneyResult.journey_id == Journey.id)
        .where(
            Journey.user_id == user_id,
            Journey.journey_date >= start_date,
            Journey.journey_date <= end_date,
            Journey.mode != TransportMode.DRIVE.value,
        )
    )
    return round2(float(result.scalar_one()))


async def rescore_active_battles(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
) -> tuple[int, list[Battle]]:
    """Recompute scores for every active battle the user is in.

    Battles whose end date has begun are completed with their final scores
    and winner. Rows stay locked until the caller's transaction ends so a
    concurrent refresh cannot overwrite a completion with stale active scores.
    Returns (battles processed, battles completed).
    """
    if now is None:
        now = datetime.now(timezone.utc)
    today = now.date()

    result = await db.execute(
        select(Battle)
        .where(
            Battle.status == ACTIVE,
            or_(Battle.challenger_id == user_id, Battle.opponent_id == user_id),
        )
        .order_by(Battle.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    battles = list(result.scalars().all())
    completed: list[Battle] = []

    for battle in battles:
        battle.challenger_co2_saved_g = await get_battle_score(
            db, battle.challenger_id, battle.start_date, battle.end_date
        )
        battle.opponent_co2_saved_g = await get_battle_score(
            db, battle.opponent_id, battle.start_date, battle.end_date
        )

        if is_expired(battle, today):
            validate_transition(battle.status, COMPLETED)
            battle.status = COMPLETED
            battle.winner_id = decide_winner(battle)
            battle.completed_at = now
            completed.append(battle)
            logger.info(
                "Battle %d completed: %.2f vs %.2f, winner %s",
                battle.id, battle.challenger_co2_saved_g, battle.opponent_co2_saved_g, battle.winner_id,
            )

    await db.flush()
    return len(battles), completed


async def publish_battle_completions(redis: object, battles: list[Battle]) -> None:
    for battle in battles:
        await _emit_battle_update(redis, battle, COMPLETED)


async def refresh_battle_scores(
    db: AsyncSession,
    redis: object,
    user_id: int,
    now: datetime | None = None,
) -> int:
    """Rescore the user's active battles and commit. Returns the number processed."""
    processed, completed = await rescore_active_battles(db, user_id, now)
    await db.commit()
    await publish_battle_completions(redis, completed)
    return processed


async def list_battles(db: AsyncSession, user_id: int, limit: int | None = None) -> list[dict]:
    """Most recent battles for a user with participant names."""
    if limit is None:
        limit = get_settings().battle_list_limit
    challenger = aliased(User)
    opponent = aliased(User)
    winner = aliased(User)
    result = await db.execute(
        select(Battle, challenger, opponent, winner.name)
        .join(challenger, challenger.id == Battle.challenger_id)
        .join(opponent, opponent.id == Battle.opponent_id)
        .outerjoin(winner, winner.id == Battle.winner_id)
        .where(or_(Battle.challenger_id == user_id, Battle.opponent_id == user_id))
        .order_by(Battle.created_at.desc(), Battle.id.desc())
        .limit(limit)
    )
    return [
        {
            **battle_to_dict(battle),
            "challenger_name": c.name,
            "challenger_color": c.avatar_color,
            "opponent_name": o.name,
            "opponent_color": o.avatar_color,
            "winner_name": winner_name,
        }
        for battle, c, o, winner_name in result.all()
    ]


async def search_users(db: AsyncSession, q: str, exclude_user_id: int | None = None, limit: int = 10) -> list[User]:
    """Case-insensitive name search for possible opponents."""
    if not q or len(q.strip()) < 2:
        return []
    stmt = select(User).where(User.name.icontains(q.strip(), autoescape=True))
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    result = await db.execute(stmt.order_by(User.name).limit(limit))
    return list(result.scalars().all())


def battle_to_dict(battle: Battle) -> dict:
    return {
        "id": battle.id,
        "challenger_id": battle.challenger_id,
        "opponent_id": battle.opponent_id,
        "status": battle.status,
        "start_date": battle.start_date,
        "end_date": battle.end_date,
        "challenger_co2_saved_g": battle.challenger_co2_saved_g,
        "opponent_co2_saved_g": battle.opponent_co2_saved_g,
        "winner_id": battle.winner_id,
        "created_at": battle.created_at,
        "completed_at": battle.completed_at,
    }


async def _emit_battle_update(redis: object, battle: Battle, event: str) -> None:
    """Notify both participants' clients of a battle change."""
    await publish_event(redis, BATTLE_UPDATE_CHANNEL, {
        "event": event,
        "battle_id": battle.id,
        "user_ids": [battle.challenger_id, battle.opponent_id],
        "status": battle.status,
        "challenger_co2_saved_g": battle.challenger_co2_saved_g,
        "opponent_co2_saved_g": battle.opponent_co2_saved_g,
        "winner_id": battle.winner_id,
    })
