"""Battle and leaderboard API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core29.competition.battle_service import (
    battle_to_dict,
    create_battle,
    list_battles,
    refresh_battle_scores,
    respond_to_battle,
    search_users,
)
from core29.competition.leaderboard_service import get_leaderboards
from core29.competition.schemas import (
    BattleCreateRequest,
    BattleDetailResponse,
    BattleResponse,
    BattleRespondRequest,
    BattleScoresRequest,
    BattleScoresResponse,
    LeaderboardsResponse,
    UserSearchResult,
)
from core29.database import get_session
from core29.redis_client import get_redis_dep

router = APIRouter(prefix="/api/v1", tags=["Competition"])


# ── Battles ──


@router.get("/battles", response_model=list[BattleDetailResponse])
async def get_battles(
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_session),
):
    """Most recent battles the user takes part in."""
    return await list_battles(db, user_id)


@router.get("/battles/search-users", response_model=list[UserSearchResult])
async def search_opponents(
    q: str = Query(""),
    user_id: int | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    """Find users to challenge by partial name."""
    users = await search_users(db, q, exclude_user_id=user_id)
    return [UserSearchResult(id=u.id, name=u.name, avatar_color=u.avatar_color) for u in users]


@router.post("/battles", response_model=BattleResponse, status_code=status.HTTP_201_CREATED)
async def post_battle(
    body: BattleCreateRequest,
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Challenge another user by name."""
    battle = await create_battle(
        db,
        redis,
        challenger_id=body.challenger_id,
        opponent_name=body.opponent_name,
        duration_days=body.duration_days,
        instant=body.instant,
    )
    return battle_to_dict(battle)


@router.post("/battles/update-scores", response_model=BattleScoresResponse)
async def update_scores(
    body: BattleScoresRequest,
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Recalculate scores for the user's active battles, completing expired ones."""
    updated = await refresh_battle_scores(db, redis, body.user_id)
    return BattleScoresResponse(updated=updated)


@router.post("/battles/{battle_id}/accept", response_model=BattleResponse)
async def accept(
    battle_id: int,
    body: BattleRespondRequest,
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Accept a pending battle as the opponent."""
    battle = await respond_to_battle(db, redis, battle_id, body.user_id, accept=True)
    return battle_to_dict(battle)


@router.post("/battles/{battle_id}/decline", response_model=BattleResponse)
async def decline(
    battle_id: int,
    body: BattleRespondRequest,
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Decline a pending battle as the opponent."""
    battle = await respond_to_battle(db, redis, battle_id, body.user_id, accept=False)
    return battle_to_dict(battle)


# ── Leaderboards ──


@router.get("/leaderboards", response_model=LeaderboardsResponse)
async def leaderboards(db: AsyncSession = Depends(get_session)):
    """Top users by CO2 saved, calories burned and best streak."""
    return await get_leaderboards(db)
