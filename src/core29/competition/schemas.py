"""Pydantic request/response models for battle and leaderboard endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


# --- Battles ---


class BattleCreateRequest(BaseModel):
    challenger_id: int
    opponent_name: str = Field(min_length=1, max_length=64)
    duration_days: int | None = Field(default=None, ge=1)
    instant: bool = True


class BattleRespondRequest(BaseModel):
    user_id: int


class BattleScoresRequest(BaseModel):
    user_id: int


class BattleResponse(BaseModel):
    id: int
    challenger_id: int
    opponent_id: int
    status: str
    start_date: date
    end_date: date
    challenger_co2_saved_g: float
    opponent_co2_saved_g: float
    winner_id: int | None = None
    created_at: datetime
    completed_at: datetime | None = None


class BattleDetailResponse(BattleResponse):
    challenger_name: str
    challenger_color: str | None = None
    opponent_name: str
    opponent_color: str | None = None
    winner_name: str | None = None


class BattleScoresResponse(BaseModel):
    updated: int


class UserSearchResult(BaseModel):
    id: int
    name: str
    avatar_color: str


# --- Leaderboards ---


class Co2LeaderEntry(BaseModel):
    rank: int
    id: int
    name: str
    avatar_color: str
    total_co2_saved_g: float


class CalorieLeaderEntry(BaseModel):
    rank: int
    id: int
    name: str
    avatar_color: str
    total_calories: float


class StreakLeaderEntry(BaseModel):
    rank: int
    id: int
    name: str
    avatar_color: str
    best_streak: int
    current_streak: int


class LeaderboardsResponse(BaseModel):
    co2: list[Co2LeaderEntry]
    calories: list[CalorieLeaderEntry]
    streaks: list[StreakLeaderEntry]
