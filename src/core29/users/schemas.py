"""Pydantic request/response models for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from core29.gamification.schemas import EarnedAchievementResponse, StreakResponse, WeeklyProgressResponse


class UserCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64)


class UserResponse(BaseModel):
    id: int
    name: str
    avatar_color: str
    created_at: datetime


class UserSummaryResponse(BaseModel):
    user_id: int
    journey_count: int
    total_co2_saved_g: float
    total_calories_kcal: float
    streak: StreakResponse
    badges: list[EarnedAchievementResponse]
    weekly_goal: WeeklyProgressResponse
