"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


# --- Achievements ---


class NewAchievement(BaseModel):
    key: str
    title: str
    icon: str
    description: str


class AchievementResponse(BaseModel):
    key: str
    title: str
    icon: str
    description: str
    threshold_type: str
    threshold_value: float
    earned: bool = False
    earned_at: datetime | None = None


class EarnedAchievementResponse(BaseModel):
    key: str
    title: str
    icon: str
    earned_at: datetime


# --- Streak ---


class StreakResponse(BaseModel):
    current_streak: int
    best_streak: int
    last_journey_date: date | None = None


# --- Goals ---


class WeeklyGoalRequest(BaseModel):
    user_id: int
    target_co2_saved_g: float = Field(gt=0)


class WeeklyGoalResponse(BaseModel):
    user_id: int
    week_start: date
    target_co2_saved_g: float


class WeeklyProgressResponse(BaseModel):
    week_start: date
    target_g: float
    progress_g: float
