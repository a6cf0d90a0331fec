"""Pydantic request/response models for journey endpoints."""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime

from pydantic import BaseModel, Field

from core29.gamification.schemas import NewAchievement, StreakResponse
from core29.impact.calculator import TransportMode


class JourneyCreateRequest(BaseModel):
    user_id: int
    distance_km: float = Field(gt=0, le=500)
    mode: TransportMode
    date: date_type | None = None
    start_location_id: int | None = None
    end_location_id: int | None = None


class JourneyCalculationResponse(BaseModel):
    time_min: float
    co2_g: float
    calories_kcal: float
    drive_time_min: float
    drive_co2_g: float
    vs_drive_co2_saved_g: float
    vs_drive_time_delta_min: float
    vs_drive_calories_delta_kcal: float


class JourneyResponse(BaseModel):
    id: int
    user_id: int
    date: date_type
    distance_km: float
    mode: str
    start_location_id: int | None = None
    end_location_id: int | None = None
    created_at: datetime


class JourneyWithResultsResponse(JourneyResponse, JourneyCalculationResponse):
    pass


class ImpactEquivalents(BaseModel):
    phone_charges: float
    kettle_boils: float
    km_driving_avoided: float
    trees_year_fraction: float
    led_bulb_hours: float


class CalorieEquivalents(BaseModel):
    jogging_minutes: float
    swimming_minutes: float
    yoga_minutes: float
    chocolate_bars: float


class JourneyPreviewResponse(BaseModel):
    results: JourneyCalculationResponse
    impact_equivalents: ImpactEquivalents
    calorie_equivalents: CalorieEquivalents


class JourneyLogResponse(BaseModel):
    journey: JourneyResponse
    results: JourneyCalculationResponse
    impact_equivalents: ImpactEquivalents
    calorie_equivalents: CalorieEquivalents
    streak: StreakResponse
    new_achievements: list[NewAchievement] = []
    battles_updated: int = 0
