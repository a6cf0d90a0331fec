"""Journey API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core29.database import get_session
from core29.db.models import Journey
from core29.gamification.schemas import NewAchievement, StreakResponse
from core29.impact.calculator import (
    TransportMode,
    calculate_journey,
    get_calorie_equivalents,
    get_impact_equivalents,
)
from core29.journeys.schemas import (
    JourneyCalculationResponse,
    JourneyCreateRequest,
    JourneyLogResponse,
    JourneyPreviewResponse,
    JourneyResponse,
    JourneyWithResultsResponse,
)
from core29.journeys.service import list_journeys, log_journey
from core29.redis_client import get_redis_dep

router = APIRouter(prefix="/api/v1", tags=["Journeys"])


def _journey_response(journey: Journey) -> JourneyResponse:
    return JourneyResponse(
        id=journey.id,
        user_id=journey.user_id,
        date=journey.journey_date,
        distance_km=journey.distance_km,
        mode=journey.mode,
        start_location_id=journey.start_location_id,
        end_location_id=journey.end_location_id,
        created_at=journey.created_at,
    )


@router.post("/journeys", response_model=JourneyLogResponse, status_code=status.HTTP_201_CREATED)
async def create_journey(
    body: JourneyCreateRequest,
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Log a journey and return its impact, equivalents and any new achievements."""
    logged = await log_journey(
        db,
        redis,
        user_id=body.user_id,
        distance_km=body.distance_km,
        mode=body.mode,
        journey_date=body.date,
        start_location_id=body.start_location_id,
        end_location_id=body.end_location_id,
    )
    return JourneyLogResponse(
        journey=_journey_response(logged.journey),
        results=JourneyCalculationResponse(**logged.results.as_dict()),
        impact_equivalents=logged.impact_equivalents,
        calorie_equivalents=logged.calorie_equivalents,
        streak=StreakResponse(
            current_streak=logged.streak.current,
            best_streak=logged.streak.best,
            last_journey_date=logged.streak.last_date,
        ),
        new_achievements=[
            NewAchievement(key=a.key, title=a.title, icon=a.icon, description=a.description)
            for a in logged.new_achievements
        ],
        battles_updated=logged.battles_updated,
    )


@router.get("/journeys", response_model=list[JourneyWithResultsResponse])
async def get_journeys(
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_session),
):
    """Latest journeys for a user with their computed results."""
    journeys = await list_journeys(db, user_id)
    return [
        JourneyWithResultsResponse(
            **_journey_response(j).model_dump(),
            time_min=j.result.time_min,
            co2_g=j.result.co2_g,
            calories_kcal=j.result.calories_kcal,
            drive_time_min=j.result.drive_time_min,
            drive_co2_g=j.result.drive_co2_g,
            vs_drive_co2_saved_g=j.result.vs_drive_co2_saved_g,
            vs_drive_time_delta_min=j.result.vs_drive_time_delta_min,
            vs_drive_calories_delta_kcal=j.result.vs_drive_calories_delta_kcal,
        )
        for j in journeys
    ]


@router.get("/journeys/calculate", response_model=JourneyPreviewResponse)
async def preview_journey(
    distance_km: float = Query(..., gt=0, le=500),
    mode: TransportMode = Query(...),
):
    """Calculate a journey's impact without logging it."""
    calc = calculate_journey(distance_km, mode)
    return JourneyPreviewResponse(
        results=JourneyCalculationResponse(**calc.as_dict()),
        impact_equivalents=get_impact_equivalents(calc.vs_drive_co2_saved_g),
        calorie_equivalents=get_calorie_equivalents(calc.calories_kcal),
    )
