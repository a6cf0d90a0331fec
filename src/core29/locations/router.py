"""Location API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core29.database import get_session
from core29.locations.schemas import LocationDistanceResponse, LocationResponse
from core29.locations.service import get_location_distance, list_locations

router = APIRouter(prefix="/api/v1/locations", tags=["Locations"])


@router.get("", response_model=list[LocationResponse])
async def get_locations(db: AsyncSession = Depends(get_session)):
    """Predefined locations, grouped by category."""
    locations = await list_locations(db)
    return [
        LocationResponse(id=loc.id, name=loc.name, category=loc.category, lat=loc.lat, lng=loc.lng)
        for loc in locations
    ]


@router.get("/distance", response_model=LocationDistanceResponse)
async def get_distance(
    from_id: int = Query(..., alias="from"),
    to_id: int = Query(..., alias="to"),
    db: AsyncSession = Depends(get_session),
):
    """Estimated road distance between two locations, or null when it must be entered by hand."""
    distance = await get_location_distance(db, from_id, to_id)
    return LocationDistanceResponse(
        from_name=distance.from_name,
        to_name=distance.to_name,
        distance_km=distance.distance_km,
        method=distance.method,
    )
