"""Location lookup and straight-line road distance estimates."""

from __future__ import annotations

import math
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core29.db.models import Location
from core29.exceptions import NotFoundError

EARTH_RADIUS_KM = 6371.0
# Roads are longer than the great-circle line between two points
ROAD_FACTOR = 1.3

HAVERSINE = "haversine"
MANUAL = "manual"


@dataclass(frozen=True)
class LocationDistance:
    from_name: str
    to_name: str
    distance_km: float | None
    method: str


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres between two points given in degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def estimate_road_distance_km(origin: Location, destination: Location) -> float | None:
    """Haversine distance times ROAD_FACTOR, rounded half up to 0.1 km.

    None when either location has no coordinates.
    """
    if None in (origin.lat, origin.lng, destination.lat, destination.lng):
        return None
    km = haversine_km(origin.lat, origin.lng, destination.lat, destination.lng) * ROAD_FACTOR
    return math.floor(km * 10 + 0.5) / 10


async def list_locations(db: AsyncSession) -> list[Location]:
    result = await db.execute(select(Location).order_by(Location.category, Location.name))
    return list(result.scalars().all())


async def get_location(db: AsyncSession, location_id: int) -> Location:
    location = await db.get(Location, location_id)
    if location is None:
        raise NotFoundError("Location not found")
    return location


async def get_location_distance(db: AsyncSession, from_id: int, to_id: int) -> LocationDistance:
    """Suggested journey distance between two predefined locations.

    Uses the haversine estimate when both have coordinates; otherwise
    distance_km is None and the user has to enter it (method "manual").
    """
    origin = await get_location(db, from_id)
    destination = await get_location(db, to_id)
    distance_km = estimate_road_distance_km(origin, destination)
    return LocationDistance(
        from_name=origin.name,
        to_name=destination.name,
        distance_km=distance_km,
        method=HAVERSINE if distance_km is not None else MANUAL,
    )
