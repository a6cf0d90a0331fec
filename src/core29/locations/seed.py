"""Predefined journey locations: Aberdeen landmarks plus generic places."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from core29.db.dialect import insert_for
from core29.db.models import Location

logger = logging.getLogger(__name__)

LOCATION_SEED_DATA: list[dict] = [
    # Aberdeen, with coordinates for distance estimates
    {"name": "Aberdeen Railway Station", "category": "aberdeen", "lat": 57.1437, "lng": -2.0981},
    {"name": "Union Square", "category": "aberdeen", "lat": 57.1432, "lng": -2.0960},
    {"name": "Marischal College", "category": "aberdeen", "lat": 57.1498, "lng": -2.0962},
    {"name": "University of Aberdeen", "category": "aberdeen", "lat": 57.1646, "lng": -2.1014},
    {"name": "Robert Gordon University", "category": "aberdeen", "lat": 57.1189, "lng": -2.1389},
    {"name": "Aberdeen Royal Infirmary", "category": "aberdeen", "lat": 57.1548, "lng": -2.1361},
    {"name": "Duthie Park", "category": "aberdeen", "lat": 57.1335, "lng": -2.0989},
    {"name": "Aberdeen Beach", "category": "aberdeen", "lat": 57.1560, "lng": -2.0790},
    {"name": "Aberdeen Airport", "category": "aberdeen", "lat": 57.2019, "lng": -2.1978},
    # Generic places; the user enters the distance
    {"name": "Home", "category": "generic", "lat": None, "lng": None},
    {"name": "Work", "category": "generic", "lat": None, "lng": None},
    {"name": "School", "category": "generic", "lat": None, "lng": None},
    {"name": "Gym", "category": "generic", "lat": None, "lng": None},
    {"name": "Shops", "category": "generic", "lat": None, "lng": None},
    {"name": "Friend's House", "category": "generic", "lat": None, "lng": None},
]


async def seed_locations(db: AsyncSession) -> int:
    """Upsert the predefined locations by name. Returns number of entries seeded."""
    for data in LOCATION_SEED_DATA:
        stmt = insert_for(db, Location).values(**data)
        stmt = stmt.on_conflict_do_update(
            index_elements=["name"],
            set_={
                "category": stmt.excluded.category,
                "lat": stmt.excluded.lat,
                "lng": stmt.excluded.lng,
            },
        )
        await db.execute(stmt)

    await db.commit()
    logger.info("Seeded %d locations", len(LOCATION_SEED_DATA))
    return len(LOCATION_SEED_DATA)
