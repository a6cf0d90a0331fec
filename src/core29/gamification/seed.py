"""Achievement catalog seed data."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from core29.db.dialect import insert_for
from core29.db.models import Achievement

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict] = [
    # Journeys logged
    {
        "key": "first_journey",
        "title": "First Steps",
        "icon": "\U0001f463",
        "description": "Log your very first journey",
        "threshold_type": "journey_count",
        "threshold_value": 1,
        "sort_order": 1,
    },
    {
        "key": "journeys_5",
        "title": "Getting Going",
        "icon": "\U0001f6b6",
        "description": "Log 5 journeys",
        "threshold_type": "journey_count",
        "threshold_value": 5,
        "sort_order": 2,
    },
    {
        "key": "journeys_25",
        "title": "Regular Commuter",
        "icon": "\U0001f68c",
        "description": "Log 25 journeys",
        "threshold_type": "journey_count",
        "threshold_value": 25,
        "sort_order": 3,
    },
    # CO2 saved versus driving
    {
        "key": "co2_1kg",
        "title": "Carbon Cutter",
        "icon": "\U0001f331",
        "description": "Save 1 kg of CO2 compared to driving",
        "threshold_type": "co2_saved_g",
        "threshold_value": 1000,
        "sort_order": 10,
    },
    {
        "key": "co2_10kg",
        "title": "Climate Champion",
        "icon": "\U0001f333",
        "description": "Save 10 kg of CO2 compared to driving",
        "threshold_type": "co2_saved_g",
        "threshold_value": 10000,
        "sort_order": 11,
    },
    {
        "key": "co2_100kg",
        "title": "Planet Protector",
        "icon": "\U0001f30d",
        "description": "Save 100 kg of CO2 compared to driving",
        "threshold_type": "co2_saved_g",
        "threshold_value": 100000,
        "sort_order": 12,
    },
    # Calories burned
    {
        "key": "calories_500",
        "title": "Calorie Burner",
        "icon": "\U0001f525",
        "description": "Burn 500 kcal on your commutes",
        "threshold_type": "calories_kcal",
        "threshold_value": 500,
        "sort_order": 20,
    },
    {
        "key": "calories_5000",
        "title": "Fitness Commuter",
        "icon": "\U0001f4aa",
        "description": "Burn 5,000 kcal on your commutes",
        "threshold_type": "calories_kcal",
        "threshold_value": 5000,
        "sort_order": 21,
    },
    # Streaks
    {
        "key": "streak_3",
        "title": "Hat Trick",
        "icon": "⚡",
        "description": "Travel sustainably 3 days in a row",
        "threshold_type": "streak",
        "threshold_value": 3,
        "sort_order": 30,
    },
    {
        "key": "streak_7",
        "title": "Week Warrior",
        "icon": "\U0001f3c6",
        "description": "Travel sustainably 7 days in a row",
        "threshold_type": "streak",
        "threshold_value": 7,
        "sort_order": 31,
    },
    {
        "key": "streak_30",
        "title": "Habit Formed",
        "icon": "\U0001f451",
        "description": "Travel sustainably 30 days in a row",
        "threshold_type": "streak",
        "threshold_value": 30,
        "sort_order": 32,
    },
]


async def seed_achievements(db: AsyncSession) -> int:
    """Upsert the achievement catalog. Returns number of entries seeded."""
    seeded = 0
    for data in ACHIEVEMENT_SEED_DATA:
        stmt = insert_for(db, Achievement).values(**data)
        stmt = stmt.on_conflict_do_update(
            index_elements=["key"],
            set_={
                "title": stmt.excluded.title,
                "icon": stmt.excluded.icon,
                "description": stmt.excluded.description,
                "threshold_type": stmt.excluded.threshold_type,
                "threshold_value": stmt.excluded.threshold_value,
                "sort_order": stmt.excluded.sort_order,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d achievement definitions", seeded)
    return seeded
