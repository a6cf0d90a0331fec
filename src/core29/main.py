"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from core29.competition.router import router as competition_router
from core29.config import get_settings
from core29.database import close_db, create_schema, get_session_factory, init_db
from core29.gamification.router import router as gamification_router
from core29.gamification.seed import seed_achievements
from core29.health.router import router as health_router
from core29.journeys.router import router as journeys_router
from core29.locations.router import router as locations_router
from core29.locations.seed import seed_locations
from core29.middleware import setup_middleware
from core29.redis_client import close_redis, init_redis
from core29.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.create_schema_on_startup:
        await create_schema()
    if settings.redis_url:
        await init_redis(settings.redis_url)

    # Both seeds upsert on a natural key, so this is safe on every start
    async with get_session_factory()() as db:
        await seed_achievements(db)
        await seed_locations(db)
    logger.info("Startup complete (environment=%s)", settings.environment)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Core29 API",
        description="Journey impact calculation, streaks, achievements and friend battles",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(locations_router)
    app.include_router(journeys_router)
    app.include_router(gamification_router)
    app.include_router(competition_router)

    return app


app = create_app()
