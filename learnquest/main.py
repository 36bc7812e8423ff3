from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnquest import __version__
from learnquest.api import router
from learnquest.core.config import settings
from learnquest.core.database import async_session_maker, engine
from learnquest.core.logging_config import configure_logging
from learnquest.models.base import Base
from learnquest.services.catalog import CachedAchievementCatalog, SqlAchievementCatalog
from learnquest.services.gamification import EventProcessor
from learnquest.services.profile_store import SqlProfileStore


def build_event_processor() -> EventProcessor:
    """Wire the engine against the configured database."""
    catalog = CachedAchievementCatalog(
        SqlAchievementCatalog(async_session_maker),
        ttl_seconds=settings.catalog_cache_ttl_seconds,
    )
    store = SqlProfileStore(async_session_maker)
    return EventProcessor(store, catalog, streak_timezone=settings.streak_timezone)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup and build the engine."""
    # Import models to register them with Base
    from learnquest.models import gamification  # noqa: F401

    configure_logging()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app.state.event_processor = build_event_processor()
    yield
    await engine.dispose()


app = FastAPI(
    lifespan=lifespan,
    title=settings.app_name,
    description="Gamification engine: XP, levels, login streaks and achievements",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using allow_origins=["*"]
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }
