"""Shared test fixtures for LearnQuest tests.

Provides:
- In-memory engine wiring (catalog, profile store, event processor)
- A temporary SQLite database for the SQL-backed store and catalog
- Async FastAPI test client with the engine dependency overridden
- Common test data factories
"""
import asyncio
import os

# Keep the import-time engine off the network before anything imports settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from learnquest.core.database import build_engine, build_session_maker
from learnquest.models.base import Base
from learnquest.models.gamification import AchievementStatus, CriterionType
from learnquest.models.profile import Achievement
from learnquest.services.catalog import InMemoryAchievementCatalog
from learnquest.services.gamification import EventProcessor
from learnquest.services.profile_store import InMemoryProfileStore, SqlProfileStore


FIXED_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


# --- Test data factories ---

def make_achievement(**overrides) -> Achievement:
    """Create an Achievement with sensible defaults."""
    defaults = {
        "id": "first_quiz",
        "criterion_type": CriterionType.QUIZZES,
        "criterion_count": 1,
        "points": 10,
        "status": AchievementStatus.ACTIVE,
        "title": "First Quiz",
        "description": "Complete your first quiz",
    }
    defaults.update(overrides)
    return Achievement(**defaults)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class SlowInMemoryStore(InMemoryProfileStore):
    """Pauses between read and write so concurrent commits interleave."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.loads = 0

    async def _load(self, user_id):
        profile = await super()._load(user_id)
        self.loads += 1
        await asyncio.sleep(0.01)
        return profile


class SlowSqlStore(SqlProfileStore):
    """SQL store with the same read-then-pause behaviour."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.loads = 0

    async def _load(self, session, user_id):
        loaded = await super()._load(session, user_id)
        self.loads += 1
        await asyncio.sleep(0.05)
        return loaded


# --- Engine fixtures ---

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog():
    """Catalog with one quiz achievement, like a fresh install."""
    return InMemoryAchievementCatalog([make_achievement()])


@pytest.fixture
def store():
    return InMemoryProfileStore(retry_backoff=0)


@pytest.fixture
def processor(store, catalog, clock):
    return EventProcessor(store, catalog, clock=clock, streak_timezone="UTC")


@pytest.fixture
async def sql_session_maker(tmp_path):
    """Session factory for a throwaway SQLite file with all tables created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'learnquest.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_maker(engine)
    await engine.dispose()


@pytest.fixture
async def client(processor):
    """Async HTTP test client for the FastAPI app.

    Uses httpx AsyncClient with ASGI transport, so the lifespan (and the real
    database) never runs. The engine dependencies point at the in-memory
    processor.
    """
    from learnquest.api.dependencies import get_catalog, get_event_processor
    from learnquest.main import app

    app.dependency_overrides[get_event_processor] = lambda: processor
    app.dependency_overrides[get_catalog] = lambda: processor.catalog

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
