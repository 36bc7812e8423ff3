"""Achievement catalog access.

The catalog is authored outside the engine. Readers either hit the store on
every call (SqlAchievementCatalog) or go through CachedAchievementCatalog,
which serves a snapshot for a bounded time and can be refreshed on demand.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from learnquest.core.config import settings
from learnquest.core.errors import CatalogUnavailable
from learnquest.models.gamification import (
    AchievementDefinition,
    AchievementStatus,
    CriterionType,
)
from learnquest.models.profile import Achievement

logger = logging.getLogger(__name__)


class AchievementCatalog(ABC):
    """Read port for achievement definitions."""

    @abstractmethod
    async def fetch_active(self) -> list[Achievement]:
        """Active definitions in catalog order. Raises CatalogUnavailable."""

    @abstractmethod
    async def fetch_all(self) -> list[Achievement]:
        """Every definition, active or not. Raises CatalogUnavailable."""

    async def load_active(self) -> list[Achievement]:
        """Active definitions, or [] when the catalog can't be read."""
        try:
            return await self.fetch_active()
        except CatalogUnavailable as e:
            logger.warning("Achievement catalog unavailable, evaluating with no rules: %s", e)
            return []

    async def load_all(self) -> list[Achievement]:
        return await self.fetch_all()


# =============================================================================
# SQL CATALOG
# =============================================================================

def definition_to_achievement(row: AchievementDefinition) -> Achievement:
    """Convert an ORM row, keeping unknown enum strings as-is."""
    try:
        criterion: CriterionType | str = CriterionType(row.criterion_type)
    except ValueError:
        criterion = row.criterion_type
    try:
        status = AchievementStatus(row.status)
    except ValueError:
        # Anything we don't recognise is treated as switched off
        status = AchievementStatus.INACTIVE

    return Achievement(
        id=row.id,
        criterion_type=criterion,
        criterion_count=row.criterion_count or 0,
        points=max(row.points or 0, 0),
        status=status,
        title=row.title,
        description=row.description or "",
        tier=row.tier,
        category=row.category,
        rarity=row.rarity,
        image_url=row.image_url,
    )


class SqlAchievementCatalog(AchievementCatalog):
    """Reads the achievement_definitions table on every call."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def fetch_active(self) -> list[Achievement]:
        return await self._fetch(only_active=True)

    async def fetch_all(self) -> list[Achievement]:
        return await self._fetch(only_active=False)

    async def _fetch(self, only_active: bool) -> list[Achievement]:
        query = select(AchievementDefinition)
        if only_active:
            query = query.where(AchievementDefinition.status == AchievementStatus.ACTIVE.value)
        query = query.order_by(AchievementDefinition.created_at, AchievementDefinition.id)

        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                rows = result.scalars().all()
        except (SQLAlchemyError, OSError) as e:
            raise CatalogUnavailable(f"{type(e).__name__}: {e}") from e

        return [definition_to_achievement(row) for row in rows]


# =============================================================================
# IN-MEMORY CATALOG
# =============================================================================

class InMemoryAchievementCatalog(AchievementCatalog):
    """Catalog held in a list; used when embedding the engine and in tests."""

    def __init__(self, definitions: Iterable[Achievement] = ()):
        self._definitions = list(definitions)

    def replace(self, definitions: Iterable[Achievement]) -> None:
        self._definitions = list(definitions)

    def upsert(self, achievement: Achievement) -> None:
        for i, existing in enumerate(self._definitions):
            if existing.id == achievement.id:
                self._definitions[i] = achievement
                return
        self._definitions.append(achievement)

    async def fetch_active(self) -> list[Achievement]:
        return [a for a in self._definitions if a.is_active]

    async def fetch_all(self) -> list[Achievement]:
        return list(self._definitions)


# =============================================================================
# CACHED CATALOG
# =============================================================================

class CachedAchievementCatalog(AchievementCatalog):
    """
    Serves a snapshot of the active catalog for up to `ttl_seconds`.

    Edits made by admins show up once the snapshot expires, or immediately
    after refresh()/invalidate(). If a refresh fails while a snapshot exists
    the stale snapshot keeps being served and the next call retries.
    """

    def __init__(
        self,
        inner: AchievementCatalog,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.inner = inner
        self.ttl_seconds = settings.catalog_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._snapshot: tuple[Achievement, ...] | None = None
        self._fetched_at = 0.0
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return self._snapshot is not None and self._clock() - self._fetched_at < self.ttl_seconds

    async def fetch_active(self) -> list[Achievement]:
        if self._is_fresh():
            return list(self._snapshot)

        async with self._lock:
            # Another caller may have refreshed while we waited
            if self._is_fresh():
                return list(self._snapshot)

            try:
                active = await self.inner.fetch_active()
            except CatalogUnavailable as e:
                if self._snapshot is None:
                    raise
                logger.warning("Catalog refresh failed, serving stale snapshot: %s", e)
                return list(self._snapshot)

            self._snapshot = tuple(active)
            self._fetched_at = self._clock()
            logger.debug("Achievement catalog refreshed: %d active definitions", len(active))
            return list(active)

    async def fetch_all(self) -> list[Achievement]:
        return await self.inner.fetch_all()

    def invalidate(self) -> None:
        self._snapshot = None
        self._fetched_at = 0.0

    async def refresh(self) -> list[Achievement]:
        """Expire the snapshot and load the active catalog again.

        The old snapshot stays available as a fallback if the reload fails.
        """
        self._fetched_at = float("-inf")
        return await self.load_active()
