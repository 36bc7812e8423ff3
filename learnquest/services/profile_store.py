"""
Durable per-user gamification profiles with atomic read-modify-write.

Every write is a compare-and-swap on the profile's `version`: the new value
is only stored if nobody else committed since we read. On a lost race the
whole mutation is re-applied to a freshly read profile, up to
`max_retries` attempts, after which CommitConflict is raised.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Callable, TypeVar

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from learnquest.core.config import settings
from learnquest.core.errors import CommitConflict, ProfileReadFailure
from learnquest.models.gamification import UserGamificationProfile
from learnquest.models.profile import ProfileState, Stats, Streak, UnlockRecord
from learnquest.services.progression import level_for_xp

logger = logging.getLogger(__name__)

T = TypeVar("T")

# mutate(current) -> (new profile, value handed back to the caller)
Mutation = Callable[[ProfileState], tuple[ProfileState, T]]


class VersionConflict(Exception):
    """Someone else committed between our read and our write."""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProfileStore(ABC):
    """Storage port for UserGamificationProfile records."""

    def __init__(self, max_retries: int | None = None, retry_backoff: float | None = None):
        self.max_retries = settings.commit_max_retries if max_retries is None else max_retries
        self.retry_backoff = (
            settings.commit_retry_backoff_seconds if retry_backoff is None else retry_backoff
        )
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

    @abstractmethod
    async def read(self, user_id: str) -> ProfileState:
        """Current profile, or a zero-valued one if the user has none yet."""

    @abstractmethod
    async def _attempt(self, user_id: str, mutate: Mutation[T]) -> T:
        """Run one read-mutate-write cycle. Raises VersionConflict on a lost race."""

    async def commit_atomic(self, user_id: str, mutate: Mutation[T]) -> T:
        """Apply `mutate` to the stored profile so that no concurrent commit is lost.

        A mutation returning a profile equal to its input writes nothing.
        Raises ProfileReadFailure if the store is unreachable and
        CommitConflict once every retry lost its race.
        """
        for attempt in range(1, self.max_retries + 1):
            try:
                return await self._attempt(user_id, mutate)
            except VersionConflict:
                logger.debug(
                    "Profile commit conflict for user %s (attempt %d/%d)",
                    user_id, attempt, self.max_retries,
                )
                if attempt < self.max_retries and self.retry_backoff:
                    await asyncio.sleep(self.retry_backoff * attempt)

        logger.warning(
            "Profile commit for user %s abandoned after %d conflicting attempts",
            user_id, self.max_retries,
        )
        raise CommitConflict(user_id, self.max_retries)

    @staticmethod
    def _stamp(current: ProfileState, new: ProfileState) -> ProfileState:
        """Version and timestamp a mutated profile for writing."""
        return replace(
            new,
            user_id=current.user_id,
            version=current.version + 1,
            updated_at=utcnow(),
        )


# =============================================================================
# IN-MEMORY STORE
# =============================================================================

class InMemoryProfileStore(ProfileStore):
    """Profiles held in a dict; the check-and-set step never awaits."""

    def __init__(self, max_retries: int | None = None, retry_backoff: float | None = None):
        super().__init__(max_retries=max_retries, retry_backoff=retry_backoff)
        self._profiles: dict[str, ProfileState] = {}

    async def read(self, user_id: str) -> ProfileState:
        return self._profiles.get(user_id) or ProfileState(user_id=user_id)

    async def _load(self, user_id: str) -> ProfileState:
        return await self.read(user_id)

    async def _compare_and_set(self, current: ProfileState, new: ProfileState) -> None:
        stored = self._profiles.get(current.user_id)
        stored_version = stored.version if stored else 0
        if stored_version != current.version:
            raise VersionConflict(current.user_id)
        self._profiles[current.user_id] = new

    async def _attempt(self, user_id: str, mutate: Mutation[T]) -> T:
        current = await self._load(user_id)
        new, result = mutate(current)
        if new != current:
            await self._compare_and_set(current, self._stamp(current, new))
        return result


# =============================================================================
# SQL STORE
# =============================================================================

def row_to_profile(row: UserGamificationProfile) -> ProfileState:
    streak = None
    if row.streak_last_active_day is not None:
        streak = Streak(count=row.streak_count or 0, last_active_day=row.streak_last_active_day)

    return ProfileState(
        user_id=row.user_id,
        xp=row.xp or 0,
        stats=Stats(
            quizzes_completed=row.quizzes_completed or 0,
            modules_completed=row.modules_completed or 0,
            activities_completed=row.activities_completed or 0,
        ),
        streak=streak,
        unlocked={
            achievement_id: UnlockRecord.from_json(data)
            for achievement_id, data in (row.unlocked or {}).items()
        },
        updated_at=row.updated_at,
        version=row.version or 0,
    )


def profile_to_values(profile: ProfileState) -> dict[str, Any]:
    """Column values for a profile; level is always rewritten from XP."""
    streak_count: int | None = None
    streak_day: date | None = None
    if profile.streak is not None:
        streak_count = profile.streak.count
        streak_day = profile.streak.last_active_day

    return {
        "xp": profile.xp,
        "level": level_for_xp(profile.xp),
        "quizzes_completed": profile.stats.quizzes_completed,
        "modules_completed": profile.stats.modules_completed,
        "activities_completed": profile.stats.activities_completed,
        "streak_count": streak_count,
        "streak_last_active_day": streak_day,
        "unlocked": {
            achievement_id: record.to_json()
            for achievement_id, record in profile.unlocked.items()
        },
        "version": profile.version,
        "updated_at": profile.updated_at,
    }


class SqlProfileStore(ProfileStore):
    """Profiles in the user_gamification_profiles table.

    Each attempt runs in its own session and transaction. An existing row is
    written with an UPDATE guarded by `version = <version read>`. A user with
    no row yet gets an INSERT, where a duplicate key means someone beat us
    to it.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        max_retries: int | None = None,
        retry_backoff: float | None = None,
    ):
        super().__init__(max_retries=max_retries, retry_backoff=retry_backoff)
        self.session_maker = session_maker

    async def read(self, user_id: str) -> ProfileState:
        try:
            async with self.session_maker() as session:
                row = await self._fetch_row(session, user_id)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Profile read failed for user %s: %s: %s", user_id, type(e).__name__, e)
            raise ProfileReadFailure(user_id) from e
        return row_to_profile(row) if row is not None else ProfileState(user_id=user_id)

    async def _fetch_row(self, session: AsyncSession, user_id: str) -> UserGamificationProfile | None:
        result = await session.execute(
            select(UserGamificationProfile).where(UserGamificationProfile.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _load(self, session: AsyncSession, user_id: str) -> tuple[ProfileState, bool]:
        """Profile to mutate, and whether a row already exists for it."""
        row = await self._fetch_row(session, user_id)
        if row is None:
            return ProfileState(user_id=user_id), False
        return row_to_profile(row), True

    async def _compare_and_set(
        self,
        session: AsyncSession,
        current: ProfileState,
        new: ProfileState,
        row_exists: bool,
    ) -> None:
        values = profile_to_values(new)

        if not row_exists:
            try:
                await session.execute(
                    insert(UserGamificationProfile).values(user_id=current.user_id, **values)
                )
            except IntegrityError:
                await session.rollback()
                raise VersionConflict(current.user_id)
        else:
            result = await session.execute(
                update(UserGamificationProfile)
                .where(
                    UserGamificationProfile.user_id == current.user_id,
                    UserGamificationProfile.version == current.version,
                )
                .values(**values)
            )
            if result.rowcount != 1:
                await session.rollback()
                raise VersionConflict(current.user_id)

        await session.commit()

    async def _attempt(self, user_id: str, mutate: Mutation[T]) -> T:
        try:
            async with self.session_maker() as session:
                current, row_exists = await self._load(session, user_id)
                new, result = mutate(current)
                if new != current:
                    await self._compare_and_set(
                        session, current, self._stamp(current, new), row_exists=row_exists
                    )
                return result
        except VersionConflict:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Profile store unreachable for user %s: %s: %s", user_id, type(e).__name__, e
            )
            raise ProfileReadFailure(user_id) from e
