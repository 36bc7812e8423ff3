"""Gamification service - turns learning events into XP, levels, streaks and unlocks."""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, Iterable

from learnquest.core.errors import CatalogUnavailable
from learnquest.models.gamification import EventType
from learnquest.models.profile import Achievement, ProfileState, Stats, UnlockRecord
from learnquest.services.catalog import AchievementCatalog
from learnquest.services.profile_store import ProfileStore, utcnow
from learnquest.services.progression import LevelProgress, level_for_xp, level_progress
from learnquest.services.rules import achievement_progress, evaluate_achievements
from learnquest.services.streak import next_streak, today_in_zone

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class StreakTouch:
    streak_changed: bool
    new_count: int


@dataclass(frozen=True)
class AchievementStatusView:
    """An achievement merged with one user's unlock state."""
    achievement: Achievement
    is_unlocked: bool
    unlocked_at: datetime | None
    seen: bool
    current_value: int
    progress: float


@dataclass(frozen=True)
class ProgressSummary:
    user_id: str
    level: LevelProgress
    stats: Stats
    streak_count: int
    last_active_day: date | None
    achievements_unlocked: int
    achievements_total: int
    updated_at: datetime | None


@dataclass(frozen=True)
class _EventOutcome:
    newly_unlocked: list[Achievement]
    level_before: int
    level_after: int
    xp_after: int


# =============================================================================
# EVENT PROCESSOR
# =============================================================================

class EventProcessor:
    """
    Applies gamification events to user profiles.

    Each operation is one ProfileStore.commit_atomic call, so concurrent
    events for the same user are serialised by the store and an achievement
    can only be unlocked (and its bonus paid) once.
    """

    def __init__(
        self,
        store: ProfileStore,
        catalog: AchievementCatalog,
        clock: Callable[[], datetime] = utcnow,
        streak_timezone: str | None = None,
    ):
        self.store = store
        self.catalog = catalog
        self._clock = clock
        self.streak_timezone = streak_timezone

    async def process(
        self,
        user_id: str,
        event_type: EventType | str,
        base_xp: int,
    ) -> list[Achievement]:
        """
        Record one completed quiz, module or activity.

        Increments the matching stat, unlocks every achievement the new
        stats satisfy, and adds base_xp plus their bonus points. Returns the
        achievements unlocked by this call only.
        """
        if not user_id:
            raise ValueError("user_id is required")
        event_type = EventType(event_type)
        if isinstance(base_xp, bool) or not isinstance(base_xp, int) or base_xp < 0:
            raise ValueError(f"base_xp must be a non-negative integer, got {base_xp!r}")

        catalog = await self.catalog.load_active()

        def apply_event(profile: ProfileState) -> tuple[ProfileState, _EventOutcome]:
            stats = profile.stats.incremented(event_type)
            newly_unlocked = evaluate_achievements(stats, catalog, profile.unlocked)
            bonus = sum(a.points for a in newly_unlocked)

            unlocked = dict(profile.unlocked)
            if newly_unlocked:
                unlocked_at = self._clock()
                for achievement in newly_unlocked:
                    unlocked[achievement.id] = UnlockRecord(unlocked_at=unlocked_at)

            xp = profile.xp + base_xp + bonus
            updated = replace(profile, xp=xp, stats=stats, unlocked=unlocked)
            return updated, _EventOutcome(
                newly_unlocked=newly_unlocked,
                level_before=profile.level,
                level_after=level_for_xp(xp),
                xp_after=xp,
            )

        outcome = await self.store.commit_atomic(user_id, apply_event)

        for achievement in outcome.newly_unlocked:
            logger.info(
                "User %s unlocked achievement %s (+%d XP)", user_id, achievement.id, achievement.points
            )
        if outcome.level_after > outcome.level_before:
            logger.info(
                "User %s reached level %d (%d XP)", user_id, outcome.level_after, outcome.xp_after
            )

        return outcome.newly_unlocked

    async def touch_streak(self, user_id: str, today: date | None = None) -> StreakTouch:
        """Record a login/session for `today` (defaults to the current streak day)."""
        if not user_id:
            raise ValueError("user_id is required")
        if today is None:
            today = today_in_zone(self.streak_timezone, now=self._clock())

        def apply_touch(profile: ProfileState) -> tuple[ProfileState, StreakTouch]:
            update = next_streak(profile.streak, today)
            touch = StreakTouch(streak_changed=update.changed, new_count=update.count)
            if not update.changed:
                return profile, touch
            return replace(profile, streak=update.as_streak()), touch

        touch = await self.store.commit_atomic(user_id, apply_touch)
        if touch.streak_changed:
            logger.debug("User %s streak is now %d", user_id, touch.new_count)
        return touch

    # -------------------------------------------------------------------------
    # Read models
    # -------------------------------------------------------------------------

    async def get_progress(self, user_id: str) -> ProgressSummary:
        profile = await self.store.read(user_id)
        active = await self.catalog.load_active()
        active_ids = {a.id for a in active}

        return ProgressSummary(
            user_id=user_id,
            level=level_progress(profile.xp),
            stats=profile.stats,
            streak_count=profile.streak.count if profile.streak else 0,
            last_active_day=profile.streak.last_active_day if profile.streak else None,
            achievements_unlocked=sum(1 for a_id in profile.unlocked if a_id in active_ids),
            achievements_total=len(active),
            updated_at=profile.updated_at,
        )

    async def achievement_board(self, user_id: str) -> list[AchievementStatusView]:
        """Active achievements in catalog order with this user's lock state."""
        profile = await self.store.read(user_id)
        active = await self.catalog.load_active()
        return [self._view(profile, achievement) for achievement in active]

    async def unseen_achievements(self, user_id: str) -> list[AchievementStatusView]:
        """Unlocked achievements the user hasn't been shown yet, newest first."""
        profile = await self.store.read(user_id)
        pending = {a_id for a_id, record in profile.unlocked.items() if not record.seen}
        if not pending:
            return []

        definitions = await self._all_definitions()
        views = [
            self._view(profile, achievement)
            for achievement in definitions
            if achievement.id in pending
        ]
        views.sort(key=lambda v: v.unlocked_at, reverse=True)
        return views

    async def mark_seen(self, user_id: str, achievement_ids: Iterable[str]) -> int:
        """Flag unlocks as shown. Returns how many changed; unknown ids are ignored."""
        ids = set(achievement_ids)

        def apply_seen(profile: ProfileState) -> tuple[ProfileState, int]:
            unlocked = dict(profile.unlocked)
            changed = 0
            for a_id in ids:
                record = unlocked.get(a_id)
                if record is not None and not record.seen:
                    unlocked[a_id] = replace(record, seen=True)
                    changed += 1
            if not changed:
                return profile, 0
            return replace(profile, unlocked=unlocked), changed

        return await self.store.commit_atomic(user_id, apply_seen)

    async def _all_definitions(self) -> list[Achievement]:
        try:
            return await self.catalog.load_all()
        except CatalogUnavailable as e:
            logger.warning("Achievement catalog unavailable, no definitions to show: %s", e)
            return []

    @staticmethod
    def _view(profile: ProfileState, achievement: Achievement) -> AchievementStatusView:
        record = profile.unlocked.get(achievement.id)
        current, progress = achievement_progress(profile.stats, achievement)
        return AchievementStatusView(
            achievement=achievement,
            is_unlocked=record is not None,
            unlocked_at=record.unlocked_at if record else None,
            seen=record.seen if record else False,
            current_value=current,
            progress=1.0 if record is not None else progress,
        )
