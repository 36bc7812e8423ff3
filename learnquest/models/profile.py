"""
Value objects the engine works with.

ORM rows are converted into these at the store boundary so the rule
evaluator, streak calculator and event processor never touch a session.
All of them are frozen; changes go through dataclasses.replace().
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Mapping

from learnquest.models.gamification import (
    EVENT_CRITERION,
    AchievementStatus,
    CriterionType,
    EventType,
)
from learnquest.services.progression import level_for_xp

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Achievement:
    """An achievement rule as the engine sees it."""
    id: str
    criterion_type: CriterionType | str  # unknown types are kept but never satisfied
    criterion_count: int
    points: int = 0
    status: AchievementStatus = AchievementStatus.ACTIVE
    title: str = ""
    description: str = ""
    tier: str = "bronze"
    category: str | None = None
    rarity: str | None = None
    image_url: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == AchievementStatus.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "criterion_type": _enum_value(self.criterion_type),
            "criterion_count": self.criterion_count,
            "points": self.points,
            "status": _enum_value(self.status),
            "tier": self.tier,
            "category": self.category,
            "rarity": self.rarity,
            "image_url": self.image_url,
        }


@dataclass(frozen=True)
class Stats:
    quizzes_completed: int = 0
    modules_completed: int = 0
    activities_completed: int = 0

    def count_for(self, criterion: CriterionType | str) -> int | None:
        """Counter matching a criterion type, or None for types we don't track."""
        if criterion == CriterionType.QUIZZES:
            return self.quizzes_completed
        if criterion == CriterionType.MODULES:
            return self.modules_completed
        if criterion == CriterionType.ACTIVITIES:
            return self.activities_completed
        return None

    def incremented(self, event_type: EventType) -> "Stats":
        criterion = EVENT_CRITERION[EventType(event_type)]
        if criterion == CriterionType.QUIZZES:
            return Stats(self.quizzes_completed + 1, self.modules_completed, self.activities_completed)
        if criterion == CriterionType.MODULES:
            return Stats(self.quizzes_completed, self.modules_completed + 1, self.activities_completed)
        return Stats(self.quizzes_completed, self.modules_completed, self.activities_completed + 1)

    def to_dict(self) -> dict[str, int]:
        return {
            "quizzes_completed": self.quizzes_completed,
            "modules_completed": self.modules_completed,
            "activities_completed": self.activities_completed,
        }


@dataclass(frozen=True)
class Streak:
    count: int
    last_active_day: date


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO 8601 timestamp, including the trailing "Z" form JS clients write."""
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return datetime.fromisoformat(raw)


@dataclass(frozen=True)
class UnlockRecord:
    unlocked_at: datetime
    seen: bool = False

    def to_json(self) -> dict[str, Any]:
        return {"unlocked_at": self.unlocked_at.isoformat(), "seen": self.seen}

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "UnlockRecord":
        # Older documents stored the timestamp under "date"
        raw = data.get("unlocked_at") or data.get("date")
        return cls(
            unlocked_at=parse_timestamp(raw) if raw else EPOCH,
            seen=bool(data.get("seen", False)),
        )


@dataclass(frozen=True)
class ProfileState:
    """Snapshot of one user's gamification profile.

    `version` is the compare-and-swap token of the stored row the snapshot
    was read from (0 means no row exists yet).
    """
    user_id: str
    xp: int = 0
    stats: Stats = field(default_factory=Stats)
    streak: Streak | None = None
    unlocked: Mapping[str, UnlockRecord] = field(default_factory=dict)
    updated_at: datetime | None = None
    version: int = 0

    @property
    def level(self) -> int:
        return level_for_xp(self.xp)


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value
