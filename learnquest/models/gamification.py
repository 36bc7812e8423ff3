"""Gamification models for achievement definitions and per-user profiles."""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from learnquest.models.base import Base


class EventType(str, Enum):
    """Learning actions that feed the gamification engine."""
    QUIZ_COMPLETE = "quiz_complete"
    MODULE_COMPLETE = "module_complete"
    ACTIVITY_SENT = "activity_sent"


class CriterionType(str, Enum):
    """Stat counter an achievement threshold is measured against."""
    MODULES = "modules"
    QUIZZES = "quizzes"
    ACTIVITIES = "activities"


class AchievementStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class BadgeTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class AchievementCategory(str, Enum):
    SOCIAL = "social"
    LEARNING = "learning"
    ENGAGEMENT = "engagement"


class AchievementRarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"


# Which stat counter each event increments
EVENT_CRITERION: dict[EventType, CriterionType] = {
    EventType.QUIZ_COMPLETE: CriterionType.QUIZZES,
    EventType.MODULE_COMPLETE: CriterionType.MODULES,
    EventType.ACTIVITY_SENT: CriterionType.ACTIVITIES,
}


class AchievementDefinition(Base):
    """Admin-authored achievement rule, shared by all users."""

    __tablename__ = "achievement_definitions"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)  # e.g., "quizzes_1"
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    # Use String to avoid PostgreSQL enum mapping issues - values validated at app layer
    criterion_type: Mapped[str] = mapped_column(String(50))
    criterion_count: Mapped[int] = mapped_column(Integer)  # Threshold; <= 0 never unlocks
    points: Mapped[int] = mapped_column(Integer, default=0)  # Bonus XP on unlock
    status: Mapped[str] = mapped_column(String(20), default=AchievementStatus.ACTIVE.value)

    # Display metadata, passed through to callers untouched
    tier: Mapped[str] = mapped_column(String(20), default=BadgeTier.BRONZE.value)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    rarity: Mapped[str | None] = mapped_column(String(50), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        Index("ix_achievement_status", "status"),
        Index("ix_achievement_criterion", "criterion_type"),
    )


class UserGamificationProfile(Base):
    """One row per user: XP, level, stat counters, streak and unlocks.

    Rows are only ever written through ProfileStore.commit_atomic, which
    guards every UPDATE with the version column.
    """

    __tablename__ = "user_gamification_profiles"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)

    xp: Mapped[int] = mapped_column(Integer, default=0)
    level: Mapped[int] = mapped_column(Integer, default=1)  # Always floor(xp / 100) + 1

    # Stat counters
    quizzes_completed: Mapped[int] = mapped_column(Integer, default=0)
    modules_completed: Mapped[int] = mapped_column(Integer, default=0)
    activities_completed: Mapped[int] = mapped_column(Integer, default=0)

    # Login streak
    streak_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    streak_last_active_day: Mapped[date | None] = mapped_column(Date, nullable=True)

    # {achievement_id: {"unlocked_at": iso8601, "seen": bool}}
    unlocked: Mapped[dict] = mapped_column(JSON, default=dict)

    # Compare-and-swap token
    version: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
