from datetime import date, datetime

from pydantic import BaseModel, Field

from learnquest.models.gamification import EventType
from learnquest.models.profile import Achievement
from learnquest.services.gamification import AchievementStatusView, ProgressSummary


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str


class HealthResponse(BaseModel):
    """Response from the health check endpoint."""

    status: str
    version: str


# =============================================================================
# REQUESTS
# =============================================================================

class EventRequest(BaseModel):
    """A completed learning action reported by a collaborator."""

    user_id: str = Field(min_length=1, max_length=128)
    event_type: EventType = Field(description="quiz_complete, module_complete or activity_sent")
    base_xp: int = Field(ge=0, description="XP decided by the caller, before achievement bonuses")


class StreakRequest(BaseModel):
    """Session touch for the login streak."""

    user_id: str = Field(min_length=1, max_length=128)
    today: date | None = Field(default=None, description="Calendar day of the session; defaults to the server's streak day")


class MarkSeenRequest(BaseModel):
    """Request to mark unlocked achievements as shown."""

    achievement_ids: list[str]


# =============================================================================
# RESPONSES
# =============================================================================

class AchievementResponse(BaseModel):
    """Achievement definition."""

    id: str
    title: str
    description: str
    criterion_type: str
    criterion_count: int
    points: int
    status: str
    tier: str
    category: str | None
    rarity: str | None
    image_url: str | None

    @classmethod
    def from_achievement(cls, achievement: Achievement) -> "AchievementResponse":
        return cls(**achievement.to_dict())


class EventResponse(BaseModel):
    """Achievements unlocked by one event."""

    newly_unlocked: list[AchievementResponse]
    bonus_xp: int = Field(description="Sum of the unlocked achievements' points")


class StreakResponse(BaseModel):
    streak_changed: bool
    new_count: int


class AchievementStatusResponse(AchievementResponse):
    """Achievement with one user's unlock state."""

    is_unlocked: bool
    unlocked_at: datetime | None
    seen: bool
    current_value: int
    progress: float

    @classmethod
    def from_view(cls, view: AchievementStatusView) -> "AchievementStatusResponse":
        return cls(
            **view.achievement.to_dict(),
            is_unlocked=view.is_unlocked,
            unlocked_at=view.unlocked_at,
            seen=view.seen,
            current_value=view.current_value,
            progress=view.progress,
        )


class StatsResponse(BaseModel):
    quizzes_completed: int
    modules_completed: int
    activities_completed: int


class ProgressResponse(BaseModel):
    """Full gamification progress for a user."""

    user_id: str
    xp: int
    level: int
    level_title: str
    xp_into_level: int
    xp_for_next_level: int
    level_progress: float
    stats: StatsResponse
    streak: int
    last_active_day: date | None
    achievements_unlocked: int
    achievements_total: int
    updated_at: datetime | None

    @classmethod
    def from_summary(cls, summary: ProgressSummary) -> "ProgressResponse":
        return cls(
            user_id=summary.user_id,
            xp=summary.level.xp,
            level=summary.level.level,
            level_title=summary.level.title,
            xp_into_level=summary.level.xp_into_level,
            xp_for_next_level=summary.level.xp_for_next_level,
            level_progress=summary.level.progress,
            stats=StatsResponse(**summary.stats.to_dict()),
            streak=summary.streak_count,
            last_active_day=summary.last_active_day,
            achievements_unlocked=summary.achievements_unlocked,
            achievements_total=summary.achievements_total,
            updated_at=summary.updated_at,
        )


class MarkSeenResponse(BaseModel):
    status: str
    marked: int
