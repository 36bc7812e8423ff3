from learnquest.models.base import Base
from learnquest.models.gamification import (
    AchievementDefinition,
    AchievementStatus,
    CriterionType,
    EventType,
    UserGamificationProfile,
)

__all__ = [
    "Base",
    "AchievementDefinition",
    "AchievementStatus",
    "CriterionType",
    "EventType",
    "UserGamificationProfile",
]
