"""XP economy and level calculations."""

from dataclasses import dataclass
from typing import Mapping

from learnquest.core.config import settings
from learnquest.models.gamification import EventType


# =============================================================================
# CONSTANTS
# =============================================================================

XP_PER_LEVEL = 100

# Level titles shown next to the level number (first level the title applies to)
LEVEL_TITLES = [
    (1, "Beginner"),
    (5, "Student"),
]


# =============================================================================
# LEVEL CALCULATIONS
# =============================================================================

def level_for_xp(xp: int) -> int:
    """Level is floor(xp / 100) + 1; negative XP is treated as zero."""
    return max(xp, 0) // XP_PER_LEVEL + 1


def level_title(level: int) -> str:
    title = LEVEL_TITLES[0][1]
    for min_level, name in LEVEL_TITLES:
        if level >= min_level:
            title = name
    return title


@dataclass(frozen=True)
class LevelProgress:
    level: int
    title: str
    xp: int
    xp_into_level: int
    xp_for_next_level: int
    progress: float


def level_progress(xp: int) -> LevelProgress:
    xp = max(xp, 0)
    into = xp % XP_PER_LEVEL
    level = level_for_xp(xp)
    return LevelProgress(
        level=level,
        title=level_title(level),
        xp=xp,
        xp_into_level=into,
        xp_for_next_level=XP_PER_LEVEL,
        progress=into / XP_PER_LEVEL,
    )


# =============================================================================
# XP SOURCES
# =============================================================================

def default_action_xp() -> dict[EventType, int]:
    return {
        EventType.QUIZ_COMPLETE: settings.xp_quiz_complete,
        EventType.MODULE_COMPLETE: settings.xp_module_complete,
        EventType.ACTIVITY_SENT: settings.xp_activity_sent,
    }


def action_xp(event_type: EventType | str, overrides: Mapping[str, int] | None = None) -> int:
    """Flat XP for an action, honouring admin overrides keyed by event name.

    Negative or non-integer overrides are ignored and the default is used.
    """
    event_type = EventType(event_type)
    if overrides:
        value = overrides.get(event_type.value)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return value
    return default_action_xp()[event_type]


def quiz_xp(correct_answers: int, previous_attempts: int) -> int:
    """XP for a quiz submission: points per correct answer, first attempt only.

    Repeat attempts earn nothing but still count as a completed quiz.
    """
    if previous_attempts > 0:
        return 0
    return max(correct_answers, 0) * settings.xp_per_correct_answer
