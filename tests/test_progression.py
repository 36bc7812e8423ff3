"""Tests for level calculations and the XP economy."""
import pytest

from learnquest.models.gamification import EventType
from learnquest.services.progression import (
    XP_PER_LEVEL,
    action_xp,
    level_for_xp,
    level_progress,
    level_title,
    quiz_xp,
)


class TestLevelForXP:
    """Level is floor(xp / 100) + 1."""

    @pytest.mark.parametrize(
        "xp, level",
        [(0, 1), (1, 1), (99, 1), (100, 2), (140, 2), (199, 2), (200, 3), (1050, 11)],
    )
    def test_formula(self, xp, level):
        assert level_for_xp(xp) == level

    def test_negative_xp_is_level_one(self):
        assert level_for_xp(-50) == 1

    def test_matches_floor_formula_over_range(self):
        for xp in range(0, 2500, 7):
            assert level_for_xp(xp) == xp // 100 + 1


class TestLevelProgress:

    def test_mid_level(self):
        progress = level_progress(140)
        assert progress.level == 2
        assert progress.xp_into_level == 40
        assert progress.xp_for_next_level == XP_PER_LEVEL
        assert progress.progress == 0.4

    def test_exact_boundary(self):
        progress = level_progress(300)
        assert progress.level == 4
        assert progress.xp_into_level == 0
        assert progress.progress == 0.0

    def test_titles(self):
        assert level_title(1) == "Beginner"
        assert level_title(4) == "Beginner"
        assert level_title(5) == "Student"
        assert level_title(40) == "Student"
        assert level_progress(450).title == "Student"


class TestActionXP:

    def test_defaults(self):
        assert action_xp(EventType.QUIZ_COMPLETE) == 10
        assert action_xp(EventType.MODULE_COMPLETE) == 50
        assert action_xp("activity_sent") == 20

    def test_admin_override(self):
        assert action_xp(EventType.MODULE_COMPLETE, {"module_complete": 75}) == 75

    def test_invalid_overrides_fall_back(self):
        overrides = {"quiz_complete": -5, "module_complete": "lots", "activity_sent": True}
        assert action_xp(EventType.QUIZ_COMPLETE, overrides) == 10
        assert action_xp(EventType.MODULE_COMPLETE, overrides) == 50
        assert action_xp(EventType.ACTIVITY_SENT, overrides) == 20

    def test_unknown_event_raises(self):
        with pytest.raises(ValueError):
            action_xp("forum_post")


class TestQuizXP:
    """10 XP per correct answer, first attempt only."""

    def test_first_attempt(self):
        assert quiz_xp(correct_answers=8, previous_attempts=0) == 80

    def test_repeat_attempt_earns_nothing(self):
        assert quiz_xp(correct_answers=10, previous_attempts=1) == 0

    def test_zero_score(self):
        assert quiz_xp(correct_answers=0, previous_attempts=0) == 0

    def test_negative_score_clamped(self):
        assert quiz_xp(correct_answers=-3, previous_attempts=0) == 0
