"""Tests for login streak transitions (pure function, no store)."""
import logging
from datetime import date, datetime, timedelta, timezone

from learnquest.models.profile import Streak
from learnquest.services.streak import next_streak, today_in_zone


DAY = date(2026, 3, 2)


class TestNextStreak:
    """Covers first login, consecutive days, gaps, same-day and backdated touches."""

    def test_first_ever_touch_starts_at_one(self):
        update = next_streak(None, DAY)
        assert update.count == 1
        assert update.last_active_day == DAY
        assert update.changed is True

    def test_next_day_increments(self):
        update = next_streak(Streak(count=4, last_active_day=DAY), DAY + timedelta(days=1))
        assert update.count == 5
        assert update.last_active_day == DAY + timedelta(days=1)
        assert update.changed is True

    def test_gap_of_two_days_resets(self):
        update = next_streak(Streak(count=9, last_active_day=DAY), DAY + timedelta(days=2))
        assert update.count == 1
        assert update.last_active_day == DAY + timedelta(days=2)
        assert update.changed is True

    def test_long_absence_resets(self):
        update = next_streak(Streak(count=30, last_active_day=DAY), DAY + timedelta(days=45))
        assert update.count == 1
        assert update.changed is True

    def test_same_day_is_unchanged(self):
        previous = Streak(count=3, last_active_day=DAY)
        update = next_streak(previous, DAY)
        assert update.count == 3
        assert update.last_active_day == DAY
        assert update.changed is False
        assert update.clock_anomaly is False

    def test_same_day_heals_zero_count(self):
        """A stored zero streak is a data anomaly; a same-day touch repairs it to 1."""
        update = next_streak(Streak(count=0, last_active_day=DAY), DAY)
        assert update.count == 1
        assert update.changed is True

    def test_backdated_today_is_a_no_op(self, caplog):
        """Clock skew must never decrement or reset the streak."""
        previous = Streak(count=6, last_active_day=DAY)
        with caplog.at_level(logging.WARNING, logger="learnquest.services.streak"):
            update = next_streak(previous, DAY - timedelta(days=3))

        assert update.count == 6
        assert update.last_active_day == DAY
        assert update.changed is False
        assert update.clock_anomaly is True
        assert "clock anomaly" in caplog.text

    def test_backdated_today_still_heals_zero_count(self):
        update = next_streak(Streak(count=0, last_active_day=DAY), DAY - timedelta(days=1))
        assert update.count == 1
        assert update.last_active_day == DAY
        assert update.clock_anomaly is True

    def test_as_streak(self):
        update = next_streak(None, DAY)
        assert update.as_streak() == Streak(count=1, last_active_day=DAY)

    def test_login_sequence_from_spec_example(self):
        """Day D -> 1, D+1 -> 2, skip D+2, D+3 -> back to 1."""
        first = next_streak(None, DAY)
        second = next_streak(first.as_streak(), DAY + timedelta(days=1))
        third = next_streak(second.as_streak(), DAY + timedelta(days=3))
        assert [first.count, second.count, third.count] == [1, 2, 1]


class TestTodayInZone:
    """The streak day depends on the configured zone, not the server's clock zone."""

    def test_utc(self):
        now = datetime(2026, 3, 2, 23, 30, tzinfo=timezone.utc)
        assert today_in_zone("UTC", now=now) == date(2026, 3, 2)

    def test_zone_ahead_of_utc_rolls_over(self):
        now = datetime(2026, 3, 2, 23, 30, tzinfo=timezone.utc)
        assert today_in_zone("Asia/Tokyo", now=now) == date(2026, 3, 3)

    def test_zone_behind_utc(self):
        now = datetime(2026, 3, 2, 1, 0, tzinfo=timezone.utc)
        assert today_in_zone("America/Sao_Paulo", now=now) == date(2026, 3, 1)
