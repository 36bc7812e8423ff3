"""Login streak calculation.

Streaks count consecutive calendar days with at least one session touch.
Dates are compared as plain calendar days, so callers must derive `today`
in one agreed zone (see today_in_zone).
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from learnquest.core.config import settings
from learnquest.models.profile import Streak

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakUpdate:
    count: int
    last_active_day: date
    changed: bool
    clock_anomaly: bool = False

    def as_streak(self) -> Streak:
        return Streak(count=self.count, last_active_day=self.last_active_day)


def today_in_zone(tz_name: str | None = None, now: datetime | None = None) -> date:
    """Current calendar day in the streak time zone."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(ZoneInfo(tz_name or settings.streak_timezone)).date()


def next_streak(previous: Streak | None, today: date) -> StreakUpdate:
    """Derive the next streak state from the stored one.

    Never raises. A backdated `today` leaves the streak alone and is flagged
    as a clock anomaly.
    """
    if previous is None:
        return StreakUpdate(count=1, last_active_day=today, changed=True)

    gap = (today - previous.last_active_day).days

    if gap == 1:
        return StreakUpdate(count=previous.count + 1, last_active_day=today, changed=True)
    if gap > 1:
        return StreakUpdate(count=1, last_active_day=today, changed=True)

    anomaly = gap < 0
    if anomaly:
        logger.warning(
            "Streak clock anomaly: today=%s is before last_active_day=%s; leaving streak unchanged",
            today.isoformat(),
            previous.last_active_day.isoformat(),
        )

    if previous.count <= 0:
        # Same-day touch on a corrupted zero streak
        return StreakUpdate(
            count=1,
            last_active_day=previous.last_active_day,
            changed=True,
            clock_anomaly=anomaly,
        )

    return StreakUpdate(
        count=previous.count,
        last_active_day=previous.last_active_day,
        changed=False,
        clock_anomaly=anomaly,
    )
