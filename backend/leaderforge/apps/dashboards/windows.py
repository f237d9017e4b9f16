"""
Calendar-week windows used by the dashboards.

Weeks start on Monday 00:00 UTC. A window is reported as
[start, start + 6 days 23:59:59.999]; membership is tested against the next
week's start so sub-millisecond Sunday timestamps still land in a week.
Index 0 is the week containing `now`, index 3 the oldest of the four
reported weeks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

WEEKS_REPORTED = 4

_WEEK = timedelta(weeks=1)
_WEEK_LENGTH = _WEEK - timedelta(milliseconds=1)


@dataclass(frozen=True)
class WeekWindow:
    index: int
    start: datetime
    end: datetime

    @property
    def next_start(self) -> datetime:
        return self.start + _WEEK

    def contains(self, moment: Optional[datetime]) -> bool:
        if moment is None:
            return False
        return self.start <= as_utc(moment) < self.next_start


def as_utc(now: Optional[datetime]) -> datetime:
    """`now` as an aware UTC datetime; None means the current time, naive means UTC."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def start_of_week(now: Optional[datetime] = None) -> datetime:
    moment = as_utc(now)
    monday = moment - timedelta(days=moment.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def week_window(now: Optional[datetime], index: int) -> WeekWindow:
    """Window for the week `index` weeks before the one containing `now`."""
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < WEEKS_REPORTED:
        raise ValueError(f"week_index must be between 0 and {WEEKS_REPORTED - 1}, got {index!r}")
    start = start_of_week(now) - timedelta(weeks=index)
    return WeekWindow(index=index, start=start, end=start + _WEEK_LENGTH)


def reported_weeks(now: Optional[datetime] = None) -> List[WeekWindow]:
    """All reported windows, newest first."""
    return [week_window(now, index) for index in range(WEEKS_REPORTED)]


def four_week_start(now: Optional[datetime] = None) -> datetime:
    return start_of_week(now) - timedelta(weeks=WEEKS_REPORTED - 1)
