"""
Streak Tracker

Computes learning streaks from activity timestamps. The set of activity
days is the only source of truth: every call recomputes the full state,
and "today" is always supplied by the caller.
"""

from typing import Any, Iterable, List, Optional
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo
import logging

from config.settings import settings
from models.schemas import StreakState

ONE_DAY = timedelta(days=1)


def resolve_timezone(name: Optional[str] = None) -> tzinfo:
    """Map a zone name (default settings.REFERENCE_TIMEZONE) to a tzinfo"""
    name = name or settings.REFERENCE_TIMEZONE
    if name.upper() in ("UTC", "Z"):
        return timezone.utc
    return ZoneInfo(name)


def to_calendar_day(value: Any, tz: tzinfo) -> date:
    """
    Normalise one timestamp to a calendar day in the reference zone.

    Aware datetimes are converted into `tz`; naive datetimes are taken as
    wall time already in `tz`. Numbers are epoch milliseconds.

    Raises:
        ValueError: Unsupported or unparseable timestamp
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(tz).date()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Unsupported activity timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).astimezone(tz).date()
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_calendar_day(datetime.fromisoformat(text), tz)
        except ValueError:
            raise ValueError(f"Unparseable activity timestamp: {value!r}") from None
    raise ValueError(f"Unsupported activity timestamp: {value!r}")


def activity_days(activity_dates: Iterable[Any], tz: Optional[tzinfo] = None) -> List[date]:
    """Unique activity days, most recent first"""
    tz = tz or resolve_timezone()
    return sorted({to_calendar_day(value, tz) for value in activity_dates}, reverse=True)


def longest_run(days_descending: List[date]) -> int:
    """Longest run of consecutive days in a descending unique day list"""
    if not days_descending:
        return 0
    longest = 1
    run = 1
    ascending = list(reversed(days_descending))
    for previous, current in zip(ascending, ascending[1:]):
        if current - previous == ONE_DAY:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
    return longest


class StreakTracker:
    """Derives StreakState from the full activity history"""

    # Days after the last activity before a streak counts as broken
    GRACE_DAYS = 1

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz
        self.logger = logging.getLogger("StreakTracker")

    def compute_streak(
        self,
        activity_dates: Iterable[Any],
        today: date,
        tz: Optional[tzinfo] = None
    ) -> StreakState:
        """
        Compute streak state.

        Args:
            activity_dates: Activity timestamps (datetime, date, ISO string or epoch ms)
            today: Day to evaluate against; aware datetimes are converted into the reference zone
            tz: Reference zone; defaults to the tracker's zone, then settings

        Returns:
            StreakState
        """
        tz = tz or self.tz or resolve_timezone()
        today = to_calendar_day(today, tz)
        days = activity_days(activity_dates, tz)

        if not days:
            return StreakState()

        last_day = days[0]
        gap = (today - last_day).days
        is_active = 0 <= gap <= self.GRACE_DAYS

        current_streak = 0
        if is_active:
            expected = last_day
            for day in days:
                if day != expected:
                    break
                current_streak += 1
                expected = day - ONE_DAY

        longest_streak = max(longest_run(days), current_streak)

        return StreakState(
            current_streak=current_streak,
            longest_streak=longest_streak,
            last_activity_date=last_day,
            is_active=is_active,
            days_until_break=gap if is_active else None
        )


def compute_streak(activity_dates: Iterable[Any], today: date, tz: Optional[tzinfo] = None) -> StreakState:
    """Module-level shortcut for StreakTracker().compute_streak"""
    return StreakTracker().compute_streak(activity_dates, today, tz)
