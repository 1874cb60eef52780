"""Streak calculation and the reporting calendar.

Check-in days are calendar days at a fixed UTC offset (UTC+8 by default),
not wall-clock instants: 23:59 and 00:01 the next reporting day are
consecutive.
"""

import calendar
from datetime import date, datetime, timedelta, timezone


def reporting_timezone(offset_hours: int) -> timezone:
    return timezone(timedelta(hours=offset_hours))


def reporting_now(offset_hours: int = 8) -> datetime:
    """Current time in the reporting timezone."""
    return datetime.now(reporting_timezone(offset_hours))


def reporting_today(now: datetime, offset_hours: int = 8) -> date:
    """Calendar day of ``now`` in the reporting timezone.

    Naive datetimes are taken to be UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(reporting_timezone(offset_hours)).date()


def compute_streak(
    last_checkin_date: date | None,
    today: date,
    prior_consecutive: int,
) -> int:
    """Consecutive-day count after checking in on ``today``.

    Continues the streak only when the last check-in was exactly the
    previous day; any other case (first check-in, a gap, same day) restarts
    at 1.
    """
    if last_checkin_date is not None and last_checkin_date == today - timedelta(days=1):
        return prior_consecutive + 1
    return 1


def current_streak(
    last_checkin_date: date | None,
    today: date,
    stored_consecutive: int,
) -> int:
    """Streak as displayed today, without checking in.

    The stored counter stays valid while the user checked in today or
    yesterday; otherwise the streak is already broken.
    """
    if last_checkin_date is None:
        return 0
    if last_checkin_date in (today, today - timedelta(days=1)):
        return stored_consecutive
    return 0


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
