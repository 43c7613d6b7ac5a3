from __future__ import annotations

import bisect
import calendar
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import MINYEAR, date, datetime, timedelta, timezone, tzinfo

from ._error import CronError
from ._fields import CronFields, cron_weekday
from ._instant import NOW, Instant, to_datetime

logger = logging.getLogger(__name__)

DEFAULT_STEP_BACK = timedelta(minutes=1)

# =============================================================================
# Backward Search
# =============================================================================
# The calendar is read as a mixed-radix counter (month, day, hour, minute)
# whose digits come from the field value-sets. Searching backwards is a
# borrowing decrement:
#
# 1. Minute: the greatest allowed minute below the current one, same hour.
# 2. Hour: the greatest allowed hour below the current one, at the greatest
#    allowed minute.
# 3. Date: the latest earlier date satisfying the month set and either the
#    day-of-month set or the weekday set, at the greatest allowed hour and
#    minute. Both day constraints are searched independently and the later
#    date wins, which keeps the OR between them.
#
# Month lengths follow the Gregorian calendar. A day-of-month search visits
# each allowed month at most once; after that only February 29 can still be
# satisfiable and it is resolved by stepping back to the previous leap year.
# =============================================================================

# =============================================================================
# DST (Daylight Saving Time) Handling
# =============================================================================
# The search walks wall-clock times in the schedule's zone. Each candidate is
# then resolved to a real instant by a UTC round-trip:
#
# 1. Spring-forward gap: the wall time does not exist (the round-trip lands on
#    a different wall time). The candidate never fires, so the search goes on
#    from the minute before it.
#
# 2. Fall-back overlap: the wall time occurs twice. The later occurrence
#    (fold=1) is taken when it is not after the search limit, else the
#    earlier one (fold=0). When the reference itself sits in the second pass
#    of a repeated hour, a second search starts from the end of that hour so
#    the first pass is not skipped, and the later of the two results wins.
#
# Step-back arithmetic is done in UTC, so the limit is exactly
# `reference - step_back` in absolute time.
# =============================================================================


# --- Helpers ---


def _nearest_lower(values: tuple[int, ...], below: int) -> int | None:
    """Greatest element of the sorted `values` strictly less than `below`."""
    i = bisect.bisect_left(values, below)
    return values[i - 1] if i else None


def _prev_month(months: tuple[int, ...], year: int, month: int) -> tuple[int, int]:
    """Nearest allowed month before (year, month), wrapping into the prior year."""
    lower = _nearest_lower(months, month)
    if lower is None:
        return year - 1, months[-1]
    return year, lower


def _last_day_of_month(year: int, month: int) -> date:
    _, last = calendar.monthrange(year, month)
    return date(year, month, last)


def _prev_leap_year(before: date) -> int | None:
    """Latest year whose February 29 falls strictly before `before`."""
    year = before.year if (before.month, before.day) > (2, 29) else before.year - 1
    while year >= MINYEAR and not calendar.isleap(year):
        year -= 1
    return year if year >= MINYEAR else None


def _days_back(weekdays: tuple[int, ...], weekday: int, inclusive: bool) -> int:
    """Days to step back from `weekday` to the nearest allowed weekday."""
    lower = _nearest_lower(weekdays, weekday + 1 if inclusive else weekday)
    if lower is None:
        return weekday - weekdays[-1] + 7
    return weekday - lower


def _at_time_on_date(d: date, hour: int, minute: int, tz: tzinfo) -> datetime:
    return datetime(d.year, d.month, d.day, hour, minute, tzinfo=tz, fold=0)


def _utc(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc)


def _resolve(wall: datetime, limit: datetime) -> datetime | None:
    """Latest real instant showing the wall time of `wall` that is not after `limit`.

    Returns None for a wall time inside a spring-forward gap.
    """
    for fold in (1, 0):
        # Normalize through UTC round-trip; a gap time comes back shifted
        real = _utc(wall.replace(fold=fold)).astimezone(wall.tzinfo)
        if real.replace(tzinfo=None) != wall.replace(tzinfo=None):
            return None
        if _utc(real) <= _utc(limit):
            return real
    return None


def _in_second_pass(dt: datetime) -> bool:
    """True when `dt` is the later occurrence of a wall time repeated at fall-back."""
    return dt.fold == 1 and dt.utcoffset() != dt.replace(fold=0).utcoffset()


def _require_satisfiable(fields: CronFields) -> None:
    if not fields.satisfiable:
        raise CronError.unsatisfiable(
            "schedule has no satisfiable value for minute, hour, month or day"
        )


# --- Matching ---


def matches(fields: CronFields, instant: Instant) -> bool:
    if not fields.satisfiable:
        return False
    return _matches(fields, to_datetime(instant, fields.timezone))


def _matches(fields: CronFields, dt: datetime) -> bool:
    return (
        dt.minute in fields.minute
        and dt.hour in fields.hour
        and dt.month in fields.month
        and (
            dt.day in fields.effective_days
            or cron_weekday(dt.isoweekday()) in fields.effective_weekdays
        )
    )


# --- Last due ---


def last_due(
    fields: CronFields,
    reference: Instant = NOW,
    step_back: timedelta | None = DEFAULT_STEP_BACK,
) -> datetime | None:
    """Latest instant at or before `reference - step_back` matching `fields`.

    Returns None when no date can ever satisfy the day and month sets (for
    example day 31 in February only).
    """
    _require_satisfiable(fields)
    if step_back is not None and not isinstance(step_back, timedelta):
        raise CronError.argument(f"step_back must be a timedelta, got {step_back!r}")

    limit = to_datetime(reference, fields.timezone)
    if step_back:
        limit = (_utc(limit) - step_back).astimezone(limit.tzinfo)
        limit = limit.replace(second=0, microsecond=0)

    result = _search(fields, limit, limit)
    if _in_second_pass(limit):
        first_pass = _search(fields, limit.replace(minute=59, fold=0), limit)
        if first_pass is not None and (result is None or _utc(first_pass) > _utc(result)):
            result = first_pass
    return result


def _search(fields: CronFields, start: datetime, limit: datetime) -> datetime | None:
    """Latest real instant not after `limit` whose wall time is at or before `start`."""
    while True:
        wall = _prev_wall_time(fields, start)
        if wall is None:
            return None
        result = _resolve(wall, limit)
        if result is not None:
            return result
        logger.debug("no real instant at %s before %s", wall.replace(tzinfo=None), limit)
        start = wall - timedelta(minutes=1)


def _prev_wall_time(fields: CronFields, current: datetime) -> datetime | None:
    """Latest wall-clock time at or before `current` matching `fields`."""
    if _matches(fields, current):
        return current

    minute = _nearest_lower(fields.minute, current.minute)
    if minute is not None:
        candidate = current.replace(minute=minute)
        if _matches(fields, candidate):
            return candidate
    latest_minute = fields.minute[-1]

    hour = _nearest_lower(fields.hour, current.hour)
    if hour is not None:
        candidate = current.replace(hour=hour, minute=latest_minute)
        if _matches(fields, candidate):
            return candidate
    latest_hour = fields.hour[-1]

    today = current.date()
    by_day = _prev_day_of_month(fields, today)
    by_weekday = _prev_weekday(fields, today)
    logger.debug("last_due before %s: by day %s, by weekday %s", today, by_day, by_weekday)

    candidates = [d for d in (by_day, by_weekday) if d is not None]
    if not candidates:
        return None
    return _at_time_on_date(max(candidates), latest_hour, latest_minute, current.tzinfo)


def _prev_day_of_month(fields: CronFields, today: date) -> date | None:
    """Latest date before `today` in an allowed month on an allowed day of month."""
    days = fields.effective_days
    if not days:
        return None
    months = fields.month

    year, month = today.year, today.month
    below = today.day
    for _ in range(len(months) + 1):
        if year < MINYEAR:
            return None
        if month in months:
            last = calendar.monthrange(year, month)[1]
            day = _nearest_lower(days, min(below, last + 1))
            if day is not None:
                return date(year, month, day)
        year, month = _prev_month(months, year, month)
        below = 32

    # Every allowed month was visited; only February 29 can remain.
    if 2 in months and 29 in days:
        leap = _prev_leap_year(today)
        if leap is not None:
            return date(leap, 2, 29)
    return None


def _prev_weekday(fields: CronFields, today: date) -> date | None:
    """Latest date before `today` in an allowed month on an allowed weekday."""
    weekdays = fields.effective_weekdays
    if not weekdays:
        return None

    weekday = cron_weekday(today.isoweekday())
    candidate = today - timedelta(days=_days_back(weekdays, weekday, inclusive=False))
    if candidate.month in fields.month:
        return candidate

    year, month = _prev_month(fields.month, candidate.year, candidate.month)
    if year < MINYEAR:
        return None
    # Every month is at least four weeks long, so this stays inside it.
    last_day = _last_day_of_month(year, month)
    weekday = cron_weekday(last_day.isoweekday())
    return last_day - timedelta(days=_days_back(weekdays, weekday, inclusive=True))


# --- Due evaluation ---


@dataclass(frozen=True, slots=True)
class DueCheck:
    """Outcome of a due check: the normalized `now` and the instant that matched."""

    due: bool
    now: datetime | None
    matched: datetime | None

    def __iter__(self) -> Iterator[bool | datetime | None]:
        return iter((self.due, self.now, self.matched))


def is_due(
    fields: CronFields,
    now: Instant = NOW,
    last_checked: Instant | None = None,
    strict: bool = False,
) -> DueCheck:
    if not fields.satisfiable:
        if strict:
            _require_satisfiable(fields)
        return DueCheck(False, None, None)

    current = to_datetime(now, fields.timezone)
    if _matches(fields, current):
        return DueCheck(True, current, current)
    if last_checked is None:
        return DueCheck(False, current, None)

    checked = to_datetime(last_checked, fields.timezone, default=current.tzinfo)
    previous = last_due(fields, current)
    logger.debug("due check at %s: last due %s, last checked %s", current, previous, checked)
    if previous is not None and _utc(previous) > _utc(checked):
        return DueCheck(True, current, previous)
    return DueCheck(False, current, None)
