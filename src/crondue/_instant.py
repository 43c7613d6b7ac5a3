from __future__ import annotations

from datetime import date, datetime, timezone as dt_timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ._error import CronError

NOW = "now"

# Zone for naive instants when the schedule names none.
DEFAULT_TIMEZONE = "UTC"

Instant = str | int | datetime


# --- Timezone resolution ---


def timezone_name(value: str | tzinfo | datetime | None) -> str | None:
    """Validate a timezone argument and return its IANA identifier.

    Accepts an identifier string, a `tzinfo` carrying a `key` (ZoneInfo),
    `datetime.timezone.utc`, or an aware datetime whose zone is inherited.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise CronError.argument("cannot inherit a timezone from a naive datetime")
        value = value.tzinfo
    if isinstance(value, str):
        _load_zone(value)
        return value
    if value is dt_timezone.utc:
        return "UTC"
    key = getattr(value, "key", None)
    if isinstance(key, str):
        return key
    raise CronError.argument(f"timezone has no IANA identifier: {value!r}")


def resolve_tz(
    tz_name: str | None,
    instant: Instant | None = None,
    default: tzinfo | None = None,
) -> tzinfo:
    """The zone an instant is evaluated in.

    A named schedule zone wins. Otherwise an aware instant keeps its own zone
    and everything else is read in `default`, or UTC.
    """
    if tz_name:
        return _load_zone(tz_name)
    if isinstance(instant, datetime) and instant.tzinfo is not None:
        return instant.tzinfo
    if isinstance(instant, str) and instant != NOW:
        with_offset = _parse_iso(instant)
        if with_offset.tzinfo is not None:
            return with_offset.tzinfo
    return default or ZoneInfo(DEFAULT_TIMEZONE)


def _load_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise CronError.argument(f"unknown timezone: {name!r}") from None


# --- Instant coercion ---


def to_datetime(value: Instant, tz_name: str | None, default: tzinfo | None = None) -> datetime:
    """Coerce an instant into an aware datetime truncated to the minute.

    Naive values are wall-clock times in the resolved zone.
    """
    tz = resolve_tz(tz_name, value, default)

    if isinstance(value, bool):
        raise CronError.argument(f"invalid time argument: {value!r}")
    if isinstance(value, str):
        if value == NOW:
            dt = datetime.now(tz)
        else:
            dt = _parse_iso(value)
    elif isinstance(value, int):
        try:
            dt = datetime.fromtimestamp(value, tz)
        except (OverflowError, OSError, ValueError):
            raise CronError.argument(f"timestamp out of range: {value}") from None
    elif isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        raise CronError.argument(f"a date has no time of day: {value!r}")
    else:
        raise CronError.argument(f"invalid time argument: {value!r}")

    dt = dt.replace(tzinfo=tz) if dt.tzinfo is None else dt.astimezone(tz)
    return dt.replace(second=0, microsecond=0)


def _parse_iso(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise CronError.argument(f"invalid time argument: {value!r}") from None
