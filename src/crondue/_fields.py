from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class Field(Enum):
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    MONTH = "month"
    WEEKDAY = "weekday"

    @property
    def index(self) -> int:
        """Position of the field in a five-field cron expression."""
        return _FIELD_INDEX[self]

    @property
    def minimum(self) -> int:
        return _FIELD_BOUNDS[self][0]

    @property
    def maximum(self) -> int:
        return _FIELD_BOUNDS[self][1]

    @property
    def size(self) -> int:
        """Number of distinct values in the full range."""
        return self.maximum - self.minimum + 1

    @property
    def full_range(self) -> tuple[int, ...]:
        return tuple(range(self.minimum, self.maximum + 1))

    @classmethod
    def from_index(cls, n: int) -> Field | None:
        return _INDEX_TO_FIELD.get(n)

    def __str__(self) -> str:
        return self.value


_FIELD_INDEX = {
    Field.MINUTE: 0,
    Field.HOUR: 1,
    Field.DAY: 2,
    Field.MONTH: 3,
    Field.WEEKDAY: 4,
}

_FIELD_BOUNDS = {
    Field.MINUTE: (0, 59),
    Field.HOUR: (0, 23),
    Field.DAY: (1, 31),
    Field.MONTH: (1, 12),
    Field.WEEKDAY: (0, 6),
}

_INDEX_TO_FIELD = {v: k for k, v in _FIELD_INDEX.items()}

FIELDS: tuple[Field, ...] = tuple(_INDEX_TO_FIELD[i] for i in range(5))

MONTH_CODES: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# "-sun" closes a range on Sunday, so "sat-sun" reads as 6-7.
WEEKDAY_CODES: dict[str, int] = {
    "-sun": -7,
    "sun": 0,
    "mon": 1,
    "tue": 2,
    "wed": 3,
    "thu": 4,
    "fri": 5,
    "sat": 6,
}

ALIASES: dict[str, str] = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}


def cron_weekday(iso_weekday: int) -> int:
    """Cron weekday number for an ISO weekday (Monday=1 ... Sunday=7)."""
    return iso_weekday % 7


@dataclass(frozen=True, slots=True)
class CronFields:
    """Parsed value-sets of a cron expression.

    `day` and `weekday` hold the values as parsed. Day/weekday resolution is
    applied by `effective_days` and `effective_weekdays`: a bare `*` weekday
    clears the weekday constraint, otherwise a bare `*` day clears the day
    constraint, otherwise both apply with OR.
    """

    minute: tuple[int, ...] = ()
    hour: tuple[int, ...] = ()
    day: tuple[int, ...] = ()
    month: tuple[int, ...] = ()
    weekday: tuple[int, ...] = ()
    day_wildcard: bool = False
    weekday_wildcard: bool = False
    timezone: str | None = field(default=None, compare=False)

    @property
    def effective_days(self) -> tuple[int, ...]:
        if self.weekday_wildcard:
            return self.day
        if self.day_wildcard:
            return ()
        return self.day

    @property
    def effective_weekdays(self) -> tuple[int, ...]:
        if self.weekday_wildcard:
            return ()
        return self.weekday

    @property
    def satisfiable(self) -> bool:
        """True when every field can contribute a value to some instant."""
        if not self.minute or not self.hour or not self.month:
            return False
        return bool(self.effective_days or self.effective_weekdays)

    def values(self, f: Field) -> tuple[int, ...]:
        match f:
            case Field.MINUTE:
                return self.minute
            case Field.HOUR:
                return self.hour
            case Field.DAY:
                return self.effective_days
            case Field.MONTH:
                return self.month
            case Field.WEEKDAY:
                return self.effective_weekdays

    def with_values(self, f: Field, values: tuple[int, ...], wildcard: bool) -> CronFields:
        match f:
            case Field.MINUTE:
                return replace(self, minute=values)
            case Field.HOUR:
                return replace(self, hour=values)
            case Field.DAY:
                return replace(self, day=values, day_wildcard=wildcard)
            case Field.MONTH:
                return replace(self, month=values)
            case Field.WEEKDAY:
                return replace(self, weekday=values, weekday_wildcard=wildcard)

    def with_timezone(self, timezone: str | None) -> CronFields:
        return replace(self, timezone=timezone)


def empty_fields(timezone: str | None = None) -> CronFields:
    return CronFields(timezone=timezone)
