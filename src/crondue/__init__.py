from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

from ._cron import parse_expression, parse_field, with_field
from ._display import render, render_field
from ._error import CronError, CronErrorKind, Span
from ._eval import DEFAULT_STEP_BACK, DueCheck
from ._eval import is_due as _is_due
from ._eval import last_due as _last_due
from ._eval import matches as _matches
from ._fields import ALIASES, FIELDS, CronFields, Field, empty_fields
from ._instant import DEFAULT_TIMEZONE, NOW, Instant, timezone_name


class Schedule:
    _data: CronFields

    def __init__(self, data: CronFields) -> None:
        self._data = data

    @classmethod
    def parse(
        cls,
        cron_expr: str,
        timezone: str | tzinfo | datetime | None = None,
    ) -> Schedule:
        return cls(parse_expression(cron_expr, timezone_name(timezone)))

    @classmethod
    def empty(cls, timezone: str | tzinfo | datetime | None = None) -> Schedule:
        """A schedule with no field set; unsatisfiable until every field is given."""
        return cls(empty_fields(timezone_name(timezone)))

    @classmethod
    def validate(cls, cron_expr: str) -> bool:
        if not isinstance(cron_expr, str) or not cron_expr.strip():
            return False
        try:
            parse_expression(cron_expr)
            return True
        except CronError:
            return False

    def with_field(self, index: int, text: str) -> Schedule:
        return Schedule(with_field(self._data, index, text))

    def with_timezone(self, timezone: str | tzinfo | datetime | None) -> Schedule:
        return Schedule(self._data.with_timezone(timezone_name(timezone)))

    def reset(self) -> Schedule:
        """Discard every field, keeping the timezone."""
        return Schedule(empty_fields(self._data.timezone))

    def matches(self, instant: Instant) -> bool:
        return _matches(self._data, instant)

    def last_due(
        self,
        reference: Instant = NOW,
        step_back: timedelta | None = DEFAULT_STEP_BACK,
    ) -> datetime | None:
        """Most recent matching instant at or before `reference - step_back`.

        Raises CronError (kind "unsatisfiable") when a field has no values.
        Returns None if no calendar date satisfies the day and month fields.
        """
        return _last_due(self._data, reference, step_back)

    def is_due(
        self,
        now: Instant = NOW,
        last_checked: Instant | None = None,
        *,
        detailed: bool = False,
        strict: bool = False,
    ) -> bool | DueCheck:
        """Whether the schedule is due at `now`.

        With `last_checked`, a due instant missed since that time also counts,
        which suits callers that do not poll exactly once a minute. `detailed`
        returns a DueCheck carrying the normalized `now` and the matched
        instant instead of a bool.
        """
        result = _is_due(self._data, now, last_checked, strict)
        return result if detailed else result.due

    def to_cron(self) -> str | None:
        return render(self._data)

    def field_text(self, index: int | Field) -> str | None:
        """Canonical text of one field, or None while that field has no values."""
        f = index if isinstance(index, Field) else Field.from_index(index)
        if f is None:
            raise CronError.argument(f"field index must be 0-4, got {index}")
        return render_field(self._data, f)

    def __str__(self) -> str:
        return render(self._data) or ""

    def __repr__(self) -> str:
        return f"Schedule({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schedule):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    @property
    def timezone(self) -> str | None:
        return self._data.timezone

    @property
    def satisfiable(self) -> bool:
        return self._data.satisfiable

    @property
    def minutes(self) -> tuple[int, ...]:
        return self._data.minute

    @property
    def hours(self) -> tuple[int, ...]:
        return self._data.hour

    @property
    def days(self) -> tuple[int, ...]:
        return self._data.effective_days

    @property
    def months(self) -> tuple[int, ...]:
        return self._data.month

    @property
    def weekdays(self) -> tuple[int, ...]:
        return self._data.effective_weekdays

    @property
    def fields(self) -> CronFields:
        return self._data


__all__ = [
    "Schedule",
    "CronError",
    "CronErrorKind",
    "Span",
    "CronFields",
    "DueCheck",
    "Field",
    "FIELDS",
    "ALIASES",
    "NOW",
    "DEFAULT_STEP_BACK",
    "DEFAULT_TIMEZONE",
    "parse_field",
]
