from __future__ import annotations

from ._fields import FIELDS, CronFields, Field


def render(fields: CronFields) -> str | None:
    """Canonical cron text for `fields`, or None when unsatisfiable."""
    if not fields.satisfiable:
        return None

    parts: list[str] = []
    for f in FIELDS:
        part = render_field(fields, f)
        if part is None:
            return None
        parts.append(part)
    return " ".join(parts)


def render_field(fields: CronFields, f: Field) -> str | None:
    """Cron text for one field of `fields`, or None when the field has no values."""
    values = fields.values(f)
    count = len(values)

    explicit_pair = False
    if f in (Field.DAY, Field.WEEKDAY):
        other = fields.values(Field.WEEKDAY if f is Field.DAY else Field.DAY)
        if count == 0 and not other:
            return None
        if count == 0:
            return "*"
        if not other and count == f.size:
            # A full weekday set only survives when the day field was a bare *.
            return "*" if f is Field.DAY else f"{f.minimum}-{f.maximum}"
        explicit_pair = bool(other)
    elif count == f.size:
        return "*"
    elif count == 0:
        return None

    if count == 1:
        return str(values[0])
    if count > 2:
        step = _progression_step(values)
        if step is not None:
            return _render_progression(f, values, step, explicit_pair)
    return ",".join(str(v) for v in values)


def _progression_step(values: tuple[int, ...]) -> int | None:
    """Common difference of `values`, or None when they are not evenly spaced."""
    step = values[1] - values[0]
    for a, b in zip(values[1:], values[2:]):
        if b - a != step:
            return None
    return step


def _render_progression(
    f: Field, values: tuple[int, ...], step: int, explicit_pair: bool
) -> str:
    start, end = values[0], values[-1]
    suffix = "" if step == 1 else f"/{step}"
    # A bare * on one day field would turn an OR constraint into a wildcard.
    spans_range = start == f.minimum and end + step > f.maximum
    if spans_range and not (explicit_pair and step == 1):
        return f"*{suffix}"
    return f"{start}-{end}{suffix}"
