from __future__ import annotations

import logging
import re

from ._error import CronError, Span
from ._fields import (
    ALIASES,
    FIELDS,
    MONTH_CODES,
    WEEKDAY_CODES,
    CronFields,
    Field,
    empty_fields,
)

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"\*/(?P<every_step>\d+)"
    r"|(?P<wildcard>\*)"
    r"|(?P<start>\d+)-(?P<end>\d+)(?:/(?P<step>\d+))?"
    r"|(?P<single>\d+)"
)

# Longest codes first so "-sun" wins over "sun".
_MONTH_CODE_RE = re.compile("|".join(sorted(MONTH_CODES, key=len, reverse=True)))
_WEEKDAY_CODE_RE = re.compile("|".join(sorted(WEEKDAY_CODES, key=len, reverse=True)))


# ============================================================================
# parse_expression: full 5-field cron strings (and @ aliases)
# ============================================================================


def parse_expression(cron: str, timezone: str | None = None) -> CronFields:
    """Parse a 5-field cron expression into CronFields."""
    if not isinstance(cron, str):
        raise CronError.argument(f"cron expression must be a string, got {cron!r}")
    text = cron.strip().lower()
    expanded = ALIASES.get(text)
    if expanded is not None:
        logger.debug("expanded alias %s to %r", text, expanded)
        text = expanded

    spans = [Span(m.start(), m.end()) for m in re.finditer(r"\S+", text)]
    if len(spans) != 5:
        raise CronError.syntax(
            f"expected 5 cron fields, got {len(spans)}: {cron!r}",
            input_text=cron,
        )

    fields = empty_fields(timezone)
    for f, span in zip(FIELDS, spans):
        raw = text[span.start : span.end]
        try:
            values, wildcard = parse_field(raw, f)
        except CronError as e:
            raise CronError.syntax(str(e), e.field, e.value, span, text) from None
        fields = fields.with_values(f, values, wildcard)

    return fields


def with_field(fields: CronFields, index: int, text: str) -> CronFields:
    """Replace one field of `fields`, validating it like a full parse."""
    f = Field.from_index(index)
    if f is None:
        raise CronError.argument(f"field index must be 0-4, got {index}")
    if not isinstance(text, str):
        raise CronError.argument(f"{f} field must be a string, got {text!r}")
    values, wildcard = parse_field(text.strip().lower(), f)
    return fields.with_values(f, values, wildcard)


# ============================================================================
# parse_field: one comma-separated field
# ============================================================================


def parse_field(text: str, f: Field) -> tuple[tuple[int, ...], bool]:
    """Parse one field into its sorted value-set and its bare-wildcard flag.

    The flag is only set when the whole field is `*`. A `*` mixed with other
    tokens (`5,*`) expands to the full range as an explicit constraint.
    """
    substituted = _substitute_codes(text.lower(), f)
    values: set[int] = set()

    for token in substituted.split(","):
        m = _TOKEN_RE.fullmatch(token)
        if m is None:
            raise _invalid(f, text)

        if m.group("wildcard") is not None:
            values.update(f.full_range)
        elif m.group("every_step") is not None:
            step = int(m.group("every_step"))
            values.update(_expand_range(f, text, f.minimum, f.maximum, step))
        elif m.group("start") is not None:
            start = int(m.group("start"))
            end = int(m.group("end"))
            step = int(m.group("step")) if m.group("step") is not None else 1
            values.update(_expand_range(f, text, start, end, step))
        else:
            values.add(_parse_single_value(f, text, int(m.group("single"))))

    wildcard = substituted == "*"
    return tuple(sorted(values)), wildcard


def _substitute_codes(text: str, f: Field) -> str:
    match f:
        case Field.MONTH:
            return _MONTH_CODE_RE.sub(lambda m: str(MONTH_CODES[m.group(0)]), text)
        case Field.WEEKDAY:
            return _WEEKDAY_CODE_RE.sub(lambda m: str(WEEKDAY_CODES[m.group(0)]), text)
        case _:
            return text


def _expand_range(f: Field, text: str, start: int, end: int, step: int) -> list[int]:
    """Expand `start-end/step`, normalizing weekday 7 to Sunday."""
    # Weekday ranges may close on 7 so that 6-7 reads as Saturday-Sunday.
    upper = f.maximum + 1 if f is Field.WEEKDAY else f.maximum
    if start >= end or step == 0 or start < f.minimum or end > upper:
        raise _invalid(f, text)

    expanded: list[int] = []
    for n in range(start, end + 1, step):
        expanded.append(0 if f is Field.WEEKDAY and n == 7 else n)
    return expanded


def _parse_single_value(f: Field, text: str, value: int) -> int:
    if f is Field.WEEKDAY and value == 7:
        value = 0
    if value < f.minimum or value > f.maximum:
        raise _invalid(f, text)
    return value


def _invalid(f: Field, text: str) -> CronError:
    return CronError.syntax(
        f"invalid {f} field value {text!r} at position {f.index}",
        field=f.index,
        value=text,
    )
