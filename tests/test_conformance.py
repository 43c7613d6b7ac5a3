"""Conformance test runner — drives all tests from fixtures/cases.json."""

from __future__ import annotations

from datetime import timedelta

import pytest

from crondue import CronError, Schedule
from tests.conftest import load_fixture

_cases = load_fixture("cases.json")


# ===========================================================================
# Parse conformance
# ===========================================================================

_PARSE_SECTIONS = [
    "wildcards",
    "aliases",
    "progressions",
    "names",
    "day_and_weekday",
]


def _collect_parse_tests() -> list[tuple[str, str, str]]:
    tests: list[tuple[str, str, str]] = []
    for section in _PARSE_SECTIONS:
        for tc in _cases["parse"][section]["tests"]:
            name = tc.get("name", tc["input"])
            tests.append((f"{section}/{name}", tc["input"], tc["canonical"]))
    return tests


_PARSE_TESTS = _collect_parse_tests()
_PARSE_IDS = [t[0] for t in _PARSE_TESTS]


@pytest.mark.parametrize("name,input_text,canonical", _PARSE_TESTS, ids=_PARSE_IDS)
def test_parse_roundtrip(name: str, input_text: str, canonical: str) -> None:
    schedule = Schedule.parse(input_text)
    assert schedule.to_cron() == canonical
    assert Schedule.validate(input_text) is True

    # Idempotency: parse(canonical).to_cron() == canonical
    s2 = Schedule.parse(canonical)
    assert s2.to_cron() == canonical
    assert (s2.minutes, s2.hours, s2.days, s2.months, s2.weekdays) == (
        schedule.minutes,
        schedule.hours,
        schedule.days,
        schedule.months,
        schedule.weekdays,
    )


_PARSE_ERROR_TESTS = [
    (tc.get("name", tc["input"]), tc["input"], tc.get("field"))
    for tc in _cases["parse_errors"]["tests"]
]
_PARSE_ERROR_IDS = [t[0] for t in _PARSE_ERROR_TESTS]


@pytest.mark.parametrize("name,input_text,field", _PARSE_ERROR_TESTS, ids=_PARSE_ERROR_IDS)
def test_parse_errors(name: str, input_text: str, field: int | None) -> None:
    with pytest.raises(CronError) as exc_info:
        Schedule.parse(input_text)
    assert exc_info.value.kind == "syntax"
    assert exc_info.value.field == field
    assert Schedule.validate(input_text) is False


# ===========================================================================
# Match conformance
# ===========================================================================

_MATCH_TESTS = [(tc["name"], tc) for tc in _cases["matches"]["tests"]]


@pytest.mark.parametrize("name,tc", _MATCH_TESTS, ids=[t[0] for t in _MATCH_TESTS])
def test_matches(name: str, tc: dict) -> None:  # type: ignore[type-arg]
    schedule = Schedule.parse(tc["cron"], tc.get("timezone"))
    assert schedule.matches(tc["at"]) is tc["expected"]


# ===========================================================================
# Last due conformance
# ===========================================================================

_LAST_DUE_TESTS = [(tc["name"], tc) for tc in _cases["last_due"]["tests"]]


@pytest.mark.parametrize("name,tc", _LAST_DUE_TESTS, ids=[t[0] for t in _LAST_DUE_TESTS])
def test_last_due(name: str, tc: dict) -> None:  # type: ignore[type-arg]
    schedule = Schedule.parse(tc["cron"], tc.get("timezone"))
    kwargs = {}
    if "step_back_minutes" in tc:
        kwargs["step_back"] = timedelta(minutes=tc["step_back_minutes"])

    result = schedule.last_due(tc["reference"], **kwargs)

    if tc["expected"] is None:
        assert result is None
    else:
        assert result is not None
        assert result.isoformat() == tc["expected"]
        assert schedule.matches(result)
        # Pure: a second call gives the same answer
        assert schedule.last_due(tc["reference"], **kwargs) == result


# ===========================================================================
# Due conformance
# ===========================================================================

_IS_DUE_TESTS = [(tc["name"], tc) for tc in _cases["is_due"]["tests"]]


@pytest.mark.parametrize("name,tc", _IS_DUE_TESTS, ids=[t[0] for t in _IS_DUE_TESTS])
def test_is_due(name: str, tc: dict) -> None:  # type: ignore[type-arg]
    schedule = Schedule.parse(tc["cron"])
    assert schedule.is_due(tc["now"], tc["last_checked"]) is tc["expected"]
