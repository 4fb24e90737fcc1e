# 📦 tests/test_availability.py

import copy

import pytest

from engine.availability import (
    filter_overlapping_slots,
    is_available_for,
    resolve_day,
    resolve_range,
)
from schemas.schemas import TimeSlot, WeeklyTemplate
from tests.utils.dummies import MONDAY, NEXT_MONDAY, TUESDAY, make_override, make_override_row, make_template
from utils.errors import ValidationError


def _slots(day):
    return [(s.start, s.end) for s in day.slots]

# ---------------------- Scenarios ----------------------

def test_template_only_monday():
    day = resolve_day(make_template(), [], MONDAY)
    assert day.weekday == "monday"
    assert day.date == MONDAY
    assert day.is_available is True
    assert _slots(day) == [("09:00", "12:00")]
    assert day.overrides_applied == []


def test_full_day_unavailable_clears_day():
    day = resolve_day(make_template(), [make_override("unavailable")], MONDAY)
    assert day.is_available is False
    assert day.slots == []
    assert len(day.overrides_applied) == 1


def test_blocked_window_drops_whole_overlapping_slot():
    day = resolve_day(make_template(), [make_override("blocked", start_time="10:00", end_time="11:00")], MONDAY)
    assert day.slots == []
    # BLOCKED never touches is_available
    assert day.is_available is True


def test_whole_day_blocked_keeps_is_available():
    day = resolve_day(make_template(), [make_override("blocked")], MONDAY)
    assert day.slots == []
    assert day.is_available is True

# ---------------------- Override semantics ----------------------

@pytest.mark.parametrize("kind", ["unavailable", "time_off", "UNAVAILABLE", "TIME_OFF"])
def test_full_day_time_off_ignores_template(kind):
    template = make_template(
        monday=[{"start": "08:00", "end": "10:00"}, {"start": "13:00", "end": "18:00"}],
    )
    day = resolve_day(template, [make_override(kind)], MONDAY)
    assert day.is_available is False
    assert day.slots == []


def test_windowed_time_off_keeps_adjacent_slots():
    template = make_template(monday=[
        {"start": "09:00", "end": "10:00"},
        {"start": "10:00", "end": "11:00"},
        {"start": "11:00", "end": "12:00"},
    ])
    day = resolve_day(template, [make_override("time_off", start_time="10:00", end_time="11:00")], MONDAY)
    assert _slots(day) == [("09:00", "10:00"), ("11:00", "12:00")]
    assert day.is_available is True


def test_filter_overlapping_slots_removes_partial_overlaps():
    slots = [TimeSlot(start="09:00", end="10:00"), TimeSlot(start="10:00", end="11:00"), TimeSlot(start="11:00", end="12:00")]
    kept = filter_overlapping_slots(slots, "09:30", "10:30")
    assert [(s.start, s.end) for s in kept] == [("11:00", "12:00")]


def test_available_opens_empty_template_day():
    day = resolve_day(make_template(), [make_override("available", TUESDAY, start_time="07:00", end_time="09:00")], TUESDAY)
    assert day.weekday == "tuesday"
    assert day.is_available is True
    assert _slots(day) == [("07:00", "09:00")]


def test_available_without_window_only_flips_flag():
    day = resolve_day(make_template(), [make_override("available", TUESDAY)], TUESDAY)
    assert day.is_available is True
    assert day.slots == []


def test_later_available_reopens_time_closed_earlier():
    overrides = [
        make_override("unavailable"),
        make_override("available", start_time="14:00", end_time="16:00"),
    ]
    day = resolve_day(make_template(), overrides, MONDAY)
    assert day.is_available is True
    assert _slots(day) == [("14:00", "16:00")]


def test_override_order_is_significant():
    overrides = [
        make_override("available", start_time="14:00", end_time="16:00"),
        make_override("unavailable"),
    ]
    day = resolve_day(make_template(), overrides, MONDAY)
    assert day.is_available is False
    assert day.slots == []


def test_overlapping_available_slots_are_not_merged():
    overrides = [
        make_override("available", start_time="11:00", end_time="13:00"),
        make_override("available", start_time="07:00", end_time="08:00"),
    ]
    day = resolve_day(make_template(), overrides, MONDAY)
    assert _slots(day) == [("07:00", "08:00"), ("09:00", "12:00"), ("11:00", "13:00")]


def test_overrides_for_other_dates_are_ignored():
    overrides = [
        make_override("unavailable", TUESDAY),
        make_override("blocked", NEXT_MONDAY, start_time="09:00", end_time="10:00"),
    ]
    day = resolve_day(make_template(), overrides, MONDAY)
    assert _slots(day) == [("09:00", "12:00")]
    assert day.overrides_applied == []


def test_multi_day_override_covers_inclusive_range():
    override = make_override("time_off", "2025-01-10", "2025-01-13")
    assert resolve_day(make_template(), [override], MONDAY).is_available is False
    assert resolve_day(make_template(), [override], NEXT_MONDAY).is_available is True

# ---------------------- Properties ----------------------

def test_slots_sorted_and_well_formed():
    template = make_template(monday=[{"start": "15:00", "end": "17:00"}, {"start": "08:00", "end": "09:00"}])
    overrides = [make_override("available", start_time="12:00", end_time="13:00")]
    day = resolve_day(template, overrides, MONDAY)
    starts = [s.start for s in day.slots]
    assert starts == sorted(starts)
    assert all(s.start < s.end for s in day.slots)


def test_resolve_day_is_pure():
    template = make_template()
    overrides = [make_override("blocked", start_time="09:00", end_time="09:30")]
    before = copy.deepcopy((template, overrides))
    first = resolve_day(template, overrides, MONDAY)
    second = resolve_day(template, overrides, MONDAY)
    assert first == second
    assert (template, overrides) == before


def test_accepts_models_and_snake_case_records():
    template = WeeklyTemplate.model_validate(make_template())
    override = {
        "therapist_id": "t1",
        "start_date": MONDAY,
        "end_date": MONDAY,
        "availability_type": "unavailable",
    }
    assert resolve_day(template, [override], MONDAY).is_available is False


def test_database_rows_with_seconds_are_normalized():
    template = make_template(monday=[
        {"start": "09:00", "end": "10:00"},
        {"start": "10:00", "end": "11:00"},
        {"start": "11:00", "end": "12:00"},
    ])
    row = make_override_row("time_off", start_time="10:00:00", end_time="11:00:00")
    day = resolve_day(template, [row], MONDAY)
    assert _slots(day) == [("09:00", "10:00"), ("11:00", "12:00")]
    applied = day.overrides_applied[0]
    assert (applied.start_time, applied.end_time) == ("10:00", "11:00")


def test_database_row_without_window_applies_whole_day():
    day = resolve_day(make_template(), [make_override_row("unavailable")], MONDAY)
    assert day.is_available is False
    assert day.slots == []


def test_no_template_means_unavailable():
    day = resolve_day(None, [], MONDAY)
    assert day.is_available is False
    assert day.slots == []

# ---------------------- Validation ----------------------

@pytest.mark.parametrize("bad", ["2025-1-13", "13/01/2025", "2025-02-30", "", None])
def test_malformed_date_raises(bad):
    with pytest.raises(ValidationError):
        resolve_day(make_template(), [], bad)


@pytest.mark.parametrize("slot", [
    {"start": "9:00", "end": "12:00"},
    {"start": "09:00", "end": "24:00"},
    {"start": "09:00:7", "end": "12:00"},
    {"start": "12:00", "end": "09:00"},
])
def test_malformed_template_raises(slot):
    with pytest.raises(ValidationError):
        resolve_day({"monday": [slot]}, [], MONDAY)


def test_malformed_override_raises():
    with pytest.raises(ValidationError):
        resolve_day(make_template(), [make_override("unavailable", TUESDAY, MONDAY)], MONDAY)
    with pytest.raises(ValidationError):
        resolve_day(make_template(), [make_override("vacation")], MONDAY)
    with pytest.raises(ValidationError):
        resolve_day(make_template(), [{**make_override("blocked"), "startTime": "10:00"}], MONDAY)

# ---------------------- Range ----------------------

def test_resolve_range_covers_every_day():
    days = resolve_range(make_template(), [make_override("unavailable", NEXT_MONDAY)], MONDAY, NEXT_MONDAY)
    assert [d.date for d in days][0] == MONDAY
    assert len(days) == 8
    assert [d.weekday for d in days][:2] == ["monday", "tuesday"]
    assert days[0].is_available is True
    assert all(not d.is_available for d in days[1:])


def test_resolve_range_single_day():
    days = resolve_range(make_template(), [], MONDAY, MONDAY)
    assert len(days) == 1


def test_resolve_range_rejects_reversed_or_bad_dates():
    with pytest.raises(ValidationError):
        resolve_range(make_template(), [], NEXT_MONDAY, MONDAY)
    with pytest.raises(ValidationError):
        resolve_range(make_template(), [], MONDAY, "2025-13-01")
    with pytest.raises(ValidationError):
        resolve_range(make_template(), [], "2025-01-01", "2027-01-01")

# ---------------------- Point checks ----------------------

@pytest.mark.parametrize("start,end,expected", [
    ("09:00", "10:00", True),
    ("09:00", "12:00", True),
    ("11:30", "12:30", False),
    ("08:30", "09:30", False),
    ("13:00", "14:00", False),
])
def test_is_available_for_requires_full_containment(start, end, expected):
    assert is_available_for(make_template(), [], MONDAY, start, end) is expected


def test_is_available_for_respects_overrides():
    overrides = [make_override("time_off")]
    assert is_available_for(make_template(), overrides, MONDAY, "09:00", "10:00") is False
    assert is_available_for(make_template(), [], TUESDAY, "09:00", "10:00") is False


def test_is_available_for_rejects_bad_times():
    with pytest.raises(ValidationError):
        is_available_for(make_template(), [], MONDAY, "9am", "10:00")
    with pytest.raises(ValidationError):
        is_available_for(make_template(), [], MONDAY, "10:00", "10:00")
