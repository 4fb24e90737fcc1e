# 📦 engine/availability.py
# ─────────────────────────────
# Availability resolver: weekly template + date-bounded overrides
#
# All functions are pure. Overrides are applied in the order the caller
# passes them, which must be creation order: a later AVAILABLE override may
# re-open time that an earlier UNAVAILABLE or BLOCKED override closed.

from typing import Iterable, List, Optional

from schemas.schemas import (
    AvailabilityOverride,
    AvailabilityType,
    EffectiveDayAvailability,
    TimeSlot,
    WeeklyTemplate,
    coerce,
)
from utils.errors import ValidationError
from utils.time_utils import (
    format_date,
    from_minutes,
    iter_dates,
    parse_date,
    parse_time,
    to_minutes,
    weekday_name,
)

MAX_RANGE_DAYS = 366
MIN_SLOT_MINUTES = 15
MAX_SLOT_MINUTES = 480

SUBTRACTIVE_TYPES = {AvailabilityType.UNAVAILABLE, AvailabilityType.TIME_OFF}


def coerce_template(template) -> Optional[WeeklyTemplate]:
    if template is None:
        return None
    return coerce(WeeklyTemplate, template)


def coerce_overrides(overrides) -> List[AvailabilityOverride]:
    return [coerce(AvailabilityOverride, o) for o in overrides or []]


def filter_overlapping_slots(slots: List[TimeSlot], start: str, end: str) -> List[TimeSlot]:
    """Drop every slot overlapping [start, end). Slots are never split."""
    return [s for s in slots if s.end <= start or s.start >= end]


def slots_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    return start1 < end2 and start2 < end1


def slot_contains(slots: Iterable[TimeSlot], start: str, end: str) -> bool:
    """True if a single slot fully contains [start, end)."""
    return any(s.start <= start and end <= s.end for s in slots)


def resolve_day(template, overrides, day) -> EffectiveDayAvailability:
    """Effective open intervals for one date.

    `overrides` may contain entries for other dates; only those whose
    [start_date, end_date] contains `day` are applied.
    """
    current = parse_date(day)
    template = coerce_template(template)
    weekday = weekday_name(current)

    slots = [s.model_copy() for s in template.slots_for(weekday)] if template else []
    is_available = bool(slots)
    applied = []

    for override in coerce_overrides(overrides):
        if not override.covers(current):
            continue
        applied.append(override)
        kind = override.availability_type

        if kind in SUBTRACTIVE_TYPES:
            if override.whole_day:
                slots = []
                is_available = False
            else:
                slots = filter_overlapping_slots(slots, override.start_time, override.end_time)
        elif kind == AvailabilityType.AVAILABLE:
            if not override.whole_day:
                slots.append(TimeSlot(start=override.start_time, end=override.end_time))
            is_available = True
        elif kind == AvailabilityType.BLOCKED:
            # Never touches is_available, even when nothing is left open
            if override.whole_day:
                slots = []
            else:
                slots = filter_overlapping_slots(slots, override.start_time, override.end_time)

    slots.sort(key=lambda s: s.start)

    return EffectiveDayAvailability(
        date=format_date(current),
        weekday=weekday,
        is_available=is_available,
        slots=slots,
        overrides_applied=applied,
    )


def resolve_range(template, overrides, start_date, end_date) -> List[EffectiveDayAvailability]:
    """One resolve_day per calendar date, inclusive on both ends."""
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start > end:
        raise ValidationError(f"start_date {start} is after end_date {end}")
    if (end - start).days + 1 > MAX_RANGE_DAYS:
        raise ValidationError(f"Date range exceeds {MAX_RANGE_DAYS} days")

    template = coerce_template(template)
    overrides = coerce_overrides(overrides)
    return [resolve_day(template, overrides, day) for day in iter_dates(start, end)]


def is_available_for(template, overrides, day, start, end) -> bool:
    """True iff one effective slot on `day` fully contains [start, end)."""
    start, end = parse_time(start), parse_time(end)
    if start >= end:
        raise ValidationError(f"start {start} must be before end {end}")
    return slot_contains(resolve_day(template, overrides, day).slots, start, end)


def generate_slots(template, overrides, day, duration: int = 60, booked=None) -> List[TimeSlot]:
    """Cut the effective availability of `day` into bookable fixed-length slots.

    A trailing remainder shorter than `duration` is dropped, as is any slot
    overlapping one of the `booked` intervals.
    """
    if not isinstance(duration, int) or not MIN_SLOT_MINUTES <= duration <= MAX_SLOT_MINUTES:
        raise ValidationError(
            f"Slot duration must be between {MIN_SLOT_MINUTES} and {MAX_SLOT_MINUTES} minutes"
        )
    booked = [coerce(TimeSlot, b) for b in booked or []]
    effective = resolve_day(template, overrides, day)
    if not effective.is_available:
        return []

    seen = set()
    result = []
    for window in effective.slots:
        cursor, limit = to_minutes(window.start), to_minutes(window.end)
        while cursor + duration <= limit:
            start, end = from_minutes(cursor), from_minutes(cursor + duration)
            cursor += duration
            if (start, end) in seen:
                continue
            if any(slots_overlap(start, end, b.start, b.end) for b in booked):
                continue
            seen.add((start, end))
            result.append(TimeSlot(start=start, end=end))

    result.sort(key=lambda s: (s.start, s.end))
    return result
