# 📦 engine/features.py
# ─────────────────────────────
# Component scores for a criteria/therapist pair, each in [0, 100]

from typing import List, NamedTuple, Optional, Tuple

from engine.availability import resolve_day, slot_contains
from schemas.schemas import Importance
from utils.errors import ValidationError
from utils.time_utils import parse_time, weekday_name


class ScheduleRequest(NamedTuple):
    windows: List[Tuple[str, str]]
    days: Optional[frozenset]


def parse_schedule_request(criteria, config) -> Optional[ScheduleRequest]:
    """Turn preferred times/days into concrete HH:MM windows.

    A time is either "HH:MM-HH:MM" or a daypart name from the config.
    Returns None when the client stated no schedule preference.
    """
    if not criteria.has_schedule_preference:
        return None

    windows = []
    for raw in criteria.preferred_times or []:
        key = raw.strip().lower()
        if key in config.dayparts:
            part = config.dayparts[key]
            windows.append((part.start, part.end))
            continue
        start, sep, end = key.partition("-")
        if not sep:
            raise ValidationError(f"Invalid preferred time: {raw!r}")
        start, end = parse_time(start.strip()), parse_time(end.strip())
        if start >= end:
            raise ValidationError(f"Invalid preferred time: {raw!r} (start must be before end)")
        windows.append((start, end))

    days = frozenset(criteria.preferred_days) if criteria.preferred_days else None
    return ScheduleRequest(windows=windows, days=days)


def specialization_score(criteria, th, config):
    """Importance-weighted average of proficiency credit per required specialization."""
    required = criteria.required_specializations
    if not required:
        return float(config.no_requirements_score)

    held = {s.specialization_id: s for s in th.specializations}
    total_score = 0.0
    total_weight = 0.0
    missing_critical = False

    for req in required:
        weight = config.importance_weights[req.importance]
        total_weight += weight
        match = held.get(req.specialization_id)
        if match:
            total_score += config.proficiency_scores[match.proficiency_level] * weight
        else:
            total_score += config.missing_credit[req.importance] * weight
            if req.importance == Importance.CRITICAL:
                missing_critical = True

    score = total_score / total_weight if total_weight else 0.0
    if missing_critical:
        score = min(score, config.critical_missing_cap)
    return round(score, 2)


def communication_score(criteria, th, config):
    need = criteria.communication_needs
    if not need:
        return 100.0
    expertise = set(th.communication_expertise)
    if need in expertise:
        return 100.0
    if expertise & set(config.communication_adjacency.get(need, [])):
        return float(config.communication_adjacent_credit)
    return 0.0


def availability_score(schedule, th, overrides, dates, config):
    """Share of requested windows over the lookahead dates the therapist can serve."""
    if schedule is None:
        return float(config.neutral_availability_score)

    requested = 0
    served = 0
    for day in dates:
        if schedule.days and weekday_name(day) not in schedule.days:
            continue
        effective = resolve_day(th.availability, overrides, day)
        if schedule.windows:
            for start, end in schedule.windows:
                requested += 1
                served += slot_contains(effective.slots, start, end)
        else:
            requested += 1
            served += bool(effective.slots)

    # No lookahead date falls on a requested day
    if not requested:
        return float(config.neutral_availability_score)
    return round(100.0 * served / requested, 2)


def age_match_score(criteria, th):
    if not criteria.age_group:
        return 100.0
    return 100.0 if criteria.age_group in th.age_group_expertise else 0.0


def caseload_score(th):
    """Free capacity as a percentage of max caseload."""
    if th.max_caseload <= 0:
        return 0.0
    score = 100.0 * (1 - th.current_caseload / th.max_caseload)
    return round(min(100.0, max(0.0, score)), 2)


# ─────────────────────────────
# Full score breakdown

def build_score_breakdown(criteria, th, config, schedule=None, overrides=(), dates=()):
    """Assemble all five component scores for a criteria/therapist pair."""
    raw_scores = {
        "specialization_score": specialization_score(criteria, th, config),
        "communication_score": communication_score(criteria, th, config),
        "availability_score": availability_score(schedule, th, overrides, dates, config),
        "age_match_score": age_match_score(criteria, th),
        "caseload_score": caseload_score(th),
    }
    return {k: float(v) for k, v in raw_scores.items()}
