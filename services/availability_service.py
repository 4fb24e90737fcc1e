# 📦 /services/availability_service.py

from prometheus_client import Counter
import structlog

from engine import availability

log = structlog.get_logger()

AVAILABILITY_LOOKUPS_COUNTER = Counter(
    "therapist_availability_lookups", "Availability lookups by kind", ["kind"]
)


def find_therapist(therapists, therapist_id):
    """Raw record for `therapist_id` from the loaded pool, or None."""
    return next((th for th in therapists if str(_get(th, "id")) == therapist_id), None)


def _get(record, key):
    return record.get(key) if isinstance(record, dict) else getattr(record, key, None)


def _template(record):
    return _get(record, "availability")


def effective_day(record, overrides, day):
    AVAILABILITY_LOOKUPS_COUNTER.labels("day").inc()
    return availability.resolve_day(_template(record), overrides, day)


def effective_range(record, overrides, start_date, end_date):
    AVAILABILITY_LOOKUPS_COUNTER.labels("range").inc()
    days = availability.resolve_range(_template(record), overrides, start_date, end_date)
    log.info("Resolved availability range", therapist_id=str(_get(record, "id")), days=len(days))
    return days


def check(record, overrides, day, start_time, end_time):
    AVAILABILITY_LOOKUPS_COUNTER.labels("check").inc()
    return availability.is_available_for(_template(record), overrides, day, start_time, end_time)


def bookable_slots(record, overrides, day, duration):
    AVAILABILITY_LOOKUPS_COUNTER.labels("slots").inc()
    return availability.generate_slots(_template(record), overrides, day, duration=duration)
