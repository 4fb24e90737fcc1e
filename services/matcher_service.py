# 📦 /services/matcher_service.py

import asyncio

from prometheus_client import Counter

from engine.matcher import Matcher

REQUEST_COUNTER = Counter("therapist_match_requests_total", "Total find-therapists requests made")
MATCHES_RETURNED_COUNTER = Counter("therapist_matches_returned", "Number of matches returned")
FILTERED_OUT_COUNTER = Counter("therapist_matches_filtered_out", "Candidates removed by hard filters")
SKIPPED_RECORDS_COUNTER = Counter("therapist_records_skipped", "Malformed therapist records skipped during ranking")


def _record(matcher):
    if matcher.filtered_out:
        FILTERED_OUT_COUNTER.inc(matcher.filtered_out)
    if matcher.skipped:
        SKIPPED_RECORDS_COUNTER.inc(matcher.skipped)


async def run_matcher(criteria, therapists, overrides=None, reference_date=None):
    REQUEST_COUNTER.inc()
    matcher = Matcher(criteria, therapists, overrides=overrides, reference_date=reference_date)
    matches = await asyncio.to_thread(matcher.run)
    _record(matcher)

    if matches:
        MATCHES_RETURNED_COUNTER.inc(len(matches))
    return matches


async def run_explanation(criteria, therapists, overrides=None, therapist_id=None, reference_date=None):
    matcher = Matcher(criteria, therapists, overrides=overrides, reference_date=reference_date)

    if therapist_id is None:
        matches = await asyncio.to_thread(matcher.run, 1)
        if not matches:
            return None
        therapist_id = matches[0].therapist_id

    return await asyncio.to_thread(matcher.explain, therapist_id)
