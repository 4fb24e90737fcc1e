# 📦 engine/matcher.py
# ─────────────────────────────
# Full matching engine for therapist/client pairing

from datetime import date, timedelta

import structlog

from engine import features, filters
from engine.availability import coerce_overrides
from engine.weights import load_matching_config
from schemas.schemas import (
    Importance,
    MatchCriteria,
    MatchDetails,
    MatchResult,
    TherapistProfile,
    coerce,
    MAX_RESULTS_MAX,
    MAX_RESULTS_MIN,
)
from utils.errors import ValidationError
from utils.time_utils import parse_date

log = structlog.get_logger()

# details key -> weights key
FACTORS = {
    "specialization_score": "specialization",
    "availability_score": "availability",
    "communication_score": "communication",
    "age_match_score": "age_match",
    "caseload_score": "caseload",
}


class Matcher:
    """Scores and ranks candidate therapists for one set of client criteria.

    `therapists` may hold TherapistProfile instances or raw records; a record
    that fails validation is skipped. `overrides` maps therapist id to that
    therapist's availability overrides in creation order.
    """

    def __init__(self, criteria, therapists, overrides=None, config=None, reference_date=None):
        self.criteria = coerce(MatchCriteria, criteria)
        self.therapists = therapists or []
        self.overrides = overrides or {}
        self.config = config or self._select_config()
        self.reference_date = parse_date(reference_date) if reference_date else date.today()
        self.schedule = features.parse_schedule_request(self.criteria, self.config)
        self.lookahead = self._lookahead_dates()
        self.skipped = 0
        self.filtered_out = 0

    def _select_config(self):
        """Choose the scoring profile; a single default profile for now."""
        return load_matching_config("default")

    def _lookahead_dates(self):
        if self.schedule is None:
            return []
        days = self.config.lookahead_days[self.criteria.urgency]
        return [self.reference_date + timedelta(days=i) for i in range(days)]

    def run(self, top_n=None):
        limit = self.criteria.max_results if top_n is None else top_n
        if not MAX_RESULTS_MIN <= limit <= MAX_RESULTS_MAX:
            raise ValidationError(f"maxResults must be between {MAX_RESULTS_MIN} and {MAX_RESULTS_MAX}")

        candidates = self._apply_filters()
        if not candidates:
            log.warning("No therapists passed filters", pool=len(self.therapists))
            return []

        scored = []
        for th in candidates:
            result = self._score_candidate(th)
            if result is not None:
                scored.append(result)

        scored.sort(key=lambda m: (-m.match_score, -m.details.caseload_score, m.therapist_id))
        top = scored[:limit]

        log.info(
            "Top matches generated",
            candidates=len(candidates),
            skipped=self.skipped,
            filtered_out=self.filtered_out,
            matches=[(m.therapist_id, m.match_score) for m in top],
        )
        return top

    def explain(self, therapist_id):
        """Per-factor breakdown for one candidate, or None if unknown or filtered out."""
        for th in self._apply_filters():
            if th.id != therapist_id:
                continue
            details = self._score_details(th)
            contributions = self._contributions(details)
            return {
                "therapist_id": th.id,
                "match_score": self._composite(contributions),
                "component_scores": details,
                "weights": self.config.weights.as_dict(),
                "weighted_contributions": contributions,
                "top_factors_by_impact": self._ranked_factors(contributions),
                "match_reasoning": self._build_reasoning(th, details, contributions),
            }
        return None

    def _apply_filters(self):
        """Validate raw records and drop therapists failing a hard filter."""
        self.skipped = 0
        self.filtered_out = 0
        passed = []
        for record in self.therapists:
            try:
                th = coerce(TherapistProfile, record)
            except ValidationError as e:
                self.skipped += 1
                log.warning("Skipping malformed therapist record", error=str(e))
                continue
            if filters.apply_all_filters(th):
                passed.append(th)
            else:
                self.filtered_out += 1
        return passed

    def _score_candidate(self, th):
        try:
            details = self._score_details(th)
        except ValidationError as e:
            self.skipped += 1
            log.warning("Skipping therapist with malformed availability", therapist_id=th.id, error=str(e))
            return None

        contributions = self._contributions(details)
        return MatchResult(
            therapist_id=th.id,
            match_score=self._composite(contributions),
            match_reasoning=self._build_reasoning(th, details, contributions),
            details=MatchDetails(**details),
        )

    def _score_details(self, th):
        overrides = coerce_overrides(self.overrides.get(th.id, []))
        return features.build_score_breakdown(
            self.criteria, th, self.config,
            schedule=self.schedule, overrides=overrides, dates=self.lookahead,
        )

    def _contributions(self, details):
        weights = self.config.weights.as_dict()
        return {k: round(details[k] * weights[w], 2) for k, w in FACTORS.items()}

    def _composite(self, contributions):
        return round(min(100.0, max(0.0, sum(contributions.values()))), 2)

    def _ranked_factors(self, contributions):
        order = list(FACTORS)
        return sorted(order, key=lambda k: (-contributions[k], order.index(k)))

    def _build_reasoning(self, th, details, contributions):
        """Short text from the two factors contributing most to the score."""
        reasons = [self._describe(k, th, details) for k in self._ranked_factors(contributions)[:2]]
        return ". ".join(reasons) + "."

    def _describe(self, factor, th, details):
        cri = self.criteria
        score = details[factor]

        if factor == "specialization_score":
            held = {s.specialization_id for s in th.specializations}
            critical = [r for r in cri.required_specializations if r.importance == Importance.CRITICAL]
            matched = [r.display_name for r in critical if r.specialization_id in held]
            missing = [r.display_name for r in critical if r.specialization_id not in held]
            if missing:
                return f"Missing critical specializations: {', '.join(missing)}"
            if matched:
                return f"Holds critical specializations: {', '.join(matched)}"
            if not cri.required_specializations:
                return "No specialization requirements"
            return f"Specialization match {score:.0f}%"

        if factor == "availability_score":
            if self.schedule is None:
                return "No schedule preference given"
            return f"Available for {score:.0f}% of requested times"

        if factor == "communication_score":
            if not cri.communication_needs:
                return "No specific communication needs"
            if score >= 100:
                return f"Has expertise in {cri.communication_needs} communication"
            if score > 0:
                return f"Related expertise for {cri.communication_needs} communication"
            return f"No expertise in {cri.communication_needs} communication"

        if factor == "age_match_score":
            if not cri.age_group:
                return "No age group requirement"
            if score >= 100:
                return f"Specializes in {cri.age_group} age group"
            return f"No experience with {cri.age_group} age group"

        return f"Accepting new clients with {score:.0f}% capacity free"


def rank_candidates(criteria, candidates, overrides=None, config=None, reference_date=None):
    """Rank candidates for `criteria`; returns at most criteria.max_results MatchResults."""
    matcher = Matcher(criteria, candidates, overrides=overrides, config=config, reference_date=reference_date)
    return matcher.run()
