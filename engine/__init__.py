# engine/__init__.py
# ─────────────────────────────
# Init file for the matching engine package
# Exposes core components

from .availability import generate_slots, is_available_for, resolve_day, resolve_range
from .features import build_score_breakdown
from .filters import apply_all_filters
from .matcher import Matcher, rank_candidates

__all__ = [
    "apply_all_filters",
    "build_score_breakdown",
    "generate_slots",
    "is_available_for",
    "Matcher",
    "rank_candidates",
    "resolve_day",
    "resolve_range",
]
