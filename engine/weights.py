# 📦 engine/weights.py
# ─────────────────────────────
# Scoring policy loaded from config/weights.yml

from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, Field, model_validator
import structlog
import yaml

from schemas.schemas import Importance, Proficiency, TimeSlot, Urgency

config_path = Path(__file__).resolve().parent.parent / "config" / "weights.yml"
with open(config_path, "r") as f:
    CONFIG_WEIGHTS = yaml.safe_load(f)

log = structlog.get_logger()


class ScoringWeights(BaseModel):
    specialization: float = Field(ge=0)
    availability: float = Field(ge=0)
    communication: float = Field(ge=0)
    age_match: float = Field(ge=0)
    caseload: float = Field(ge=0)

    @model_validator(mode="after")
    def _check_total(self):
        total = sum(self.as_dict().values())
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"scoring weights must sum to 1.0, got {total:.4f}")
        return self

    def as_dict(self) -> Dict[str, float]:
        return self.model_dump()


class MatchingConfig(BaseModel):
    weights: ScoringWeights
    importance_weights: Dict[Importance, float]
    proficiency_scores: Dict[Proficiency, float]
    missing_credit: Dict[Importance, float]
    critical_missing_cap: float = Field(ge=0, le=100)
    no_requirements_score: float = Field(ge=0, le=100)
    communication_adjacent_credit: float = Field(ge=0, le=100)
    communication_adjacency: Dict[str, List[str]] = {}
    neutral_availability_score: float = Field(ge=0, le=100)
    lookahead_days: Dict[Urgency, int]
    dayparts: Dict[str, TimeSlot] = {}

    @model_validator(mode="after")
    def _check_tiers(self):
        for name, mapping, enum in (
            ("importance_weights", self.importance_weights, Importance),
            ("missing_credit", self.missing_credit, Importance),
            ("proficiency_scores", self.proficiency_scores, Proficiency),
            ("lookahead_days", self.lookahead_days, Urgency),
        ):
            missing = [member.value for member in enum if member not in mapping]
            if missing:
                raise ValueError(f"{name} is missing {missing}")
        if any(days < 1 for days in self.lookahead_days.values()):
            raise ValueError("lookahead_days must be positive")
        return self


def load_matching_config(profile: str = "default") -> MatchingConfig:
    """Validate one profile from weights.yml into a MatchingConfig."""
    raw = CONFIG_WEIGHTS.get(profile)
    if raw is None:
        log.warning("Unknown weights profile, using default", profile=profile)
        raw = CONFIG_WEIGHTS["default"]
    return MatchingConfig.model_validate(raw)
