# 📦 /schemas/schemas.py

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from utils.errors import ValidationError
from utils.time_utils import parse_date, parse_time, parse_weekday, WEEKDAYS

MAX_RESULTS_MIN = 1
MAX_RESULTS_MAX = 20
MAX_RESULTS_DEFAULT = 5


def coerce(model, value):
    """Return `value` as an instance of `model`, raising ValidationError on bad input."""
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {model.__name__}: {e}") from e


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire; both accepted on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─────────────────────────────
# Availability

class TimeSlot(CamelModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _check_time(cls, v):
        return parse_time(v)

    @model_validator(mode="after")
    def _check_order(self):
        if self.start >= self.end:
            raise ValueError(f"slot start {self.start} must be before end {self.end}")
        return self


class WeeklyTemplate(CamelModel):
    monday: Optional[List[TimeSlot]] = None
    tuesday: Optional[List[TimeSlot]] = None
    wednesday: Optional[List[TimeSlot]] = None
    thursday: Optional[List[TimeSlot]] = None
    friday: Optional[List[TimeSlot]] = None
    saturday: Optional[List[TimeSlot]] = None
    sunday: Optional[List[TimeSlot]] = None

    def slots_for(self, weekday: str) -> List[TimeSlot]:
        if weekday not in WEEKDAYS:
            raise ValidationError(f"Invalid weekday: {weekday!r}")
        return list(getattr(self, weekday) or [])


class AvailabilityType(str, Enum):
    AVAILABLE = "available"        # special hours outside the template
    UNAVAILABLE = "unavailable"    # PTO
    BLOCKED = "blocked"            # meetings, trainings
    TIME_OFF = "time_off"


class AvailabilityOverride(CamelModel):
    id: Optional[str] = None
    therapist_id: str
    start_date: str
    end_date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    availability_type: AvailabilityType = Field(
        validation_alias=AliasChoices("type", "availabilityType", "availability_type"),
        serialization_alias="type",
    )
    reason: Optional[str] = Field(None, max_length=100)
    created_at: Optional[datetime] = None

    @field_validator("availability_type", mode="before")
    @classmethod
    def _lower_type(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator("start_date", "end_date")
    @classmethod
    def _check_date(cls, v):
        parse_date(v)
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_time(cls, v):
        return None if v is None else parse_time(v)

    @model_validator(mode="after")
    def _check_window(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.start_time is not None and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

    @property
    def whole_day(self) -> bool:
        return self.start_time is None

    def covers(self, day) -> bool:
        return self.start_date <= parse_date(day).isoformat() <= self.end_date


class EffectiveDayAvailability(CamelModel):
    date: str
    weekday: str
    is_available: bool
    slots: List[TimeSlot]
    overrides_applied: List[AvailabilityOverride] = []


# ─────────────────────────────
# Therapists

class Proficiency(str, Enum):
    FAMILIAR = "familiar"
    PROFICIENT = "proficient"
    EXPERT = "expert"


class TherapistSpecialization(CamelModel):
    specialization_id: str
    specialization_name: Optional[str] = None
    proficiency_level: Proficiency = Field(
        validation_alias=AliasChoices("proficiencyLevel", "proficiency_level", "proficiency"),
        serialization_alias="proficiencyLevel",
    )
    years_experience: Optional[int] = None


class TherapistProfile(CamelModel):
    """Read-only therapist record as handed to the matching engine."""
    id: str
    specializations: List[TherapistSpecialization] = []
    languages: List[str] = []
    age_group_expertise: List[str] = []
    communication_expertise: List[str] = []
    current_caseload: int = Field(0, ge=0)
    max_caseload: int = 25
    is_accepting_new_clients: bool = True
    availability: Optional[WeeklyTemplate] = None

    @field_validator("specializations", "languages", "age_group_expertise", "communication_expertise", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else v

    @field_validator("current_caseload", "max_caseload", "is_accepting_new_clients", mode="before")
    @classmethod
    def _none_as_default(cls, v, info):
        if v is None:
            return cls.model_fields[info.field_name].default
        return v


# ─────────────────────────────
# Matching input

class Importance(str, Enum):
    CRITICAL = "critical"
    PREFERRED = "preferred"
    NICE_TO_HAVE = "nice_to_have"


class Urgency(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    STANDARD = "standard"
    LOW = "low"


class RequiredSpecialization(CamelModel):
    specialization_id: str
    specialization_name: Optional[str] = None
    importance: Importance

    @property
    def display_name(self) -> str:
        return self.specialization_name or self.specialization_id


class MatchCriteria(CamelModel):
    required_specializations: List[RequiredSpecialization]
    communication_needs: Optional[str] = None
    age_group: Optional[str] = None
    preferred_times: Optional[List[str]] = None
    preferred_days: Optional[List[str]] = None
    urgency: Urgency = Urgency.STANDARD
    max_results: int = Field(MAX_RESULTS_DEFAULT, ge=MAX_RESULTS_MIN, le=MAX_RESULTS_MAX)

    @field_validator("preferred_days")
    @classmethod
    def _check_days(cls, v):
        return None if v is None else [parse_weekday(d) for d in v]

    @property
    def has_schedule_preference(self) -> bool:
        return bool(self.preferred_times) or bool(self.preferred_days)

    @classmethod
    def from_client_needs(cls, need: dict, age_group: Optional[str] = None) -> "MatchCriteria":
        """Build criteria from a stored client-needs record.

        Stored JSON columns are not trusted: an invalid specialization list
        becomes empty, invalid schedule preferences are dropped and an unknown
        urgency falls back to standard.
        """
        try:
            required = [RequiredSpecialization.model_validate(r) for r in need.get("requiredSpecializations") or []]
        except (PydanticValidationError, TypeError):
            required = []

        prefs = need.get("schedulePreferences")
        times = days = None
        if isinstance(prefs, dict):
            raw_times = prefs.get("preferredTimes")
            if isinstance(raw_times, list) and all(isinstance(t, str) for t in raw_times):
                times = raw_times
            raw_days = prefs.get("preferredDays")
            if isinstance(raw_days, list):
                try:
                    days = [parse_weekday(d) for d in raw_days]
                except ValidationError:
                    days = None

        urgency = need.get("urgencyLevel")
        if urgency not in {u.value for u in Urgency}:
            urgency = Urgency.STANDARD.value

        return cls(
            required_specializations=required,
            communication_needs=need.get("communicationNeeds") or None,
            age_group=age_group,
            preferred_times=times or None,
            preferred_days=days or None,
            urgency=urgency,
        )


# ─────────────────────────────
# Matching output

class MatchDetails(CamelModel):
    specialization_score: float = Field(ge=0, le=100)
    communication_score: float = Field(ge=0, le=100)
    availability_score: float = Field(ge=0, le=100)
    age_match_score: float = Field(ge=0, le=100)
    caseload_score: float = Field(ge=0, le=100)


class MatchResult(CamelModel):
    therapist_id: str
    match_score: float = Field(ge=0, le=100)
    match_reasoning: str
    details: MatchDetails


class FindTherapistsResponse(CamelModel):
    matches: List[MatchResult]
    total_matches: int


class AvailabilityCheckResponse(CamelModel):
    therapist_id: str
    date: str
    start_time: str
    end_time: str
    available: bool


class ListResponse(BaseModel):
    status: str
    data: list


class ExplainResponse(BaseModel):
    status: str
    data: dict


class HealthCheckResponse(BaseModel):
    status: str
    message: str
    version: str


class ErrorResponse(BaseModel):
    status: str
    message: str
    info: Optional[str | dict] = None
