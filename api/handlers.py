from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from schemas.schemas import (
    AvailabilityCheckResponse,
    EffectiveDayAvailability,
    ErrorResponse,
    ExplainResponse,
    FindTherapistsResponse,
    HealthCheckResponse,
    ListResponse,
    MatchCriteria,
)
from services import availability_service
from services.matcher_service import run_explanation, run_matcher
from utils.errors import ValidationError

log = structlog.get_logger()

router = APIRouter()

# Candidate pool and overrides (therapist id -> creation-ordered list), loaded at startup
THERAPISTS = []
OVERRIDES = {}

VERSION = "1.0.0"


def _error(status_code: int, message: str, info=None):
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(status="error", message=message, info=info).model_dump(),
    )


def _therapist_or_404(therapist_id: str):
    record = availability_service.find_therapist(THERAPISTS, therapist_id)
    if record is None:
        return None, _error(404, f"Therapist {therapist_id} not found.")
    return record, None


@router.get("/", response_model=HealthCheckResponse)
async def healthcheck():
    return HealthCheckResponse(
        status="ok",
        message="Therapist matching engine live",
        version=VERSION,
    )


# ─────────────────────────────
# Matching

@router.post("/matching/find-therapists", response_model=FindTherapistsResponse, responses={400: {"model": ErrorResponse}})
async def find_therapists(criteria: MatchCriteria, reference_date: Optional[str] = None):
    try:
        matches = await run_matcher(criteria, THERAPISTS, OVERRIDES, reference_date=reference_date)
    except ValidationError as e:
        log.warning("Rejected match criteria", error=str(e))
        return _error(400, "Invalid match criteria.", str(e))

    return FindTherapistsResponse(matches=matches, total_matches=len(matches))


@router.post("/matching/explain", response_model=ExplainResponse, responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def explain(criteria: MatchCriteria, therapist_id: Optional[str] = None, reference_date: Optional[str] = None):
    try:
        explanation = await run_explanation(
            criteria, THERAPISTS, OVERRIDES, therapist_id=therapist_id, reference_date=reference_date
        )
    except ValidationError as e:
        return _error(400, "Invalid match criteria.", str(e))

    if not explanation:
        return _error(404, "No suitable therapist found for explanation.")

    return ExplainResponse(status="success", data=explanation)


# ─────────────────────────────
# Availability

@router.get("/availability/{therapist_id}", response_model=EffectiveDayAvailability, responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def get_effective_availability(therapist_id: str, date: str):
    record, error = _therapist_or_404(therapist_id)
    if error:
        return error
    try:
        return availability_service.effective_day(record, OVERRIDES.get(therapist_id, []), date)
    except ValidationError as e:
        return _error(400, "Invalid availability request.", str(e))


@router.get("/availability/{therapist_id}/range", response_model=ListResponse, responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def get_availability_range(therapist_id: str, start_date: str, end_date: str):
    record, error = _therapist_or_404(therapist_id)
    if error:
        return error
    try:
        days = availability_service.effective_range(record, OVERRIDES.get(therapist_id, []), start_date, end_date)
    except ValidationError as e:
        return _error(400, "Invalid availability request.", str(e))

    return ListResponse(status="success", data=[d.model_dump(by_alias=True) for d in days])


@router.get("/availability/{therapist_id}/check", response_model=AvailabilityCheckResponse, responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def check_availability(therapist_id: str, date: str, start_time: str, end_time: str):
    record, error = _therapist_or_404(therapist_id)
    if error:
        return error
    try:
        available = availability_service.check(record, OVERRIDES.get(therapist_id, []), date, start_time, end_time)
    except ValidationError as e:
        return _error(400, "Invalid availability request.", str(e))

    return AvailabilityCheckResponse(
        therapist_id=therapist_id,
        date=date,
        start_time=start_time,
        end_time=end_time,
        available=available,
    )


@router.get("/availability/{therapist_id}/slots", response_model=ListResponse, responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def get_bookable_slots(therapist_id: str, date: str, duration: int = 60):
    record, error = _therapist_or_404(therapist_id)
    if error:
        return error
    try:
        slots = availability_service.bookable_slots(record, OVERRIDES.get(therapist_id, []), date, duration)
    except ValidationError as e:
        return _error(400, "Invalid availability request.", str(e))

    return ListResponse(status="success", data=[s.model_dump(by_alias=True) for s in slots])
