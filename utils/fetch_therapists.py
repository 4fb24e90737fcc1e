# 📦 utils/fetch_therapists.py

import asyncio
from collections import defaultdict
from typing import Dict, List

import structlog

from supabase_client import get_supabase

log = structlog.get_logger()

THERAPIST_TABLE = "therapists"
OVERRIDE_TABLE = "therapist_availability"

# Specializations live in a join table; embed them in each therapist row
THERAPIST_COLUMNS = "*, specializations:therapist_specializations(specialization_id, proficiency_level, years_experience)"


async def _select_with_retry(query, what: str, retries: int = 3, delay: float = 2.0):
    for attempt in range(retries):
        try:
            log.info(f"Fetching {what} (attempt {attempt+1})")
            return query().execute().data or []
        except Exception as e:
            log.error(f"Failed to fetch {what} (attempt {attempt+1}): {e}")
            if attempt < retries - 1:
                await asyncio.sleep(delay * (2 ** attempt))  # Exponential backoff
            else:
                raise RuntimeError(f"Startup failed: could not fetch {what} from Supabase.") from e


async def fetch_therapists(retries: int = 3, delay: float = 2.0) -> List[dict]:
    """Fetch raw therapist rows. Validation happens in the matcher, per record."""
    supabase = get_supabase()
    if supabase is None:
        return []

    rows = await _select_with_retry(
        lambda: supabase.table(THERAPIST_TABLE).select(THERAPIST_COLUMNS), "therapists", retries, delay
    )
    if not rows:
        log.warning("No therapists found in Supabase.")
    else:
        log.info(f"Successfully fetched {len(rows)} therapists from Supabase.")
    return rows


async def fetch_overrides(retries: int = 3, delay: float = 2.0) -> Dict[str, List[dict]]:
    """Fetch availability overrides grouped by therapist, each list in creation order."""
    supabase = get_supabase()
    if supabase is None:
        return {}

    rows = await _select_with_retry(
        lambda: supabase.table(OVERRIDE_TABLE).select("*").order("created_at"), "availability overrides", retries, delay
    )
    grouped = defaultdict(list)
    for row in rows:
        grouped[str(row.get("therapist_id"))].append(row)
    log.info(f"Fetched {len(rows)} availability overrides for {len(grouped)} therapists.")
    return dict(grouped)
