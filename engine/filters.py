# 📦 engine/filters.py
# ─────────────────────────────
# Hard filters: a therapist failing any of these never appears in results

def filter_by_acceptance(th):
    """Therapist is taking on new clients."""
    return bool(th.is_accepting_new_clients)

def filter_by_capacity(th):
    """Caseload strictly below the maximum."""
    return th.max_caseload > 0 and th.current_caseload < th.max_caseload

def apply_all_filters(th):
    """Applies all hard filters sequentially."""
    return filter_by_acceptance(th) and filter_by_capacity(th)
