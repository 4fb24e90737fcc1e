# 📦 utils/errors.py

class ValidationError(ValueError):
    """Malformed date/time strings, out-of-range limits or invalid criteria."""
