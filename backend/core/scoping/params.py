import math


def parse_limit(raw_value, default=200, maximum=1000) -> int:
    """Lenient list limit: junk falls back to ``default``, result clamped to [1, maximum]."""

    try:
        limit = int(raw_value if raw_value not in (None, "") else default)
    except (TypeError, ValueError):
        limit = default
    return max(1, min(limit, maximum))


def parse_float(raw_value) -> float | None:
    """Finite float or None."""

    if raw_value is None or isinstance(raw_value, bool):
        return None
    try:
        value = float(str(raw_value).strip())
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def parse_int(raw_value) -> int | None:
    if raw_value is None or isinstance(raw_value, bool):
        return None
    try:
        return int(str(raw_value).strip())
    except (TypeError, ValueError):
        return None
