from __future__ import annotations

import math
from datetime import datetime

from .errors import ValidationError
from .models import TardinessCategory

# Both clocks are placed on this date so only the time of day matters.
REFERENCE_DATE = "1970-01-01"

ON_TIME_EXCLUDE = "exclude"
ON_TIME_RINGAN = "ringan"
ON_TIME_FALLTHROUGH = "fallthrough"
ON_TIME_POLICIES = (ON_TIME_EXCLUDE, ON_TIME_RINGAN, ON_TIME_FALLTHROUGH)

RINGAN_MAX_MINUTES = 5
SEDANG_MAX_MINUTES = 15


def parse_clock(value: str) -> datetime:
    text = (value or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(f"{REFERENCE_DATE} {text}", f"%Y-%m-%d {fmt}")
        except ValueError:
            continue
    raise ValidationError(f"Format jam tidak valid: {value!r} (gunakan HH:MM).")


def duration_minutes(start: str, arrival: str) -> int:
    """Whole minutes late, rounded half up and never negative."""
    delta = (parse_clock(arrival) - parse_clock(start)).total_seconds()
    minutes = math.floor(delta / 60 + 0.5)
    return max(0, minutes)


def categorize(duration: int, on_time_policy: str = ON_TIME_EXCLUDE) -> TardinessCategory | None:
    """Map a duration to its severity.

    A zero duration is not covered by the thresholds; ``on_time_policy``
    decides it: ``exclude`` gives ``None``, ``ringan`` gives Ringan and
    ``fallthrough`` gives Berat like the final branch of the threshold chain.
    """
    if duration < 0:
        raise ValueError("duration must not be negative")
    if on_time_policy not in ON_TIME_POLICIES:
        raise ValueError(f"Unknown on-time policy: {on_time_policy}")

    if 1 <= duration <= RINGAN_MAX_MINUTES:
        return TardinessCategory.RINGAN
    if RINGAN_MAX_MINUTES < duration <= SEDANG_MAX_MINUTES:
        return TardinessCategory.SEDANG
    if duration > SEDANG_MAX_MINUTES:
        return TardinessCategory.BERAT

    if on_time_policy == ON_TIME_RINGAN:
        return TardinessCategory.RINGAN
    if on_time_policy == ON_TIME_FALLTHROUGH:
        return TardinessCategory.BERAT
    return None


def assess(
    start: str,
    arrival: str,
    on_time_policy: str = ON_TIME_EXCLUDE,
) -> tuple[int, TardinessCategory | None]:
    duration = duration_minutes(start, arrival)
    return duration, categorize(duration, on_time_policy)
