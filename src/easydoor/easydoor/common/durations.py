from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE


def elapsed_ms(start: datetime, end: datetime) -> int:
    return (end - start) // timedelta(milliseconds=1)


def format_duration(clock_in: datetime, clock_out: datetime) -> str:
    """'2h 5m' when at least one full hour elapsed, else '45m'. Components are floored."""
    ms = elapsed_ms(clock_in, clock_out)
    hours = ms // MS_PER_HOUR
    minutes = (ms % MS_PER_HOUR) // MS_PER_MINUTE
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_elapsed(clock_in: datetime, now: datetime) -> str:
    """Running duration of an open session; always shows hours."""
    ms = elapsed_ms(clock_in, now)
    return f"{ms // MS_PER_HOUR}h {(ms % MS_PER_HOUR) // MS_PER_MINUTE}m"


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def work_hours(clock_in: Optional[datetime], clock_out: Optional[datetime]) -> float:
    if not clock_in or not clock_out:
        return 0
    return round_half_up(elapsed_ms(clock_in, clock_out) / MS_PER_HOUR, 2)


def percentage(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(round_half_up(part / total * 100))
