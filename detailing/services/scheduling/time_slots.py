# detailing/services/scheduling/time_slots.py
"""
Interval arithmetic over times of day.

Intervals are half-open [start, end): an appointment ending at 11:00 and one
starting at 11:00 do not overlap, so back-to-back bookings are allowed.
"""
from datetime import date, datetime, time, timedelta

_ANCHOR = date(2000, 1, 1)


def overlaps(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """True iff [start_a, end_a) and [start_b, end_b) share at least one instant"""
    return start_a < end_b and start_b < end_a


def add_minutes(start: time, minutes: int) -> time:
    """Shift a time of day; raises ValueError when the result leaves the day"""
    shifted = datetime.combine(_ANCHOR, start) + timedelta(minutes=minutes)
    if shifted.date() != _ANCHOR:
        raise ValueError(f"{start.strftime('%H:%M')} + {minutes} min does not fit in one day")
    return shifted.time()


def end_time(start: time, duration_minutes: int) -> time:
    """End of a slot that starts at `start` and lasts `duration_minutes`"""
    if duration_minutes <= 0:
        raise ValueError("Duration must be positive")
    return add_minutes(start, duration_minutes)


def minutes_between(start: time, end: time) -> int:
    delta = datetime.combine(_ANCHOR, end) - datetime.combine(_ANCHOR, start)
    return int(delta.total_seconds() // 60)
