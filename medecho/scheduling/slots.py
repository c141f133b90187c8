"""Slot generation over a single working range."""

from medecho.scheduling.models import WorkingRange, format_time

DEFAULT_STEP_MINUTES = 30


def generate_slot_minutes(start: int, end: int, step_minutes: int = DEFAULT_STEP_MINUTES) -> list[int]:
    """Start times ``start, start+step, ...`` strictly before *end*.

    Only the start is compared with *end*: a slot whose start is before the
    end of the range is included even if ``start + step`` runs past it.
    """
    if step_minutes <= 0 or start >= end:
        return []
    return list(range(start, end, step_minutes))


def generate_slots(working_range: WorkingRange, step_minutes: int = DEFAULT_STEP_MINUTES) -> list[str]:
    """Generate ``HH:MM`` start times for *working_range*.

    Blank, malformed or inverted ranges produce no slots.
    """
    start, end = working_range.start_minutes, working_range.end_minutes
    if start is None or end is None:
        return []
    return [format_time(m) for m in generate_slot_minutes(start, end, step_minutes)]
