"""
Pure metric computation functions.

All functions are pure and typed for testability.
"""

import math
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from .models import ExerciseProgress, SetLedger


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero for positives.

    Python's round() uses banker's rounding (round(2.5) == 2); durations and
    percentages are expected to round 2.5 up to 3.
    """
    return int(math.floor(value + 0.5))


def progress_percentage(value: float | None, goal: float | None) -> int:
    """
    Percentage of goal reached, clamped to 0..100.

    Returns 0 when either value is missing or the goal is zero, so it never
    divides by zero.

    Args:
        value: Logged value (None if not logged)
        goal: Target value

    Returns:
        Integer percentage 0..100
    """
    if value is None or goal is None or goal == 0:
        return 0
    pct = round_half_up(value / goal * 100)
    return max(0, min(100, pct))


def week_identifier(day: date | datetime) -> str:
    """
    ISO date of the Monday on or before ``day``.

    Weeks start on Monday; Sunday belongs to the week that began six days
    earlier.

    Args:
        day: Calendar date (a datetime is truncated to its date)

    Returns:
        YYYY-MM-DD of that week's Monday
    """
    if isinstance(day, datetime):
        day = day.date()
    monday = day - timedelta(days=day.weekday())
    return monday.isoformat()


def duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two timestamps, rounded half up."""
    return round_half_up((end - start).total_seconds() / 60)


def completed_sets(exercises: Iterable[ExerciseProgress]) -> list[SetLedger]:
    """All completed sets across the given exercises, in session order."""
    return [s for ex in exercises for s in ex.sets if s.completed]


def total_volume(exercises: Sequence[ExerciseProgress]) -> float:
    """
    Session volume: sum of weight x reps over completed sets only.

    Incomplete sets (including those of skipped exercises) contribute 0.
    """
    return sum(s.volume for s in completed_sets(exercises))


def total_sets(exercises: Sequence[ExerciseProgress]) -> int:
    """Number of completed sets across all exercises."""
    return len(completed_sets(exercises))


def total_reps(exercises: Sequence[ExerciseProgress]) -> int:
    """Sum of reps over completed sets."""
    return sum(s.reps for s in completed_sets(exercises) if s.reps is not None)
