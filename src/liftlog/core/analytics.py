"""
Read-only analytics over finalized sessions.

Everything here is a pure function of the session history and is
recomputed on each call.
"""

from datetime import date, datetime, timedelta
from typing import Sequence

from .config import FREQUENCY_WINDOW_DAYS, SUMMARY_MONTH_DAYS, SUMMARY_WEEK_DAYS
from .models import (
    FrequencyBucket,
    PersonalRecord,
    PRHistoryPoint,
    ProgressSummary,
    SessionRecord,
)

_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def personal_records(records: Sequence[SessionRecord]) -> list[PersonalRecord]:
    """
    Best weight, session volume and reps per exercise name.

    Only completed sets with weight and reps count. Sessions are processed
    oldest first and a maximum moves only when strictly beaten, so on a tie
    the earliest session keeps the record.

    Args:
        records: Session history in any order

    Returns:
        One PersonalRecord per exercise, heaviest max weight first
    """
    by_name: dict[str, PersonalRecord] = {}

    for record in sorted(records, key=lambda r: r.start_time):
        day = record.date
        for exercise in record.exercises:
            if not exercise.exercise_name:
                continue
            sets = exercise.completed_sets
            if not sets:
                continue

            max_weight = max(s.weight for s in sets)  # type: ignore[type-var]
            max_reps = max(s.reps for s in sets)  # type: ignore[type-var]
            volume = sum(s.weight * s.reps for s in sets)  # type: ignore[operator]

            pr = by_name.get(exercise.exercise_name)
            if pr is None:
                pr = PersonalRecord(
                    exercise_name=exercise.exercise_name,
                    max_weight=max_weight,
                    max_weight_date=day,
                    max_volume=volume,
                    max_volume_date=day,
                    max_reps=max_reps,
                    max_reps_date=day,
                )
                by_name[exercise.exercise_name] = pr
            else:
                if max_weight > pr.max_weight:
                    pr.max_weight, pr.max_weight_date = max_weight, day
                if volume > pr.max_volume:
                    pr.max_volume, pr.max_volume_date = volume, day
                if max_reps > pr.max_reps:
                    pr.max_reps, pr.max_reps_date = max_reps, day

            pr.total_volume += volume
            pr.total_sessions += 1
            pr.history.append(PRHistoryPoint(date=day, weight=max_weight, volume=volume, reps=max_reps))

    return sorted(by_name.values(), key=lambda pr: pr.max_weight, reverse=True)


def weekly_frequency(
    records: Sequence[SessionRecord],
    window_days: int = FREQUENCY_WINDOW_DAYS,
    today: date | None = None,
) -> list[FrequencyBucket]:
    """
    Sessions per calendar day over the trailing window ending today.

    Args:
        records: Session history
        window_days: Number of days in the window (>= 1)
        today: Last day of the window (defaults to the current date)

    Returns:
        One bucket per day, oldest first, zero-count days included
    """
    if window_days < 1:
        raise ValueError("window_days must be at least 1")
    today = today or date.today()

    counts: dict[str, int] = {}
    for record in records:
        counts[record.date] = counts.get(record.date, 0) + 1

    buckets = []
    for offset in range(window_days - 1, -1, -1):
        day = today - timedelta(days=offset)
        key = day.isoformat()
        buckets.append(FrequencyBucket(date=key, day_name=_DAY_NAMES[day.weekday()], count=counts.get(key, 0)))
    return buckets


def progress_summary(records: Sequence[SessionRecord], now: datetime | None = None) -> ProgressSummary:
    """
    Lifetime totals plus session counts for the last 7 and 30 days.

    Args:
        records: Session history
        now: Reference time (defaults to the current time)
    """
    now = now or datetime.now()
    week_ago = now - timedelta(days=SUMMARY_WEEK_DAYS)
    month_ago = now - timedelta(days=SUMMARY_MONTH_DAYS)

    return ProgressSummary(
        total_workouts=len(records),
        total_volume=sum(r.total_volume for r in records),
        total_duration_minutes=sum(r.duration_minutes for r in records),
        this_week_workouts=sum(1 for r in records if r.start_time >= week_ago),
        this_month_workouts=sum(1 for r in records if r.start_time >= month_ago),
    )
