"""
Daily activity metrics and the weekly rollup.

Each calendar day has one activity document per user
(``users/<uid>/activity/<YYYY-MM-DD>``). Weekly counters live on the day
documents and are valid only for the week named by their
``lastWeekReset`` marker. The user document (``users/<uid>``) carries the
marker of the last reset performed.

All writes are merge-style, so fields written by other collaborators on
the same document survive. The aggregator never retries a failed store
call; PersistenceUnavailableError propagates to the caller, who may retry
the same operation.
"""

import math
from datetime import date, datetime, timedelta
from typing import Any, Callable

from ..io.document_store import DocumentStore
from ..io.serializers import dict_to_activity_record
from .config import (
    ACTIVITY_COLLECTION,
    GOAL_FIELDS,
    METRIC_FIELDS,
    RECENT_ACTIVITY_LOOKBACK_DAYS,
    USERS_COLLECTION,
    WEEKLY_FIELDS,
    Settings,
    default_settings,
)
from .errors import (
    AlreadyCompletedTodayError,
    InvalidInputError,
    PersistenceUnavailableError,
)
from .metrics import progress_percentage, week_identifier
from .models import DailyActivityRecord, SessionRecord


def user_path(user_id: str) -> str:
    return f"{USERS_COLLECTION}/{user_id}"


def activity_path(user_id: str, day: date) -> str:
    return f"{USERS_COLLECTION}/{user_id}/{ACTIVITY_COLLECTION}/{day.isoformat()}"


def _validate_number(value: Any, name: str, integral: bool) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value}")
    if value < 0:
        raise InvalidInputError(f"{name} must be non-negative, got {value}")
    if integral:
        if isinstance(value, float) and not value.is_integer():
            raise InvalidInputError(f"{name} must be a whole number, got {value}")
        return int(value)
    return value


class MetricsAggregator:
    """
    Merges metric samples into the day's activity document and keeps the
    weekly rollup in step with calendar weeks.

    The week guard runs once per calendar day, on the first touch of that
    day through this aggregator, before anything else is written.
    """

    def __init__(
        self,
        store: DocumentStore,
        user_id: str,
        clock: Callable[[], datetime] = datetime.now,
        settings: Settings | None = None,
    ):
        """
        Initialize the aggregator.

        Args:
            store: Document store holding user and activity documents
            user_id: Owner of the metrics
            clock: Returns the current timestamp
            settings: Goals and defaults (module defaults if None)
        """
        self.store = store
        self.user_id = user_id
        self.settings = settings or default_settings()
        self._clock = clock
        self._touched_day: date | None = None

    # ------------------------------------------------------------------
    # Week boundary
    # ------------------------------------------------------------------

    def ensure_current_week(self, user_id: str, today: date) -> bool:
        """
        Reset the weekly counters if ``today`` is in a new week.

        Compares the user's stored ``lastWeekReset`` with the Monday of
        today's week. When today's week is later than the marker (or there
        is no marker) today's weekly fields are cleared first, then the
        marker is moved. The marker only moves forward: a day in the
        marker's week or an earlier one resets nothing.

        Returns:
            True if a reset was written
        """
        week = week_identifier(today)
        user_doc = self.store.get(user_path(user_id)) or {}
        marker = user_doc.get("lastWeekReset")
        # ISO dates order correctly as strings
        if marker is not None and week <= marker:
            return False

        reset: dict[str, Any] = {f: None for f in WEEKLY_FIELDS}
        reset.update(
            {
                "date": today.isoformat(),
                "userId": user_id,
                "lastWeekReset": week,
                "updatedAt": self._clock().isoformat(),
            }
        )
        self.store.set(activity_path(user_id, today), reset, merge=True)
        self.store.set(user_path(user_id), {"lastWeekReset": week}, merge=True)
        return True

    def _touch(self, today: date) -> None:
        """First write of the day: run the week guard and seed the weekly rollup."""
        if self._touched_day == today:
            return

        self.ensure_current_week(self.user_id, today)

        path = activity_path(self.user_id, today)
        doc = self.store.get(path) or {}
        week = week_identifier(today)
        if doc.get("lastWeekReset") != week:
            carried = self._latest_weekly_values(today, week)
            self.store.set(path, {**carried, "lastWeekReset": week}, merge=True)

        self._touched_day = today

    def _latest_weekly_values(self, today: date, week: str) -> dict[str, Any]:
        """Weekly fields from the latest earlier day document of the same week."""
        monday = date.fromisoformat(week)
        day = today - timedelta(days=1)
        while day >= monday:
            doc = self.store.get(activity_path(self.user_id, day))
            if doc is not None and doc.get("lastWeekReset") == week:
                return {f: doc.get(f) for f in WEEKLY_FIELDS}
            day -= timedelta(days=1)
        return {f: None for f in WEEKLY_FIELDS}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def record_daily_metric(
        self,
        field: str,
        value: int | float,
        today: date | None = None,
    ) -> DailyActivityRecord:
        """
        Merge one metric sample into the day's document.

        Only the field, its goal/progress pair (steps, calories, water,
        sleep) and the update metadata are written.

        Args:
            field: One of steps, calories, water, sleep, weight, activeMinutes
            value: Non-negative value; whole number except sleep and weight
            today: Calendar day (defaults to the clock's date)

        Returns:
            The day's record after the write

        Raises:
            InvalidInputError: Unknown field or invalid value
            PersistenceUnavailableError: Store failure
        """
        if field not in METRIC_FIELDS:
            valid = ", ".join(METRIC_FIELDS)
            raise InvalidInputError(f"Unknown metric '{field}'. Valid metrics: {valid}")
        value = _validate_number(value, field, METRIC_FIELDS[field])

        day = today or self._clock().date()
        self._touch(day)

        path = activity_path(self.user_id, day)
        fields: dict[str, Any] = {
            "date": day.isoformat(),
            "userId": self.user_id,
            "updatedAt": self._clock().isoformat(),
            "lastUpdatedField": field,
            field: value,
        }
        if field in GOAL_FIELDS:
            doc = self.store.get(path) or {}
            goal = doc.get(f"{field}Goal")
            if goal is None:
                goal = self.settings.goal_for(field)
            fields[f"{field}Goal"] = goal
            fields[f"{field}Progress"] = progress_percentage(value, goal)

        self.store.set(path, fields, merge=True)
        return self._load_required(day)

    def update_goals(self, goals: dict[str, float], today: date | None = None) -> DailyActivityRecord:
        """
        Change goals on the day's document and recompute their progress.

        Args:
            goals: {field: goal}; fields are steps, calories, water, sleep,
                or weeklyWorkouts for the weekly workout goal
            today: Calendar day (defaults to the clock's date)

        Raises:
            InvalidInputError: Unknown goal or negative value
        """
        for name, goal in goals.items():
            if name not in GOAL_FIELDS and name != "weeklyWorkouts":
                raise InvalidInputError(f"'{name}' has no goal")
            _validate_number(goal, f"{name} goal", integral=False)

        day = today or self._clock().date()
        self._touch(day)

        path = activity_path(self.user_id, day)
        doc = self.store.get(path) or {}
        fields: dict[str, Any] = {"date": day.isoformat(), "userId": self.user_id,
                                  "updatedAt": self._clock().isoformat()}
        for name, goal in goals.items():
            fields[f"{name}Goal"] = goal
            if name in GOAL_FIELDS:
                fields[f"{name}Progress"] = progress_percentage(doc.get(name), goal)

        self.store.set(path, fields, merge=True)
        return self._load_required(day)

    def record_workout_completion(
        self,
        day_number: int,
        workout_name: str,
        day_name: str | None = None,
        duration_minutes: int = 0,
        calories_burned: float = 0,
        today: date | None = None,
    ) -> DailyActivityRecord:
        """
        Count a completed program day towards this week.

        A program day can be completed once per calendar day; a repeat is
        rejected before anything is written, so retrying is safe.

        Args:
            day_number: Program day completed
            workout_name: Program/workout display name
            day_name: Program day display name
            duration_minutes: Added to the weekly total time
            calories_burned: Added to the weekly calories burned
            today: Calendar day (defaults to the clock's date)

        Raises:
            InvalidInputError: Invalid day number, duration or calories
            AlreadyCompletedTodayError: day_number already completed today
            PersistenceUnavailableError: Store failure
        """
        if isinstance(day_number, bool) or not isinstance(day_number, int) or day_number < 1:
            raise InvalidInputError(f"day_number must be a positive integer, got {day_number!r}")
        duration_minutes = _validate_number(duration_minutes, "duration_minutes", integral=True)
        calories_burned = _validate_number(calories_burned, "calories_burned", integral=False)

        now = self._clock()
        day = today or now.date()
        self._touch(day)

        path = activity_path(self.user_id, day)
        doc = self.store.get(path) or {}
        completed_days = list(doc.get("completedWorkoutDays") or [])
        if day_number in completed_days:
            raise AlreadyCompletedTodayError(day_number, day.isoformat())

        week = week_identifier(day)
        current = doc if doc.get("lastWeekReset") == week else {}
        weekly_goal = doc.get("weeklyWorkoutsGoal")
        if weekly_goal is None:
            weekly_goal = self.settings.weekly_workouts_goal

        fields: dict[str, Any] = {
            "date": day.isoformat(),
            "userId": self.user_id,
            "updatedAt": now.isoformat(),
            "completedWorkoutDays": completed_days + [day_number],
            "lastCompletedWorkout": {
                "dayNumber": day_number,
                "dayName": day_name,
                "workoutName": workout_name,
                "completedAt": now.isoformat(),
            },
            "weeklyWorkouts": (current.get("weeklyWorkouts") or 0) + 1,
            "weeklyTotalTime": (current.get("weeklyTotalTime") or 0) + duration_minutes,
            "weeklyCaloriesBurned": (current.get("weeklyCaloriesBurned") or 0) + calories_burned,
            "weeklyWorkoutsGoal": weekly_goal,
            "lastWeekReset": week,
        }
        self.store.set(path, fields, merge=True)
        self._add_to_later_days(day, week, {
            "weeklyWorkouts": 1,
            "weeklyTotalTime": duration_minutes,
            "weeklyCaloriesBurned": calories_burned,
        })
        return self._load_required(day)

    def _add_to_later_days(self, day: date, week: str, deltas: dict[str, int | float]) -> None:
        """Add a dated-back completion to the later day documents of its week."""
        monday = date.fromisoformat(week)
        later = day + timedelta(days=1)
        while later < monday + timedelta(days=7):
            path = activity_path(self.user_id, later)
            doc = self.store.get(path)
            if doc is not None and doc.get("lastWeekReset") == week:
                fields = {f: (doc.get(f) or 0) + delta for f, delta in deltas.items()}
                self.store.set(path, fields, merge=True)
            later += timedelta(days=1)

    def record_session(self, record: SessionRecord, calories_burned: float = 0) -> DailyActivityRecord:
        """
        Fold a finalized session into the weekly rollup of its end date.

        Raises:
            InvalidInputError: If the session has no program day number
        """
        if record.workout_day_number is None:
            raise InvalidInputError("Session has no workout day number to count")
        return self.record_workout_completion(
            record.workout_day_number,
            record.routine_name,
            day_name=record.workout_day_name,
            duration_minutes=record.duration_minutes,
            calories_burned=calories_burned,
            today=record.end_time.date(),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_day(self, day: date) -> DailyActivityRecord | None:
        """The activity record of one calendar day, or None."""
        doc = self.store.get(activity_path(self.user_id, day))
        return dict_to_activity_record(doc) if doc is not None else None

    def load_activity(self, today: date | None = None) -> DailyActivityRecord | None:
        """
        Today's record, or the most recent one of the previous days.

        Looks back RECENT_ACTIVITY_LOOKBACK_DAYS days when today has no
        document yet. Returns None if nothing is found.
        """
        day = today or self._clock().date()
        for offset in range(RECENT_ACTIVITY_LOOKBACK_DAYS + 1):
            record = self.load_day(day - timedelta(days=offset))
            if record is not None:
                return record
        return None

    def _load_required(self, day: date) -> DailyActivityRecord:
        record = self.load_day(day)
        if record is None:
            raise PersistenceUnavailableError(f"Activity document for {day} missing after write")
        return record
