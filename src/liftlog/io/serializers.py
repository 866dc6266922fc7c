"""
JSON serialization for liftlog data models.

Handles conversion between dataclasses and the camelCase document dicts
kept in the document store.
"""

import re
from datetime import datetime
from typing import Any

from ..core.config import (
    DEFAULT_EQUIPMENT,
    DEFAULT_MUSCLE_GROUP,
    DEFAULT_REPS,
    DEFAULT_REST_SECONDS,
    DEFAULT_ROUTINE_NAME,
    DEFAULT_SETS,
)
from ..core.errors import InvalidInputError
from ..core.models import (
    DailyActivityRecord,
    ExercisePrescription,
    ExerciseSnapshot,
    LastCompletedWorkout,
    SessionRecord,
    SetSnapshot,
)


class ValidationError(InvalidInputError):
    """Raised when stored or loaded data fails validation."""

    pass


def _dt_to_str(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _str_to_dt(value: Any, name: str) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp for {name}: {value!r}") from e


def _lenient_int(value: Any, default: int) -> int:
    """Parse a loosely typed number ("4", 4.0, "") the way program files write them."""
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def dict_to_prescription(
    data: dict[str, Any],
    index: int = 0,
    default_rest: int = DEFAULT_REST_SECONDS,
) -> ExercisePrescription:
    """
    Convert a prescription dict to ExercisePrescription.

    Accepts camelCase (exerciseName, restTime) or snake_case keys. Missing or
    unparsable sets/rest fall back to the defaults.

    Raises:
        ValidationError: If the exercise has no name
    """
    name = data.get("exerciseName", data.get("exercise_name"))
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"Exercise #{index + 1} has no name")

    rest_raw = data.get("restTime", data.get("rest_time"))
    rest = _lenient_int(rest_raw, default_rest)

    return ExercisePrescription(
        exercise_name=name.strip(),
        exercise_id=str(data.get("exerciseId", data.get("exercise_id")) or f"exercise-{index}"),
        muscle_group=data.get("muscleGroup", data.get("muscle_group")) or DEFAULT_MUSCLE_GROUP,
        equipment=data.get("equipment") or DEFAULT_EQUIPMENT,
        sets=_lenient_int(data.get("sets"), DEFAULT_SETS),
        reps=str(data.get("reps") or DEFAULT_REPS),
        rest_time=rest,
        notes=data.get("notes") or "",
    )


def set_snapshot_to_dict(s: SetSnapshot) -> dict[str, Any]:
    return {
        "setNumber": s.set_number,
        "targetReps": s.target_reps,
        "reps": s.reps,
        "weight": s.weight,
        "completed": s.completed,
        "timestamp": _dt_to_str(s.completed_at),
    }


def dict_to_set_snapshot(data: dict[str, Any]) -> SetSnapshot:
    completed = bool(data.get("completed", False))
    reps = data.get("reps")
    weight = data.get("weight")
    if completed and (reps is None or weight is None):
        raise ValidationError(f"Completed set {data.get('setNumber')} is missing reps or weight")
    return SetSnapshot(
        set_number=int(data["setNumber"]),
        target_reps=int(data.get("targetReps", 0)),
        reps=int(reps) if reps is not None else None,
        weight=float(weight) if weight is not None else None,
        completed=completed,
        completed_at=_str_to_dt(data.get("timestamp"), "timestamp"),
    )


def exercise_snapshot_to_dict(ex: ExerciseSnapshot) -> dict[str, Any]:
    return {
        "exerciseId": ex.exercise_id,
        "exerciseName": ex.exercise_name,
        "muscleGroup": ex.muscle_group,
        "equipment": ex.equipment,
        "orderIndex": ex.order_index,
        "plannedSets": ex.planned_sets,
        "plannedReps": ex.planned_reps,
        "plannedRestTime": ex.planned_rest_seconds,
        "notes": ex.notes,
        "sets": [set_snapshot_to_dict(s) for s in ex.sets],
        "totalVolume": ex.total_volume,
        "completed": ex.completed,
        "skipped": ex.skipped,
    }


def dict_to_exercise_snapshot(data: dict[str, Any]) -> ExerciseSnapshot:
    sets = tuple(dict_to_set_snapshot(s) for s in data.get("sets", []))
    return ExerciseSnapshot(
        exercise_id=str(data.get("exerciseId", "")),
        exercise_name=str(data["exerciseName"]),
        muscle_group=data.get("muscleGroup", DEFAULT_MUSCLE_GROUP),
        equipment=data.get("equipment", DEFAULT_EQUIPMENT),
        order_index=int(data.get("orderIndex", 0)),
        planned_sets=int(data.get("plannedSets", len(sets))),
        planned_reps=str(data.get("plannedReps", DEFAULT_REPS)),
        planned_rest_seconds=int(data.get("plannedRestTime", DEFAULT_REST_SECONDS)),
        notes=data.get("notes", ""),
        sets=sets,
        completed=bool(data.get("completed", False)),
        skipped=bool(data.get("skipped", False)),
        total_volume=float(data.get("totalVolume", 0.0)),
    )


def session_record_to_dict(record: SessionRecord) -> dict[str, Any]:
    """
    Convert SessionRecord to a document dict.

    The session id is stored as ``id`` so repeated appends are recognized.
    """
    return {
        "id": record.session_id,
        "userId": record.user_id,
        "routineId": record.routine_id,
        "routineName": record.routine_name,
        "workoutDayNumber": record.workout_day_number,
        "workoutDayName": record.workout_day_name,
        "startTime": _dt_to_str(record.start_time),
        "endTime": _dt_to_str(record.end_time),
        "duration": record.duration_minutes,
        "totalVolume": record.total_volume,
        "totalSets": record.total_sets,
        "totalReps": record.total_reps,
        "completionStatus": record.completion_status,
        "exercises": [exercise_snapshot_to_dict(ex) for ex in record.exercises],
    }


def dict_to_session_record(data: dict[str, Any]) -> SessionRecord:
    """
    Convert a document dict to SessionRecord.

    Raises:
        ValidationError: If required fields are missing or invalid
    """
    try:
        start = _str_to_dt(data["startTime"], "startTime")
        end = _str_to_dt(data["endTime"], "endTime")
        return SessionRecord(
            session_id=str(data["id"]),
            user_id=str(data.get("userId", "")),
            start_time=start,  # type: ignore[arg-type]
            end_time=end,  # type: ignore[arg-type]
            duration_minutes=int(data.get("duration", 0)),
            total_volume=float(data.get("totalVolume", 0.0)),
            total_sets=int(data.get("totalSets", 0)),
            total_reps=int(data.get("totalReps", 0)),
            exercises=tuple(dict_to_exercise_snapshot(ex) for ex in data.get("exercises", [])),
            routine_id=data.get("routineId"),
            routine_name=data.get("routineName") or DEFAULT_ROUTINE_NAME,
            workout_day_number=data.get("workoutDayNumber"),
            workout_day_name=data.get("workoutDayName"),
            completion_status=data.get("completionStatus", "completed"),
        )
    except KeyError as e:
        raise ValidationError(f"Session record missing field {e}") from e
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid session record: {e}") from e


def last_completed_to_dict(last: LastCompletedWorkout) -> dict[str, Any]:
    return {
        "dayNumber": last.day_number,
        "dayName": last.day_name,
        "workoutName": last.workout_name,
        "completedAt": _dt_to_str(last.completed_at),
    }


def dict_to_activity_record(data: dict[str, Any]) -> DailyActivityRecord:
    """
    Convert an activity document to DailyActivityRecord.

    Unknown fields are ignored; absent ones stay None.
    """
    if "date" not in data:
        raise ValidationError("Activity document has no date")

    last = data.get("lastCompletedWorkout")
    last_completed = None
    if isinstance(last, dict):
        last_completed = LastCompletedWorkout(
            day_number=int(last["dayNumber"]),
            workout_name=str(last.get("workoutName", "")),
            completed_at=_str_to_dt(last.get("completedAt"), "completedAt"),  # type: ignore[arg-type]
            day_name=last.get("dayName"),
        )

    return DailyActivityRecord(
        date=str(data["date"]),
        user_id=str(data.get("userId", "")),
        steps=data.get("steps"),
        steps_goal=data.get("stepsGoal"),
        steps_progress=int(data.get("stepsProgress", 0)),
        calories=data.get("calories"),
        calories_goal=data.get("caloriesGoal"),
        calories_progress=int(data.get("caloriesProgress", 0)),
        water=data.get("water"),
        water_goal=data.get("waterGoal"),
        water_progress=int(data.get("waterProgress", 0)),
        sleep=data.get("sleep"),
        sleep_goal=data.get("sleepGoal"),
        sleep_progress=int(data.get("sleepProgress", 0)),
        weight=data.get("weight"),
        active_minutes=data.get("activeMinutes"),
        weekly_workouts=data.get("weeklyWorkouts"),
        weekly_total_time=data.get("weeklyTotalTime"),
        weekly_calories_burned=data.get("weeklyCaloriesBurned"),
        weekly_workouts_goal=data.get("weeklyWorkoutsGoal"),
        last_week_reset=data.get("lastWeekReset"),
        completed_workout_days=list(data.get("completedWorkoutDays") or []),
        last_completed_workout=last_completed,
        last_updated_field=data.get("lastUpdatedField"),
        updated_at=_str_to_dt(data.get("updatedAt"), "updatedAt"),
    )


def activity_record_to_dict(record: DailyActivityRecord) -> dict[str, Any]:
    """Convert DailyActivityRecord to its camelCase document form (for --json output)."""
    return {
        "date": record.date,
        "userId": record.user_id,
        "steps": record.steps,
        "stepsGoal": record.steps_goal,
        "stepsProgress": record.steps_progress,
        "calories": record.calories,
        "caloriesGoal": record.calories_goal,
        "caloriesProgress": record.calories_progress,
        "water": record.water,
        "waterGoal": record.water_goal,
        "waterProgress": record.water_progress,
        "sleep": record.sleep,
        "sleepGoal": record.sleep_goal,
        "sleepProgress": record.sleep_progress,
        "weight": record.weight,
        "activeMinutes": record.active_minutes,
        "weeklyWorkouts": record.weekly_workouts,
        "weeklyTotalTime": record.weekly_total_time,
        "weeklyCaloriesBurned": record.weekly_calories_burned,
        "weeklyWorkoutsGoal": record.weekly_workouts_goal,
        "lastWeekReset": record.last_week_reset,
        "completedWorkoutDays": list(record.completed_workout_days),
        "lastCompletedWorkout": (
            last_completed_to_dict(record.last_completed_workout)
            if record.last_completed_workout is not None else None
        ),
        "lastUpdatedField": record.last_updated_field,
        "updatedAt": _dt_to_str(record.updated_at),
    }


def parse_set_entry(raw: str) -> tuple[float, float]:
    """
    Parse one logged set typed by the user.

    Accepted forms (reps first, then weight in kg)::

        10 60       space-separated
        10@60       compact
        10x62.5     "reps x weight"

    Values are returned as typed; positivity is checked by the session.

    Raises:
        ValidationError: If the entry does not contain exactly two numbers
    """
    parts = re.split(r"\s*[@xX×]\s*|\s+", raw.strip())
    if len(parts) != 2:
        raise ValidationError(f"Expected 'reps weight', got {raw!r}")
    try:
        reps = float(parts[0])
        weight = float(parts[1].lower().removesuffix("kg"))
    except ValueError as e:
        raise ValidationError(f"Expected 'reps weight', got {raw!r}") from e
    return reps, weight
