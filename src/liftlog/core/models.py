"""
Data models for liftlog.

Core dataclasses for prescriptions, live session progress, finalized
session records, daily activity documents and derived analytics.
Live-session models are mutable; persisted records are frozen.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from .config import (
    DEFAULT_EQUIPMENT,
    DEFAULT_MUSCLE_GROUP,
    DEFAULT_REPS,
    DEFAULT_REST_SECONDS,
    DEFAULT_SETS,
)
from .errors import InvalidSequenceError

CompletionStatus = Literal["completed"]


def advisory_target_reps(planned_reps: str) -> int:
    """
    Derive a display rep target from an advisory reps string.

    "8-12" -> 8, "10" -> 10, "AMRAP" -> 0.
    """
    match = re.search(r"\d+", planned_reps or "")
    return int(match.group()) if match else 0


@dataclass(frozen=True)
class ExercisePrescription:
    """
    One exercise of a workout day as authored in a program.

    Immutable input to a session; produced by the program loader.
    """

    exercise_name: str
    exercise_id: str = ""
    muscle_group: str = DEFAULT_MUSCLE_GROUP
    equipment: str = DEFAULT_EQUIPMENT
    sets: int = DEFAULT_SETS
    reps: str = DEFAULT_REPS
    rest_time: int = DEFAULT_REST_SECONDS  # seconds
    notes: str = ""

    def __post_init__(self) -> None:
        """Validate prescription data."""
        if not self.exercise_name or not self.exercise_name.strip():
            raise ValueError("exercise_name must be a non-empty string")
        if self.sets < 1:
            raise ValueError("sets must be at least 1")
        if self.rest_time < 0:
            raise ValueError("rest_time must be non-negative")


@dataclass
class SetLedger:
    """
    A single planned/performed set.

    reps and weight are None until the set is logged; both are written
    together in the one completion write.
    """

    set_number: int  # 1-based, fixed at creation
    target_reps: int = 0  # advisory, display only
    reps: int | None = None
    weight: float | None = None
    completed: bool = False
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.set_number < 1:
            raise ValueError("set_number must be positive")
        if self.target_reps < 0:
            raise ValueError("target_reps must be non-negative")

    def complete(self, reps: int, weight: float, at: datetime) -> None:
        """Record the performed reps/weight. A set completes exactly once."""
        if self.completed:
            raise InvalidSequenceError(f"Set {self.set_number} is already completed")
        self.reps = reps
        self.weight = weight
        self.completed = True
        self.completed_at = at

    @property
    def volume(self) -> float:
        """weight x reps for a completed set, else 0."""
        if not self.completed or self.reps is None or self.weight is None:
            return 0.0
        return self.weight * self.reps


@dataclass
class ExerciseProgress:
    """
    Live progress of one exercise in a session.

    ``completed`` flips only on an explicit confirm; logging the last set
    leaves the exercise ready but not completed.
    """

    exercise_id: str
    exercise_name: str
    muscle_group: str
    equipment: str
    planned_sets: int
    planned_reps: str
    planned_rest_seconds: int
    notes: str = ""
    order_index: int = 0
    sets: list[SetLedger] = field(default_factory=list)
    completed: bool = False
    skipped: bool = False

    def __post_init__(self) -> None:
        """Validate exercise data and build the set ledger if not supplied."""
        if self.planned_sets < 1:
            raise ValueError("planned_sets must be at least 1")
        if self.planned_rest_seconds < 0:
            raise ValueError("planned_rest_seconds must be non-negative")
        if not self.sets:
            target = advisory_target_reps(self.planned_reps)
            self.sets = [
                SetLedger(set_number=i, target_reps=target)
                for i in range(1, self.planned_sets + 1)
            ]
        if len(self.sets) != self.planned_sets:
            raise ValueError(
                f"{self.exercise_name}: expected {self.planned_sets} sets, got {len(self.sets)}"
            )

    @classmethod
    def from_prescription(cls, prescription: ExercisePrescription, order_index: int) -> "ExerciseProgress":
        """Create progress for one prescribed exercise, all sets pending."""
        return cls(
            exercise_id=prescription.exercise_id or f"exercise-{order_index}",
            exercise_name=prescription.exercise_name,
            muscle_group=prescription.muscle_group,
            equipment=prescription.equipment,
            planned_sets=prescription.sets,
            planned_reps=prescription.reps,
            planned_rest_seconds=prescription.rest_time,
            notes=prescription.notes,
            order_index=order_index,
        )

    @property
    def next_set_index(self) -> int | None:
        """0-based index of the first set not yet completed, or None."""
        for i, s in enumerate(self.sets):
            if not s.completed:
                return i
        return None

    @property
    def completed_set_count(self) -> int:
        return sum(1 for s in self.sets if s.completed)

    @property
    def all_sets_completed(self) -> bool:
        return all(s.completed for s in self.sets)

    @property
    def volume(self) -> float:
        """Sum of weight x reps over completed sets."""
        return sum(s.volume for s in self.sets)


@dataclass(frozen=True)
class SetSnapshot:
    """Frozen copy of a SetLedger as stored in a SessionRecord."""

    set_number: int
    target_reps: int
    reps: int | None
    weight: float | None
    completed: bool
    completed_at: datetime | None

    @classmethod
    def of(cls, ledger: SetLedger) -> "SetSnapshot":
        return cls(
            set_number=ledger.set_number,
            target_reps=ledger.target_reps,
            reps=ledger.reps,
            weight=ledger.weight,
            completed=ledger.completed,
            completed_at=ledger.completed_at,
        )


@dataclass(frozen=True)
class ExerciseSnapshot:
    """Final state of one exercise inside a SessionRecord."""

    exercise_id: str
    exercise_name: str
    muscle_group: str
    equipment: str
    order_index: int
    planned_sets: int
    planned_reps: str
    planned_rest_seconds: int
    notes: str
    sets: tuple[SetSnapshot, ...]
    completed: bool
    skipped: bool
    total_volume: float

    @classmethod
    def of(cls, progress: ExerciseProgress) -> "ExerciseSnapshot":
        return cls(
            exercise_id=progress.exercise_id,
            exercise_name=progress.exercise_name,
            muscle_group=progress.muscle_group,
            equipment=progress.equipment,
            order_index=progress.order_index,
            planned_sets=progress.planned_sets,
            planned_reps=progress.planned_reps,
            planned_rest_seconds=progress.planned_rest_seconds,
            notes=progress.notes,
            sets=tuple(SetSnapshot.of(s) for s in progress.sets),
            completed=progress.completed,
            skipped=progress.skipped,
            total_volume=progress.volume,
        )

    @property
    def completed_sets(self) -> list[SetSnapshot]:
        """Completed sets that carry both reps and weight."""
        return [
            s for s in self.sets
            if s.completed and s.reps is not None and s.weight is not None
        ]


@dataclass(frozen=True)
class SessionRecord:
    """
    A finalized workout session.

    Created exactly once when a live session is finalized and never
    mutated afterwards. All totals count completed sets only.
    """

    session_id: str
    user_id: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    total_volume: float
    total_sets: int
    total_reps: int
    exercises: tuple[ExerciseSnapshot, ...] = ()
    routine_id: str | None = None
    routine_name: str = ""
    workout_day_number: int | None = None
    workout_day_name: str | None = None
    completion_status: CompletionStatus = "completed"

    def __post_init__(self) -> None:
        """Validate session record data."""
        if self.end_time < self.start_time:
            raise ValueError("end_time must not precede start_time")
        if self.duration_minutes < 0:
            raise ValueError("duration_minutes must be non-negative")
        if self.completion_status != "completed":
            raise ValueError(f"Invalid completion_status: {self.completion_status}")

    @property
    def date(self) -> str:
        """Calendar day of the session start (YYYY-MM-DD)."""
        return self.start_time.date().isoformat()


@dataclass(frozen=True)
class LastCompletedWorkout:
    """Pointer to the most recent workout completed on an activity day."""

    day_number: int
    workout_name: str
    completed_at: datetime
    day_name: str | None = None


@dataclass
class DailyActivityRecord:
    """
    One calendar day of activity for a user.

    Direct metrics are None until logged. Weekly fields are valid only for
    the week identified by ``last_week_reset``.
    """

    date: str  # YYYY-MM-DD
    user_id: str = ""
    steps: int | None = None
    steps_goal: float | None = None
    steps_progress: int = 0
    calories: int | None = None
    calories_goal: float | None = None
    calories_progress: int = 0
    water: int | None = None
    water_goal: float | None = None
    water_progress: int = 0
    sleep: float | None = None
    sleep_goal: float | None = None
    sleep_progress: int = 0
    weight: float | None = None
    active_minutes: int | None = None
    weekly_workouts: int | None = None
    weekly_total_time: int | None = None  # minutes
    weekly_calories_burned: float | None = None
    weekly_workouts_goal: int | None = None
    last_week_reset: str | None = None
    completed_workout_days: list[int] = field(default_factory=list)
    last_completed_workout: LastCompletedWorkout | None = None
    last_updated_field: str | None = None
    updated_at: datetime | None = None


@dataclass
class PRHistoryPoint:
    """Best values of one exercise within one session."""

    date: str
    weight: float
    volume: float
    reps: int


@dataclass
class PersonalRecord:
    """
    Best historical values for one exercise name.

    Each maximum carries the date of the first session that reached it.
    """

    exercise_name: str
    max_weight: float
    max_weight_date: str
    max_volume: float
    max_volume_date: str
    max_reps: int
    max_reps_date: str
    total_volume: float = 0.0
    total_sessions: int = 0
    history: list[PRHistoryPoint] = field(default_factory=list)


@dataclass(frozen=True)
class FrequencyBucket:
    """Session count for one calendar day."""

    date: str
    day_name: str  # "Mon", "Tue", ...
    count: int


@dataclass(frozen=True)
class ProgressSummary:
    """Lifetime and recent totals over the session history."""

    total_workouts: int
    total_volume: float
    total_duration_minutes: int
    this_week_workouts: int
    this_month_workouts: int


@dataclass(frozen=True)
class WorkoutDay:
    """One numbered day of a program: the prescription a session starts from."""

    day_number: int
    name: str
    exercises: tuple[ExercisePrescription, ...]

    def __post_init__(self) -> None:
        if self.day_number < 1:
            raise ValueError("day_number must be positive")


@dataclass(frozen=True)
class WorkoutProgram:
    """A multi-day workout program."""

    program_id: str
    name: str
    days: tuple[WorkoutDay, ...]

    def day(self, day_number: int) -> WorkoutDay:
        """
        Return the program day with the given number.

        Raises:
            ValueError: If the program has no such day
        """
        for d in self.days:
            if d.day_number == day_number:
                return d
        valid = ", ".join(str(d.day_number) for d in self.days)
        raise ValueError(f"Program '{self.name}' has no day {day_number}. Valid days: {valid}")
