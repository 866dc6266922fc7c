"""
Live workout session state machine.

Drives one workout day from the first set to a finalized SessionRecord:

    in_progress -> exercise_ready -> (advance) -> ... -> finalizing -> finalized

Sets complete strictly in order and only on the current exercise. An
exercise whose sets are all logged waits in ``exercise_ready`` until the
user confirms it; skipping moves on without completing it. ``abandon()``
ends the session without producing a record.
"""

import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Literal, Sequence

from .config import DEFAULT_ROUTINE_NAME, DEFAULT_USER_ID
from .errors import (
    AlreadyFinalizedError,
    InvalidInputError,
    InvalidSequenceError,
)
from .metrics import duration_minutes, total_reps, total_sets, total_volume
from .models import (
    ExercisePrescription,
    ExerciseProgress,
    ExerciseSnapshot,
    SessionRecord,
)
from .rest_timer import RestTimer

SessionState = Literal["in_progress", "exercise_ready", "finalizing", "finalized", "abandoned"]


@dataclass(frozen=True)
class SetOutcome:
    """
    What happened after a set was recorded.

    Exactly one of the two signals is set: a rest period to start, or the
    exercise's sets being complete.
    """

    exercise_index: int
    set_index: int
    rest_seconds: int | None
    exercise_sets_complete: bool


def validate_set_values(reps: object, weight: object) -> tuple[int, float]:
    """
    Validate logged reps and weight.

    Args:
        reps: Performed reps (positive whole number)
        weight: Load used (positive number)

    Returns:
        (reps, weight) normalized to int/float

    Raises:
        InvalidInputError: If either value is missing, non-numeric or not positive
    """
    if isinstance(reps, bool) or not isinstance(reps, (int, float)):
        raise InvalidInputError(f"reps must be a number, got {reps!r}")
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        raise InvalidInputError(f"weight must be a number, got {weight!r}")
    if isinstance(reps, float) and not reps.is_integer():
        raise InvalidInputError(f"reps must be a whole number, got {reps}")
    if not all(math.isfinite(v) for v in (reps, weight) if isinstance(v, float)):
        raise InvalidInputError(f"reps and weight must be finite, got {reps}, {weight}")
    if reps <= 0:
        raise InvalidInputError(f"reps must be positive, got {reps}")
    if weight <= 0:
        raise InvalidInputError(f"weight must be positive, got {weight}")
    return int(reps), float(weight)


class SessionStateMachine:
    """
    One live workout session.

    Holds all in-memory progress; nothing is persisted until finalize()
    hands a SessionRecord to the caller.
    """

    def __init__(
        self,
        prescription: Sequence[ExercisePrescription],
        *,
        user_id: str = DEFAULT_USER_ID,
        routine_id: str | None = None,
        routine_name: str = DEFAULT_ROUTINE_NAME,
        day_number: int | None = None,
        day_name: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
        rest_timer: RestTimer | None = None,
    ):
        """
        Start a session from a workout-day prescription.

        Args:
            prescription: Ordered exercises of the workout day
            user_id: Owner of the session
            routine_id: Program identifier, if any
            routine_name: Program display name
            day_number: Program day being performed
            day_name: Program day display name
            clock: Returns the current timestamp
            rest_timer: Timer started after each non-final set

        Raises:
            InvalidInputError: If the prescription is empty
        """
        if not prescription:
            raise InvalidInputError("Cannot start a session without exercises")

        self.user_id = user_id
        self.routine_id = routine_id
        self.routine_name = routine_name
        self.day_number = day_number
        self.day_name = day_name
        self.rest_timer = rest_timer

        self._clock = clock
        self.started_at = clock()
        self.exercises = [
            ExerciseProgress.from_prescription(p, i) for i, p in enumerate(prescription)
        ]
        self.current_exercise_index = 0
        self._terminal: SessionState | None = None
        self._finalizing = False
        self._record: SessionRecord | None = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Current lifecycle state, derived from the cursor and the sets logged."""
        if self._terminal is not None:
            return self._terminal
        if self._finalizing:
            return "finalizing"
        if self.exercises[self.current_exercise_index].all_sets_completed:
            return "exercise_ready"
        return "in_progress"

    @property
    def current_exercise(self) -> ExerciseProgress | None:
        """The exercise being trained, or None once no exercise is current."""
        if self._terminal is not None or self._finalizing:
            return None
        return self.exercises[self.current_exercise_index]

    @property
    def record(self) -> SessionRecord | None:
        """The finalized record, once finalize() has run."""
        return self._record

    @property
    def total_volume(self) -> float:
        """Sum of reps x weight over completed sets so far."""
        return total_volume(self.exercises)

    @property
    def total_sets(self) -> int:
        """Number of completed sets so far."""
        return total_sets(self.exercises)

    @property
    def total_reps(self) -> int:
        """Reps over completed sets so far."""
        return total_reps(self.exercises)

    @property
    def overall_progress(self) -> float:
        """
        Session progress in percent.

        Completed exercises count fully; the current exercise counts by the
        fraction of its sets logged.
        """
        done = sum(1 for ex in self.exercises if ex.completed)
        current = self.current_exercise
        partial = current.completed_set_count / current.planned_sets if current is not None else 0.0
        return (done + partial) / len(self.exercises) * 100

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def record_set(
        self,
        exercise_index: int,
        set_index: int,
        reps: int,
        weight: float,
    ) -> SetOutcome:
        """
        Log one performed set.

        Args:
            exercise_index: Must be the current exercise
            set_index: 0-based; must be the first set not yet completed
            reps: Performed reps (> 0)
            weight: Load (> 0)

        Returns:
            SetOutcome with the rest period started, or the sets-complete signal

        Raises:
            AlreadyFinalizedError: Session already finalized
            InvalidSequenceError: Wrong exercise, out-of-order set, or no current exercise
            InvalidInputError: Bad reps/weight
        """
        self._ensure_open()
        current = self.current_exercise
        if current is None:
            raise InvalidSequenceError("No exercise is in progress; finalize the session")
        if exercise_index != self.current_exercise_index:
            raise InvalidSequenceError(
                f"Exercise {exercise_index} is not current (current is {self.current_exercise_index})"
            )
        if set_index < 0 or set_index >= current.planned_sets:
            raise InvalidSequenceError(
                f"{current.exercise_name} has no set index {set_index}"
            )
        expected = current.next_set_index
        if expected is None:
            raise InvalidSequenceError(f"All sets of {current.exercise_name} are already logged")
        if set_index != expected:
            raise InvalidSequenceError(
                f"Set {set_index + 1} of {current.exercise_name} cannot be logged "
                f"before set {expected + 1}"
            )
        reps, weight = validate_set_values(reps, weight)

        current.sets[set_index].complete(reps, weight, self._clock())

        if set_index < current.planned_sets - 1:
            if self.rest_timer is not None:
                self.rest_timer.start(current.planned_rest_seconds)
            return SetOutcome(exercise_index, set_index, current.planned_rest_seconds, False)
        return SetOutcome(exercise_index, set_index, None, True)

    def confirm_exercise_complete(self) -> None:
        """
        Mark the current exercise completed and move to the next one.

        Raises:
            InvalidSequenceError: If the current exercise still has open sets
        """
        self._ensure_open()
        current = self.current_exercise
        if current is None:
            raise InvalidSequenceError("No exercise is in progress; finalize the session")
        if not current.all_sets_completed:
            remaining = current.planned_sets - current.completed_set_count
            raise InvalidSequenceError(
                f"{current.exercise_name} still has {remaining} set(s) to log"
            )
        current.completed = True
        self._advance()

    def skip_exercise(self) -> None:
        """
        Leave the current exercise unfinished and move on.

        Partial sets stay in the snapshot; the exercise stays not completed.
        """
        self._ensure_open()
        current = self.current_exercise
        if current is None:
            raise InvalidSequenceError("No exercise is in progress; finalize the session")
        if self.rest_timer is not None:
            self.rest_timer.cancel()
        current.skipped = True
        self._advance()

    def finalize(self, now_fn: Callable[[], datetime] | None = None) -> SessionRecord:
        """
        Close the session and build its immutable record.

        May be called before every exercise is done (finishing early).

        Args:
            now_fn: Clock for the end time (defaults to the session clock)

        Returns:
            The SessionRecord

        Raises:
            AlreadyFinalizedError: If called a second time
            InvalidSequenceError: If the session was abandoned
        """
        self._ensure_open()
        if self.rest_timer is not None:
            self.rest_timer.cancel()

        end_time = (now_fn or self._clock)()
        self._record = SessionRecord(
            session_id=uuid.uuid4().hex,
            user_id=self.user_id,
            start_time=self.started_at,
            end_time=end_time,
            duration_minutes=duration_minutes(self.started_at, end_time),
            total_volume=self.total_volume,
            total_sets=self.total_sets,
            total_reps=self.total_reps,
            exercises=tuple(ExerciseSnapshot.of(ex) for ex in self.exercises),
            routine_id=self.routine_id,
            routine_name=self.routine_name,
            workout_day_number=self.day_number,
            workout_day_name=self.day_name,
        )
        self._terminal = "finalized"
        return self._record

    def abandon(self) -> None:
        """Close the session without producing a record."""
        self._ensure_open()
        if self.rest_timer is not None:
            self.rest_timer.cancel()
        self._terminal = "abandoned"

    def _advance(self) -> None:
        if self.current_exercise_index < len(self.exercises) - 1:
            self.current_exercise_index += 1
        else:
            self._finalizing = True

    def _ensure_open(self) -> None:
        if self._terminal == "finalized":
            raise AlreadyFinalizedError("Session is already finalized")
        if self._terminal == "abandoned":
            raise InvalidSequenceError("Session was abandoned")
