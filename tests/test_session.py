"""
Unit tests for the live session state machine.

Covers set ordering, the two-phase exercise completion, skipping,
finalization totals, and all-or-nothing rejection of bad input.
"""

from datetime import datetime, timedelta

import pytest

from liftlog.core.errors import (
    AlreadyFinalizedError,
    InvalidInputError,
    InvalidSequenceError,
)
from liftlog.core.models import ExercisePrescription, ExerciseProgress, SetLedger
from liftlog.core.rest_timer import RestTimer
from liftlog.core.session import SessionStateMachine, validate_set_values

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


class SteppingClock:
    """Datetime clock that advances a fixed step on every call."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=30)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


def _rx(name: str, sets: int = 3, rest: int = 60, reps: str = "10") -> ExercisePrescription:
    return ExercisePrescription(exercise_name=name, sets=sets, rest_time=rest, reps=reps)


def _session(*prescriptions: ExercisePrescription, **kwargs) -> SessionStateMachine:
    clock = kwargs.pop("clock", SteppingClock(datetime(2026, 3, 2, 18, 0)))
    return SessionStateMachine(list(prescriptions), clock=clock, day_number=1, **kwargs)


def _log_all(session: SessionStateMachine, reps: int, weight: float) -> None:
    exercise = session.current_exercise
    for i in range(exercise.planned_sets):
        session.record_set(session.current_exercise_index, i, reps, weight)


# ---------------------------------------------------------------------------
# SetLedger / ExerciseProgress
# ---------------------------------------------------------------------------


class TestSetLedger:
    """A set completes exactly once; volume counts only completed sets."""

    def test_completes_once(self):
        s = SetLedger(set_number=1)
        at = datetime(2026, 3, 2, 18, 5)
        s.complete(10, 20.0, at)
        assert s.completed and s.completed_at == at
        with pytest.raises(InvalidSequenceError):
            s.complete(8, 25.0, at)
        assert s.reps == 10 and s.weight == 20.0

    def test_volume_zero_until_completed(self):
        s = SetLedger(set_number=2)
        assert s.volume == 0.0
        s.complete(8, 30.0, datetime(2026, 3, 2))
        assert s.volume == 240.0

    def test_set_number_must_be_positive(self):
        with pytest.raises(ValueError):
            SetLedger(set_number=0)


class TestExerciseProgress:
    """Set ledger built up front from the prescription."""

    def test_sets_created_eagerly_and_numbered(self):
        ex = ExerciseProgress.from_prescription(_rx("Squat", sets=4, reps="8-12"), 0)
        assert ex.planned_sets == len(ex.sets) == 4
        assert [s.set_number for s in ex.sets] == [1, 2, 3, 4]
        assert all(s.target_reps == 8 for s in ex.sets)
        assert not ex.completed

    def test_missing_id_gets_positional_default(self):
        ex = ExerciseProgress.from_prescription(_rx("Row"), 2)
        assert ex.exercise_id == "exercise-2"


# ---------------------------------------------------------------------------
# Set recording
# ---------------------------------------------------------------------------


class TestRecordSet:
    """Sets complete in order on the current exercise; bad input changes nothing."""

    def test_in_order_sets_complete_exercise(self):
        session = _session(_rx("Bench", sets=3))
        _log_all(session, 10, 20)
        assert all(s.completed for s in session.exercises[0].sets)
        assert session.state == "exercise_ready"
        assert session.exercises[0].completed is False
        session.confirm_exercise_complete()
        assert session.exercises[0].completed is True

    def test_out_of_order_set_rejected(self):
        session = _session(_rx("Bench", sets=3))
        with pytest.raises(InvalidSequenceError):
            session.record_set(0, 1, 10, 20)
        assert not any(s.completed for s in session.exercises[0].sets)

    def test_recording_same_set_twice_rejected(self):
        session = _session(_rx("Bench", sets=3))
        session.record_set(0, 0, 10, 20)
        with pytest.raises(InvalidSequenceError):
            session.record_set(0, 0, 10, 20)

    def test_non_current_exercise_rejected(self):
        session = _session(_rx("Bench"), _rx("Row"))
        with pytest.raises(InvalidSequenceError):
            session.record_set(1, 0, 10, 20)

    @pytest.mark.parametrize("reps,weight", [
        (0, 20), (-1, 20), (10, 0), (10, -5), (None, 20), (10, None),
        (True, 20), ("10", 20), (8.5, 20), (10, float("nan")),
        (10, float("inf")), (float("inf"), 20),
    ])
    def test_invalid_values_rejected_without_mutation(self, reps, weight):
        session = _session(_rx("Bench"))
        with pytest.raises(InvalidInputError):
            session.record_set(0, 0, reps, weight)
        first = session.exercises[0].sets[0]
        assert first.completed is False and first.reps is None and first.weight is None

    def test_non_final_set_starts_rest(self):
        timer = RestTimer(clock=lambda: 0.0)
        session = _session(_rx("Bench", sets=2, rest=90), rest_timer=timer)
        outcome = session.record_set(0, 0, 10, 20)
        assert outcome.rest_seconds == 90
        assert outcome.exercise_sets_complete is False
        assert timer.state == "running" and timer.remaining_seconds == 90

    def test_final_set_signals_complete_without_rest(self):
        timer = RestTimer(clock=lambda: 0.0)
        session = _session(_rx("Bench", sets=1, rest=90), rest_timer=timer)
        outcome = session.record_set(0, 0, 10, 20)
        assert outcome.rest_seconds is None
        assert outcome.exercise_sets_complete is True
        assert timer.state == "idle"

    def test_integral_float_reps_accepted(self):
        assert validate_set_values(10.0, 62.5) == (10, 62.5)


# ---------------------------------------------------------------------------
# Advancing
# ---------------------------------------------------------------------------


class TestAdvancing:
    """Confirm and skip move the cursor forward."""

    def test_confirm_requires_all_sets(self):
        session = _session(_rx("Bench", sets=2))
        session.record_set(0, 0, 10, 20)
        with pytest.raises(InvalidSequenceError):
            session.confirm_exercise_complete()
        assert session.exercises[0].completed is False
        assert session.current_exercise_index == 0

    def test_confirm_moves_cursor_then_finalizing(self):
        session = _session(_rx("Bench", sets=1), _rx("Row", sets=1))
        _log_all(session, 10, 20)
        session.confirm_exercise_complete()
        assert session.current_exercise_index == 1
        assert session.current_exercise.exercise_name == "Row"
        _log_all(session, 10, 20)
        session.confirm_exercise_complete()
        assert session.state == "finalizing"
        assert session.current_exercise is None
        with pytest.raises(InvalidSequenceError):
            session.record_set(1, 0, 10, 20)

    def test_skip_keeps_partial_sets(self):
        session = _session(_rx("Bench", sets=3), _rx("Row", sets=2))
        session.record_set(0, 0, 10, 50)
        session.skip_exercise()
        assert session.current_exercise_index == 1
        bench = session.exercises[0]
        assert bench.skipped and not bench.completed
        assert bench.completed_set_count == 1

    def test_skip_last_exercise_finalizes(self):
        session = _session(_rx("Bench"))
        session.skip_exercise()
        assert session.state == "finalizing"

    def test_skip_cancels_running_rest(self):
        timer = RestTimer(clock=lambda: 0.0)
        session = _session(_rx("Bench", sets=3), _rx("Row"), rest_timer=timer)
        session.record_set(0, 0, 10, 20)
        session.skip_exercise()
        assert timer.state == "cancelled"

    def test_overall_progress(self):
        session = _session(_rx("Bench", sets=2), _rx("Row", sets=2))
        assert session.overall_progress == 0
        session.record_set(0, 0, 10, 20)
        assert session.overall_progress == pytest.approx(25.0)
        session.record_set(0, 1, 10, 20)
        session.confirm_exercise_complete()
        assert session.overall_progress == pytest.approx(50.0)


# ---------------------------------------------------------------------------
# Finalization
# ---------------------------------------------------------------------------


class TestFinalize:
    """Totals over completed sets; exactly one record per session."""

    def test_two_exercise_example_totals(self):
        session = _session(_rx("Bench", sets=3), _rx("Row", sets=3))
        _log_all(session, 10, 20)
        session.confirm_exercise_complete()
        _log_all(session, 8, 30)
        session.confirm_exercise_complete()
        record = session.finalize()

        assert record.total_sets == 6
        assert record.total_reps == 54
        assert record.total_volume == 1320
        assert record.completion_status == "completed"
        assert [ex.total_volume for ex in record.exercises] == [600, 720]

    def test_volume_counts_only_completed_sets(self):
        session = _session(_rx("Bench", sets=3), _rx("Row", sets=3), _rx("Curl", sets=2))
        session.record_set(0, 0, 5, 100)
        session.record_set(0, 1, 5, 100)
        session.skip_exercise()
        session.record_set(1, 0, 10, 40)
        record = session.finalize()

        assert record.total_volume == 5 * 100 * 2 + 10 * 40
        assert record.total_sets == 3
        assert record.total_reps == 20
        assert record.exercises[0].completed is False
        assert record.exercises[0].skipped is True
        assert len(record.exercises[0].sets) == 3
        assert record.exercises[2].sets[0].completed is False

    def test_duration_rounds_half_up(self):
        start = datetime(2026, 3, 2, 18, 0)
        session = _session(_rx("Bench"), clock=lambda: start)
        record = session.finalize(now_fn=lambda: start + timedelta(minutes=42, seconds=30))
        assert record.duration_minutes == 43
        assert record.start_time == start

    def test_second_finalize_rejected_and_record_unchanged(self):
        session = _session(_rx("Bench"))
        session.record_set(0, 0, 10, 20)
        first = session.finalize()
        with pytest.raises(AlreadyFinalizedError):
            session.finalize()
        assert session.record is first
        assert first.total_volume == 200

    def test_mutations_after_finalize_rejected(self):
        session = _session(_rx("Bench", sets=2))
        session.finalize()
        with pytest.raises(AlreadyFinalizedError):
            session.record_set(0, 0, 10, 20)
        with pytest.raises(AlreadyFinalizedError):
            session.skip_exercise()
        with pytest.raises(AlreadyFinalizedError):
            session.confirm_exercise_complete()

    def test_record_is_immutable(self):
        session = _session(_rx("Bench"))
        record = session.finalize()
        with pytest.raises(AttributeError):
            record.total_volume = 1  # type: ignore[misc]

    def test_record_carries_context(self):
        session = SessionStateMachine(
            [_rx("Bench")],
            user_id="u1",
            routine_id="ppl",
            routine_name="Push Pull Legs",
            day_number=3,
            day_name="Legs",
            clock=SteppingClock(datetime(2026, 3, 2, 18, 0)),
        )
        record = session.finalize()
        assert (record.user_id, record.routine_id, record.workout_day_number) == ("u1", "ppl", 3)
        assert record.workout_day_name == "Legs"
        assert record.date == "2026-03-02"


class TestAbandon:
    """Abandoned sessions produce no record."""

    def test_abandon_produces_no_record(self):
        timer = RestTimer(clock=lambda: 0.0)
        session = _session(_rx("Bench", sets=2), rest_timer=timer)
        session.record_set(0, 0, 10, 20)
        session.abandon()
        assert session.state == "abandoned"
        assert session.record is None
        assert timer.state == "cancelled"
        with pytest.raises(InvalidSequenceError):
            session.finalize()

    def test_empty_prescription_rejected(self):
        with pytest.raises(InvalidInputError):
            SessionStateMachine([])
