"""
Tests for document storage, session persistence, program files and settings.
"""

import json
from datetime import datetime
from pathlib import Path

import pytest

from liftlog.core.config_loader import load_settings, settings_from_dict
from liftlog.core.errors import PersistenceUnavailableError
from liftlog.core.models import ExercisePrescription
from liftlog.core.session import SessionStateMachine
from liftlog.io.document_store import InMemoryDocumentStore, JsonDocumentStore, split_path
from liftlog.io.program_loader import dict_to_program, load_program
from liftlog.io.serializers import (
    ValidationError,
    dict_to_prescription,
    dict_to_session_record,
    parse_set_entry,
    session_record_to_dict,
)
from liftlog.io.session_repository import SessionRepository, sessions_path

PROGRAMS_DIR = Path(__file__).resolve().parent.parent / "programs"


def _finalized_record(start: datetime = datetime(2026, 10, 19, 18, 0)):
    times = iter([start, start, start, start, start])
    session = SessionStateMachine(
        [
            ExercisePrescription("Bench Press", sets=2, reps="8-12"),
            ExercisePrescription("Row", sets=2),
        ],
        user_id="u1",
        routine_name="Upper",
        day_number=1,
        day_name="Upper A",
        clock=lambda: next(times),
    )
    session.record_set(0, 0, 10, 60)
    session.record_set(0, 1, 8, 62.5)
    session.confirm_exercise_complete()
    session.record_set(1, 0, 12, 40)
    session.skip_exercise()
    return session.finalize(now_fn=lambda: datetime(2026, 10, 19, 18, 47))


# =============================================================================
# Document stores
# =============================================================================


@pytest.fixture(params=["json", "memory"])
def store(request, tmp_path):
    if request.param == "json":
        return JsonDocumentStore(tmp_path)
    return InMemoryDocumentStore()


class TestDocumentStore:
    """Both stores honour the same merge/append contract."""

    def test_missing_document(self, store):
        assert store.get("users/u1") is None

    def test_merge_keeps_other_fields(self, store):
        store.set("users/u1/activity/2026-10-19", {"steps": 100, "water": 2})
        store.set("users/u1/activity/2026-10-19", {"steps": 200})
        assert store.get("users/u1/activity/2026-10-19") == {"steps": 200, "water": 2}

    def test_overwrite_without_merge(self, store):
        store.set("users/u1", {"a": 1, "b": 2})
        store.set("users/u1", {"a": 3}, merge=False)
        assert store.get("users/u1") == {"a": 3}

    def test_append_is_idempotent_by_id(self, store):
        store.append("users/u1/workoutSessions", {"id": "s1", "totalVolume": 10})
        store.append("users/u1/workoutSessions", {"id": "s1", "totalVolume": 10})
        store.append("users/u1/workoutSessions", {"id": "s2", "totalVolume": 20})
        docs = store.list("users/u1/workoutSessions")
        assert [d["id"] for d in docs] == ["s1", "s2"]

    def test_append_without_id_assigns_one(self, store):
        doc_id = store.append("users/u1/workoutSessions", {"totalVolume": 10})
        assert store.list("users/u1/workoutSessions")[0]["id"] == doc_id

    def test_empty_collection(self, store):
        assert store.list("users/u1/workoutSessions") == []

    @pytest.mark.parametrize("path", ["", "/", "users//u1", "users/../etc"])
    def test_invalid_paths(self, path):
        with pytest.raises(ValidationError):
            split_path(path)


class TestJsonDocumentStore:
    """On-disk layout and failure mapping."""

    def test_layout_on_disk(self, tmp_path):
        store = JsonDocumentStore(tmp_path)
        store.set("users/john.doe", {"lastWeekReset": "2026-10-19"})
        store.append("users/john.doe/workoutSessions", {"id": "s1"})

        assert json.loads((tmp_path / "users" / "john.doe.json").read_text()) == {
            "lastWeekReset": "2026-10-19"
        }
        lines = (tmp_path / "users" / "john.doe" / "workoutSessions.jsonl").read_text().splitlines()
        assert len(lines) == 1

    def test_corrupt_document(self, tmp_path):
        (tmp_path / "users").mkdir()
        (tmp_path / "users" / "u1.json").write_text("{not json")
        with pytest.raises(ValidationError):
            JsonDocumentStore(tmp_path).get("users/u1")

    def test_unwritable_root(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = JsonDocumentStore(blocker)
        with pytest.raises(PersistenceUnavailableError):
            store.set("users/u1", {"a": 1})


# =============================================================================
# Session records
# =============================================================================


class TestSessionSerialization:
    """SessionRecord documents and repository round trip."""

    def test_document_fields(self):
        doc = session_record_to_dict(_finalized_record())
        assert doc["workoutDayNumber"] == 1
        assert doc["duration"] == 47
        assert doc["totalSets"] == 3
        assert doc["totalReps"] == 30
        assert doc["totalVolume"] == 10 * 60 + 8 * 62.5 + 12 * 40
        assert doc["completionStatus"] == "completed"
        bench, row = doc["exercises"]
        assert bench["completed"] is True and row["skipped"] is True
        assert row["sets"][1] == {
            "setNumber": 2,
            "targetReps": 10,
            "reps": None,
            "weight": None,
            "completed": False,
            "timestamp": None,
        }

    def test_repository_round_trip(self, tmp_path):
        record = _finalized_record()
        repo = SessionRepository(JsonDocumentStore(tmp_path), "u1")
        repo.append(record)
        repo.append(record)

        loaded = repo.load_all()
        assert len(loaded) == 1
        assert loaded[0] == record

    def test_load_sorted_oldest_first(self):
        store = InMemoryDocumentStore()
        repo = SessionRepository(store, "u1")
        late = _finalized_record(datetime(2026, 10, 19, 18, 0))
        early = _finalized_record(datetime(2026, 10, 12, 18, 0))
        repo.append(late)
        repo.append(early)
        assert [r.date for r in repo.load_all()] == ["2026-10-12", "2026-10-19"]
        assert repo.load_recent(limit=1)[0].date == "2026-10-19"

    def test_missing_field_raises(self):
        with pytest.raises(ValidationError):
            dict_to_session_record({"id": "x", "endTime": "2026-10-19T18:00:00"})

    def test_completed_set_without_weight_raises(self):
        store = InMemoryDocumentStore()
        doc = session_record_to_dict(_finalized_record())
        doc["exercises"][0]["sets"][0]["weight"] = None
        store.append(sessions_path("u1"), doc)
        with pytest.raises(ValidationError):
            SessionRepository(store, "u1").load_all()


# =============================================================================
# Programs
# =============================================================================


class TestPrescriptionParsing:
    """Prescription dicts with camelCase or snake_case keys."""

    def test_camel_case_keys(self):
        rx = dict_to_prescription({
            "exerciseName": "Bench Press",
            "muscleGroup": "chest",
            "sets": "4",
            "reps": "6-8",
            "restTime": "120",
        })
        assert (rx.sets, rx.reps, rx.rest_time, rx.muscle_group) == (4, "6-8", 120, "chest")

    def test_defaults_for_missing_or_bad_values(self):
        rx = dict_to_prescription({"exercise_name": "Plank", "sets": "lots", "rest_time": ""}, index=2)
        assert rx.sets == 3
        assert rx.reps == "10"
        assert rx.rest_time == 60
        assert rx.exercise_id == "exercise-2"
        assert rx.equipment == "bodyweight"

    def test_configured_default_rest(self):
        rx = dict_to_prescription({"exerciseName": "Plank"}, default_rest=90)
        assert rx.rest_time == 90

    def test_name_required(self):
        with pytest.raises(ValidationError):
            dict_to_prescription({"sets": 3})


class TestProgramLoader:
    """YAML programs with numbered days."""

    def test_bundled_program(self):
        program = load_program(PROGRAMS_DIR / "push_pull_legs.yaml")
        assert program.program_id == "push-pull-legs"
        assert [d.day_number for d in program.days] == [1, 2, 3]
        push = program.day(1)
        assert push.name == "Push"
        assert push.exercises[0].exercise_name == "Bench Press"
        assert push.exercises[0].rest_time == 120

    def test_unknown_day(self):
        program = load_program(PROGRAMS_DIR / "push_pull_legs.yaml")
        with pytest.raises(ValueError, match="Valid days: 1, 2, 3"):
            program.day(7)

    def test_duplicate_day_numbers(self):
        data = {"days": [
            {"day": 1, "exercises": [{"exerciseName": "Squat"}]},
            {"day": 1, "exercises": [{"exerciseName": "Bench"}]},
        ]}
        with pytest.raises(ValidationError):
            dict_to_program(data)

    def test_day_without_exercises(self):
        with pytest.raises(ValidationError):
            dict_to_program({"days": [{"day": 1, "exercises": []}]})

    def test_days_default_to_position(self):
        program = dict_to_program({"name": "Mini", "days": [
            {"exercises": [{"exerciseName": "Squat"}]},
            {"exercises": [{"exerciseName": "Bench"}]},
        ]})
        assert [(d.day_number, d.name) for d in program.days] == [(1, "Day 1"), (2, "Day 2")]
        assert program.program_id == "Mini"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("days: [unclosed")
        with pytest.raises(ValidationError):
            load_program(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_program(tmp_path / "nope.yaml")


# =============================================================================
# Set entry parsing
# =============================================================================


class TestParseSetEntry:
    """Typed set entries: reps first, then weight."""

    @pytest.mark.parametrize("raw,expected", [
        ("10 60", (10.0, 60.0)),
        ("10@60", (10.0, 60.0)),
        ("8x62.5", (8.0, 62.5)),
        ("  12   40kg ", (12.0, 40.0)),
        ("5 X 100", (5.0, 100.0)),
    ])
    def test_accepted_forms(self, raw, expected):
        assert parse_set_entry(raw) == expected

    @pytest.mark.parametrize("raw", ["10", "ten 60", "10 60 70", ""])
    def test_rejected(self, raw):
        with pytest.raises(ValidationError):
            parse_set_entry(raw)


# =============================================================================
# Settings
# =============================================================================


class TestSettings:
    """settings.yaml overrides merged over the defaults."""

    def test_defaults_without_files(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        settings = load_settings(tmp_path / "data")
        assert settings.goals["steps"] == 10000
        assert settings.weekly_workouts_goal == 5
        assert settings.user_id == "local"

    def test_data_dir_overrides_home(self, tmp_path, monkeypatch):
        home = tmp_path / "home"
        (home / ".liftlog").mkdir(parents=True)
        (home / ".liftlog" / "settings.yaml").write_text(
            "user_id: alice\ngoals:\n  steps: 12000\n  water: 10\n"
        )
        data = tmp_path / "data"
        data.mkdir()
        (data / "settings.yaml").write_text("goals:\n  steps: 9000\ndefault_rest_seconds: 90\n")
        monkeypatch.setenv("HOME", str(home))

        settings = load_settings(data)
        assert settings.user_id == "alice"
        assert settings.goals["steps"] == 9000
        assert settings.goals["water"] == 10
        assert settings.default_rest_seconds == 90

    def test_malformed_file_warns(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / "settings.yaml").write_text("goals: [unclosed")
        with pytest.warns(UserWarning):
            settings = load_settings(tmp_path)
        assert settings.goals["steps"] == 10000

    def test_invalid_values_dropped_with_warning(self):
        with pytest.warns(UserWarning):
            settings = settings_from_dict({"goals": {"steps": -5, "mood": 3}, "weekly_workouts_goal": "x"})
        assert settings.goals["steps"] == 10000
        assert "mood" not in settings.goals
        assert settings.weekly_workouts_goal == 5
