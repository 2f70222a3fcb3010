"""Unit tests for the adaptive state snapshot file."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from app.schemas import StateSnapshot
from datastore.state_store import AdaptiveStateStore, snapshot_from_state, state_from_snapshot
from models.state import BaselineState

SAVED_AT = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_save_writes_public_schema(tmp_path) -> None:
    path = tmp_path / "state.json"
    store = AdaptiveStateStore(path=path)
    state = BaselineState(day_baseline=455.5, night_baseline=None, high_deviation_streak=3)

    store.save(snapshot_from_state(state, saved_at=SAVED_AT))

    payload = json.loads(path.read_text())
    assert payload == {
        "dayBaseline": 455.5,
        "nightBaseline": None,
        "aqHighStreak": 3,
        "savedAt": "2024-01-01T12:00:00Z",
    }


def test_save_and_reload_restores_state(tmp_path) -> None:
    path = tmp_path / "state.json"
    original = BaselineState(day_baseline=470.0, night_baseline=390.0, high_deviation_streak=5)
    AdaptiveStateStore(path=path).save(snapshot_from_state(original, saved_at=SAVED_AT))

    restored = state_from_snapshot(AdaptiveStateStore(path=path).load())

    assert restored.day_baseline == 470.0
    assert restored.night_baseline == 390.0
    assert restored.high_deviation_streak == 5
    assert restored.last_persisted_at == SAVED_AT


def test_missing_file_is_cold_start(tmp_path) -> None:
    store = AdaptiveStateStore(path=tmp_path / "absent.json")

    assert store.load() is None
    assert state_from_snapshot(None) == BaselineState()


def test_corrupt_file_is_logged_and_treated_as_cold_start(tmp_path, caplog) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json")
    store = AdaptiveStateStore(path=path)

    with caplog.at_level(logging.WARNING):
        snapshot = store.load()

    assert snapshot is None
    records = [record for record in caplog.records if record.name == "datastore.state_store"]
    assert records
    assert getattr(records[0], "state_path") == str(path)


def test_invalid_fields_are_rejected(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"dayBaseline": "high", "aqHighStreak": 1, "savedAt": "2024-01-01T00:00:00Z"}))

    assert AdaptiveStateStore(path=path).load() is None


def test_non_positive_baselines_load_as_null() -> None:
    snapshot = StateSnapshot.model_validate(
        {"dayBaseline": -3, "nightBaseline": 0, "aqHighStreak": 0, "savedAt": "2024-01-01T00:00:00Z"}
    )

    assert snapshot.day_baseline is None
    assert snapshot.night_baseline is None


def test_store_without_path_is_memory_only() -> None:
    store = AdaptiveStateStore(path=None)

    store.save(snapshot_from_state(BaselineState(day_baseline=400.0), saved_at=SAVED_AT))

    assert store.load() is None


def test_offsetless_saved_at_loads_as_utc(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text(
        json.dumps({"dayBaseline": 450, "nightBaseline": 390, "aqHighStreak": 0, "savedAt": "2024-01-01T00:00:00"})
    )

    snapshot = AdaptiveStateStore(path=path).load()

    assert snapshot is not None
    assert snapshot.saved_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
