from __future__ import annotations

import json
from pathlib import Path

import pytest

from spread_quiz.progress import (
    PROGRESS_FILENAME,
    STORAGE_NAMESPACE,
    AnswerHistoryRecord,
    LocalProgressStore,
    ProgressSnapshot,
    ProgressStoreError,
)


def _snapshot(question_id: str = "A1") -> ProgressSnapshot:
    return ProgressSnapshot(
        current_id=question_id,
        history=(
            AnswerHistoryRecord(
                question_id=question_id, selected=("2",), is_correct=True
            ),
        ),
        study_dates=("2024-05-01",),
    )


def test_save_and_load_round_trip_per_user(tmp_path: Path) -> None:
    store = LocalProgressStore.in_directory(tmp_path)

    store.save("taro", _snapshot("A1"))
    store.save("hanako", _snapshot("A2"))

    assert store.path == tmp_path / PROGRESS_FILENAME
    assert store.load("taro") == _snapshot("A1")
    assert store.load("hanako") == _snapshot("A2")
    assert store.load("jiro") is None


def test_file_uses_namespace_and_keeps_other_keys(tmp_path: Path) -> None:
    path = tmp_path / PROGRESS_FILENAME
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
    store = LocalProgressStore(path)

    store.save("taro", _snapshot())

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["theme"] == "dark"
    assert document[STORAGE_NAMESPACE]["taro"]["currentId"] == "A1"
    assert not path.with_name(PROGRESS_FILENAME + ".lock").exists()


def test_missing_file_has_no_users(tmp_path: Path) -> None:
    store = LocalProgressStore.in_directory(tmp_path / "nested")
    assert store.load("taro") is None


def test_save_requires_user_key(tmp_path: Path) -> None:
    store = LocalProgressStore.in_directory(tmp_path)
    with pytest.raises(ProgressStoreError):
        store.save("", _snapshot())


def test_corrupt_file_raises(tmp_path: Path) -> None:
    path = tmp_path / PROGRESS_FILENAME
    path.write_text("{not json", encoding="utf-8")
    store = LocalProgressStore(path)

    with pytest.raises(ProgressStoreError, match="parse"):
        store.load("taro")


def test_non_object_namespace_raises(tmp_path: Path) -> None:
    path = tmp_path / PROGRESS_FILENAME
    path.write_text(json.dumps({STORAGE_NAMESPACE: "broken"}), encoding="utf-8")

    with pytest.raises(ProgressStoreError, match="namespace"):
        LocalProgressStore(path).load("taro")


def test_invalid_stored_snapshot_raises(tmp_path: Path) -> None:
    path = tmp_path / PROGRESS_FILENAME
    path.write_text(
        json.dumps({STORAGE_NAMESPACE: {"taro": {"version": 99}}}),
        encoding="utf-8",
    )

    with pytest.raises(ProgressStoreError, match="taro"):
        LocalProgressStore(path).load("taro")


def test_stale_lock_times_out(tmp_path: Path, monkeypatch) -> None:
    from spread_quiz.progress import local

    monkeypatch.setattr(local, "_LOCK_TIMEOUT_SECONDS", -1.0)
    store = LocalProgressStore.in_directory(tmp_path)
    (tmp_path / (PROGRESS_FILENAME + ".lock")).write_text("", encoding="utf-8")

    with pytest.raises(ProgressStoreError, match="lock"):
        store.save("taro", _snapshot())
