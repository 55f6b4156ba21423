"""Versioned record of a learner's locally saved quiz progress.

Version history:

* 1 - unversioned blobs: ``history`` items keyed by ``id`` with no answer
  time, no ``studyDates``, and the chapter filter stored as ``すべて``.
* 2 - explicit ``version`` field, ``questionId``/``answeredAt`` history
  items and ``studyDates``.

:meth:`ProgressSnapshot.from_dict` upgrades older payloads and fills any
missing field with its default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

__all__ = [
    "ALL_CHAPTERS",
    "SNAPSHOT_VERSION",
    "AnswerHistoryRecord",
    "ProgressSnapshot",
    "SnapshotError",
]

SNAPSHOT_VERSION = 2
ALL_CHAPTERS = "all"

_LEGACY_ALL_CHAPTERS = {"すべて", "全て", ""}


class SnapshotError(ValueError):
    """Raised when a stored payload cannot be turned into a snapshot."""


@dataclass(frozen=True)
class AnswerHistoryRecord:
    """The latest attempt at one question."""

    question_id: str
    selected: tuple[str, ...]
    is_correct: bool
    answered_at: str = ""
    chapter: Optional[str] = None
    source: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "questionId": self.question_id,
            "selected": list(self.selected),
            "isCorrect": self.is_correct,
            "answeredAt": self.answered_at,
            "chapter": self.chapter,
            "source": self.source,
        }

    @classmethod
    def from_dict(
        cls, payload: Mapping[str, Any], *, default_time: str = ""
    ) -> "AnswerHistoryRecord":
        question_id = payload.get("questionId", payload.get("id"))
        if question_id is None or str(question_id) == "":
            raise SnapshotError("History item is missing its question id.")
        selected = payload.get("selected") or []
        if isinstance(selected, str):
            selected = [selected]
        return cls(
            question_id=str(question_id),
            selected=tuple(str(item) for item in selected),
            is_correct=bool(payload.get("isCorrect", False)),
            answered_at=str(payload.get("answeredAt") or default_time),
            chapter=_optional_str(payload.get("chapter")),
            source=_optional_str(payload.get("source")),
        )


@dataclass(frozen=True)
class ProgressSnapshot:
    current_id: Optional[str] = None
    history: tuple[AnswerHistoryRecord, ...] = ()
    selected_chapter: str = ALL_CHAPTERS
    only_incorrect: bool = False
    study_dates: tuple[str, ...] = ()
    saved_at: str = ""
    version: int = field(default=SNAPSHOT_VERSION, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            "currentId": self.current_id,
            "history": [record.to_dict() for record in self.history],
            "selectedChapter": self.selected_chapter,
            "onlyIncorrect": self.only_incorrect,
            "studyDates": list(self.study_dates),
            "savedAt": self.saved_at,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ProgressSnapshot":
        if not isinstance(payload, Mapping):
            raise SnapshotError("Progress snapshot must be a mapping.")
        version = payload.get("version", 1)
        if not isinstance(version, int) or version < 1:
            raise SnapshotError(f"Invalid snapshot version: {version!r}")
        if version > SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Snapshot version {version} is newer than supported "
                f"version {SNAPSHOT_VERSION}."
            )

        saved_at = str(payload.get("savedAt") or "")
        raw_history = payload.get("history") or []
        if not isinstance(raw_history, list):
            raise SnapshotError("Snapshot history must be a list.")
        history = _dedupe_history(
            AnswerHistoryRecord.from_dict(item, default_time=saved_at)
            for item in raw_history
            if isinstance(item, Mapping)
        )

        chapter = str(payload.get("selectedChapter") or ALL_CHAPTERS)
        if chapter in _LEGACY_ALL_CHAPTERS:
            chapter = ALL_CHAPTERS

        dates = payload.get("studyDates") or []
        if not isinstance(dates, list):
            raise SnapshotError("Snapshot studyDates must be a list.")

        current = payload.get("currentId")
        return cls(
            current_id=str(current) if current else None,
            history=history,
            selected_chapter=chapter,
            only_incorrect=payload.get("onlyIncorrect") is True,
            study_dates=tuple(sorted({str(day) for day in dates})),
            saved_at=saved_at,
            version=SNAPSHOT_VERSION,
        )


def _dedupe_history(
    records: Iterable[AnswerHistoryRecord],
) -> tuple[AnswerHistoryRecord, ...]:
    latest: dict[str, AnswerHistoryRecord] = {}
    for record in records:
        latest.pop(record.question_id, None)
        latest[record.question_id] = record
    return tuple(latest.values())


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
