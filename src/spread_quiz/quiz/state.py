"""Quiz session state as an explicit finite state machine.

Phases and triggers::

    start --begin--> quiz --finish--> result
    result --restart--> quiz
    any --reset--> start

Selection and navigation are only accepted in the ``quiz`` phase. All
state lives on :class:`QuizState` and is passed explicitly to the view
and persistence helpers.
"""

from __future__ import annotations

import random
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from ..parser.spread import UNCLASSIFIED, QuestionEntry
from ..progress.snapshot import (
    ALL_CHAPTERS,
    AnswerHistoryRecord,
    ProgressSnapshot,
)
from .grading import (
    Option,
    QuestionType,
    derive_options,
    evaluate_entry,
    question_type_for,
)

__all__ = [
    "ALL_CHAPTERS",
    "ChapterSummary",
    "Notice",
    "QuizPhase",
    "QuizState",
    "QuizStateError",
    "QuizSummary",
]

Clock = Callable[[], datetime]


class QuizStateError(RuntimeError):
    """Raised for a trigger or action the current phase does not accept."""


class QuizPhase(str, Enum):
    START = "start"
    QUIZ = "quiz"
    RESULT = "result"


_TRANSITIONS: Dict[tuple[QuizPhase, str], QuizPhase] = {
    (QuizPhase.START, "begin"): QuizPhase.QUIZ,
    (QuizPhase.QUIZ, "finish"): QuizPhase.RESULT,
    (QuizPhase.RESULT, "restart"): QuizPhase.QUIZ,
    (QuizPhase.START, "reset"): QuizPhase.START,
    (QuizPhase.QUIZ, "reset"): QuizPhase.START,
    (QuizPhase.RESULT, "reset"): QuizPhase.START,
}


@dataclass(frozen=True)
class Notice:
    """A dismissible message for the learner."""

    message: str
    level: str = "info"


@dataclass(frozen=True)
class ChapterSummary:
    chapter: str
    asked: int
    correct: int

    @property
    def accuracy(self) -> float:
        if self.asked == 0:
            return 0.0
        return self.correct / self.asked


@dataclass(frozen=True)
class QuizSummary:
    total_questions: int
    answered_questions: int
    correct_answers: int
    accuracy: float
    per_chapter: Dict[str, ChapterSummary] = field(default_factory=dict)


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class QuizState:
    """Mutable quiz state; ``history`` keeps one record per question id."""

    entries: List[QuestionEntry]
    phase: QuizPhase = QuizPhase.START
    index: int = 0
    selected_chapter: str = ALL_CHAPTERS
    only_incorrect: bool = False
    choice: List[str] = field(default_factory=list)
    show_answer: bool = False
    history: Dict[str, AnswerHistoryRecord] = field(default_factory=dict)
    study_dates: set[str] = field(default_factory=set)
    notice: Optional[Notice] = None
    clock: Clock = field(default=_local_now, repr=False, compare=False)

    # -- transitions -------------------------------------------------------

    def begin(self) -> None:
        if not self.entries:
            raise QuizStateError("No extractable questions to start a quiz.")
        self._transition("begin")
        self._clamp_index()

    def finish(self) -> QuizSummary:
        self._transition("finish")
        self._clear_selection()
        return self.summary()

    def restart(self, *, only_incorrect: Optional[bool] = None) -> None:
        self._transition("restart")
        if only_incorrect is not None:
            self.only_incorrect = only_incorrect
        self.index = 0
        self._clear_selection()

    def reset(self) -> None:
        self._transition("reset")
        self.index = 0
        self.selected_chapter = ALL_CHAPTERS
        self.only_incorrect = False
        self.history.clear()
        self._clear_selection()

    def _transition(self, trigger: str) -> None:
        target = _TRANSITIONS.get((self.phase, trigger))
        if target is None:
            raise QuizStateError(
                f"Cannot {trigger} while in the {self.phase.value} phase."
            )
        self.phase = target

    # -- derived views -----------------------------------------------------

    @property
    def chapters(self) -> List[str]:
        seen: Dict[str, None] = {}
        for entry in self.entries:
            seen.setdefault(entry.chapter or UNCLASSIFIED, None)
        return [ALL_CHAPTERS, *seen]

    @property
    def incorrect_ids(self) -> set[str]:
        return {
            qid for qid, record in self.history.items() if not record.is_correct
        }

    @property
    def filtered_entries(self) -> List[QuestionEntry]:
        entries = self.entries
        if self.selected_chapter != ALL_CHAPTERS:
            entries = [e for e in entries if e.chapter == self.selected_chapter]
        if self.only_incorrect:
            wrong = self.incorrect_ids
            entries = [e for e in entries if e.id in wrong]
        return list(entries)

    @property
    def current(self) -> Optional[QuestionEntry]:
        entries = self.filtered_entries
        if 0 <= self.index < len(entries):
            return entries[self.index]
        return None

    @property
    def question_type(self) -> QuestionType:
        return question_type_for(self.current)

    @property
    def options(self) -> List[Option]:
        return derive_options(self.current, self.question_type)

    @property
    def progress_percent(self) -> int:
        total = len(self.filtered_entries)
        if not total:
            return 0
        return int((self.index + 1) / total * 100 + 0.5)

    # -- actions -----------------------------------------------------------

    def go_next(self) -> None:
        self._require(QuizPhase.QUIZ)
        last = max(len(self.filtered_entries) - 1, 0)
        self.index = min(self.index + 1, last)
        self._clear_selection()

    def go_previous(self) -> None:
        self._require(QuizPhase.QUIZ)
        self.index = max(self.index - 1, 0)
        self._clear_selection()

    def jump_to(self, question_id: str) -> bool:
        for position, entry in enumerate(self.filtered_entries):
            if entry.id == question_id:
                self.index = position
                self._clear_selection()
                return True
        return False

    def set_chapter(self, chapter: str) -> None:
        if chapter not in self.chapters:
            raise QuizStateError(f"Unknown chapter: {chapter}")
        self.selected_chapter = chapter
        self.index = 0
        self._clear_selection()

    def set_only_incorrect(self, enabled: bool) -> None:
        self.only_incorrect = enabled
        self.index = 0
        self._clear_selection()

    def shuffle(self, rng: Optional[random.Random] = None) -> None:
        """Shuffle the filtered entries; unfiltered ones follow unchanged.

        Shuffling starts a fresh pass, so the history is cleared.
        """
        subset = self.filtered_entries
        if not subset:
            return
        picked = {id(entry) for entry in subset}
        (rng or random.Random()).shuffle(subset)
        others = [e for e in self.entries if id(e) not in picked]
        self.entries = subset + others
        self.index = 0
        self.history.clear()
        self._clear_selection()

    def select(self, option_id: str) -> Optional[AnswerHistoryRecord]:
        """Apply a learner selection and record the attempt.

        ``ox``/``choice`` questions replace the selection; ``multi`` toggles
        the option. Returns ``None`` when the option is not offered.
        """
        self._require(QuizPhase.QUIZ)
        entry = self.current
        if entry is None:
            return None
        option_id = option_id.strip()
        offered = {option.id for option in self.options}
        if offered and option_id not in offered:
            return None
        if self.question_type is QuestionType.MULTI:
            if option_id in self.choice:
                self.choice = [c for c in self.choice if c != option_id]
            else:
                self.choice = [*self.choice, option_id]
        else:
            self.choice = [option_id]
        self.show_answer = True
        return self.record(entry, self.choice)

    def record(
        self, entry: QuestionEntry, selected: Sequence[str]
    ) -> AnswerHistoryRecord:
        now = self.clock()
        record = AnswerHistoryRecord(
            question_id=entry.id,
            selected=tuple(selected),
            is_correct=evaluate_entry(entry, selected),
            answered_at=now.isoformat(),
            chapter=entry.chapter,
            source=entry.source,
        )
        self.history.pop(entry.id, None)
        self.history[entry.id] = record
        self.study_dates.add(now.date().isoformat())
        return record

    def toggle_answer(self) -> bool:
        self.show_answer = not self.show_answer
        return self.show_answer

    def post_notice(self, message: str, level: str = "info") -> Notice:
        self.notice = Notice(message, level)
        return self.notice

    def dismiss_notice(self) -> None:
        self.notice = None

    # -- summaries and snapshots -------------------------------------------

    def summary(self) -> QuizSummary:
        known = {entry.id: entry for entry in self.entries}
        per_chapter: Dict[str, Dict[str, int]] = defaultdict(
            lambda: {"asked": 0, "correct": 0}
        )
        correct = 0
        for qid, record in self.history.items():
            entry = known.get(qid)
            chapter = entry.chapter if entry else (record.chapter or UNCLASSIFIED)
            per_chapter[chapter]["asked"] += 1
            if record.is_correct:
                per_chapter[chapter]["correct"] += 1
                correct += 1
        answered = len(self.history)
        return QuizSummary(
            total_questions=len(self.entries),
            answered_questions=answered,
            correct_answers=correct,
            accuracy=(correct / answered) if answered else 0.0,
            per_chapter={
                name: ChapterSummary(name, counts["asked"], counts["correct"])
                for name, counts in per_chapter.items()
            },
        )

    def to_snapshot(self) -> ProgressSnapshot:
        current = self.current
        return ProgressSnapshot(
            current_id=current.id if current else None,
            history=tuple(self.history.values()),
            selected_chapter=self.selected_chapter,
            only_incorrect=self.only_incorrect,
            study_dates=tuple(sorted(self.study_dates)),
            saved_at=self.clock().isoformat(),
        )

    def apply_snapshot(self, snapshot: ProgressSnapshot) -> None:
        """Restore saved progress; unknown chapters fall back to ``all``."""
        self.history = {record.question_id: record for record in snapshot.history}
        self.selected_chapter = (
            snapshot.selected_chapter
            if snapshot.selected_chapter in self.chapters
            else ALL_CHAPTERS
        )
        self.only_incorrect = snapshot.only_incorrect
        self.study_dates = set(snapshot.study_dates)
        self.index = 0
        if snapshot.current_id:
            self.jump_to(snapshot.current_id)
        self._clear_selection()

    def apply_remote(
        self,
        answers: Sequence[AnswerHistoryRecord],
        study_days: Sequence[str],
    ) -> None:
        """Replace history and study days with the server copy."""
        self.history = {}
        for record in answers:
            self.history.pop(record.question_id, None)
            self.history[record.question_id] = record
        self.study_dates = set(study_days)
        self._clamp_index()

    # -- helpers -----------------------------------------------------------

    def _require(self, phase: QuizPhase) -> None:
        if self.phase is not phase:
            raise QuizStateError(
                f"Action requires the {phase.value} phase, "
                f"currently {self.phase.value}."
            )

    def _clear_selection(self) -> None:
        self.choice = []
        self.show_answer = False

    def _clamp_index(self) -> None:
        last = max(len(self.filtered_entries) - 1, 0)
        self.index = min(max(self.index, 0), last)
