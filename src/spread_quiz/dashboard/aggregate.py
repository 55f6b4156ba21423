"""Per-learner statistics for the teacher dashboard.

Pure functions over plain row mappings (``user_key``, ``created_at``,
``question_id``, ``is_correct``, ``chapter``, ``answered_at``,
``study_date``) so the same code serves the HTTP endpoint and tests.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

__all__ = [
    "OTHER_CHAPTER",
    "ChapterStats",
    "QuestionResult",
    "UserStats",
    "WrongQuestion",
    "percent",
    "summarize_user",
    "summarize_users",
]

OTHER_CHAPTER = "other"

Row = Mapping[str, Any]


@dataclass(frozen=True)
class QuestionResult:
    question_id: str
    is_correct: bool

    def to_dict(self) -> dict[str, Any]:
        return {"questionId": self.question_id, "isCorrect": self.is_correct}


@dataclass(frozen=True)
class ChapterStats:
    correct: int
    total: int
    questions: tuple[QuestionResult, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "correct": self.correct,
            "total": self.total,
            "questions": [q.to_dict() for q in self.questions],
        }


@dataclass(frozen=True)
class WrongQuestion:
    question_id: str
    wrong_count: int
    chapter: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "questionId": self.question_id,
            "wrongCount": self.wrong_count,
            "chapter": self.chapter,
        }


@dataclass(frozen=True)
class UserStats:
    user_key: str
    created_at: Optional[str]
    total_answers: int
    correct_answers: int
    accuracy: int
    study_days_count: int
    latest_activity: Optional[str]
    chapter_stats: Dict[str, ChapterStats] = field(default_factory=dict)
    wrong_questions: tuple[WrongQuestion, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "userKey": self.user_key,
            "createdAt": self.created_at,
            "totalAnswers": self.total_answers,
            "correctAnswers": self.correct_answers,
            "accuracy": self.accuracy,
            "studyDaysCount": self.study_days_count,
            "latestActivity": self.latest_activity,
            "chapterStats": {
                name: stats.to_dict()
                for name, stats in self.chapter_stats.items()
            },
            "wrongQuestions": [w.to_dict() for w in self.wrong_questions],
        }


def percent(correct: int, total: int) -> int:
    """Integer percentage rounded half up; 0 when ``total`` is 0."""
    if total <= 0:
        return 0
    return int(correct * 100 / total + 0.5)


def summarize_users(
    users: Iterable[Row],
    answers: Iterable[Row],
    study_days: Iterable[Row],
) -> List[UserStats]:
    """Aggregate every user, newest account first."""

    answers_by_user: Dict[str, List[Row]] = defaultdict(list)
    for row in answers:
        answers_by_user[str(row.get("user_key"))].append(row)
    days_by_user: Dict[str, int] = defaultdict(int)
    for row in study_days:
        days_by_user[str(row.get("user_key"))] += 1

    ordered = sorted(
        users,
        key=lambda row: _sort_time(row.get("created_at")),
        reverse=True,
    )
    return [
        summarize_user(
            user,
            answers_by_user.get(str(user.get("user_key")), ()),
            days_by_user.get(str(user.get("user_key")), 0),
        )
        for user in ordered
    ]


def summarize_user(
    user: Row, answers: Sequence[Row], study_days_count: int
) -> UserStats:
    correct = sum(1 for row in answers if row.get("is_correct"))
    total = len(answers)

    latest: Optional[Row] = None
    for row in answers:
        if latest is None or _sort_time(row.get("answered_at")) > _sort_time(
            latest.get("answered_at")
        ):
            latest = row

    chapters: Dict[str, Dict[str, Any]] = {}
    wrong: Dict[str, Dict[str, Any]] = {}
    for row in answers:
        chapter = row.get("chapter") or OTHER_CHAPTER
        question_id = str(row.get("question_id"))
        is_correct = bool(row.get("is_correct"))
        bucket = chapters.setdefault(
            chapter, {"correct": 0, "total": 0, "questions": []}
        )
        bucket["total"] += 1
        if is_correct:
            bucket["correct"] += 1
        bucket["questions"].append(QuestionResult(question_id, is_correct))
        if not is_correct:
            entry = wrong.setdefault(question_id, {"count": 0, "chapter": chapter})
            entry["count"] += 1

    chapter_stats = {
        name: ChapterStats(
            correct=bucket["correct"],
            total=bucket["total"],
            questions=tuple(
                sorted(bucket["questions"], key=lambda q: q.question_id)
            ),
        )
        for name, bucket in chapters.items()
    }
    wrong_questions = tuple(
        sorted(
            (
                WrongQuestion(qid, data["count"], data["chapter"])
                for qid, data in wrong.items()
            ),
            key=lambda item: item.wrong_count,
            reverse=True,
        )
    )
    created_at = user.get("created_at")
    return UserStats(
        user_key=str(user.get("user_key")),
        created_at=created_at,
        total_answers=total,
        correct_answers=correct,
        accuracy=percent(correct, total),
        study_days_count=study_days_count,
        latest_activity=(latest.get("answered_at") if latest else None)
        or created_at,
        chapter_stats=chapter_stats,
        wrong_questions=wrong_questions,
    )


def _sort_time(value: Any) -> datetime:
    """Parse an ISO timestamp for ordering; unparsable values sort first."""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
