"""Quiz logic: question types, grading, session state and the front ends."""

from __future__ import annotations

from .grading import (
    Option,
    QuestionType,
    derive_options,
    evaluate_answer,
    evaluate_entry,
    infer_question_type,
    question_type_for,
)
from .persistence import load_local, pull_remote, push_remote, save_local
from .session import (
    QuizSessionResult,
    SessionCommand,
    answer_feedback,
    parse_session_command,
    render_question,
    render_summary,
    run_quiz_session,
)
from .state import (
    ALL_CHAPTERS,
    ChapterSummary,
    Notice,
    QuizPhase,
    QuizState,
    QuizStateError,
    QuizSummary,
)
from .view import QuestionView, QuizApp, SummaryView

__all__ = [
    "ALL_CHAPTERS",
    "ChapterSummary",
    "Notice",
    "Option",
    "QuestionType",
    "QuestionView",
    "QuizApp",
    "QuizPhase",
    "QuizSessionResult",
    "QuizState",
    "QuizStateError",
    "QuizSummary",
    "SessionCommand",
    "SummaryView",
    "answer_feedback",
    "derive_options",
    "evaluate_answer",
    "evaluate_entry",
    "infer_question_type",
    "load_local",
    "parse_session_command",
    "pull_remote",
    "push_remote",
    "question_type_for",
    "render_question",
    "render_summary",
    "run_quiz_session",
    "save_local",
]
