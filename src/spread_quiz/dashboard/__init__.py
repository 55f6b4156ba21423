"""Teacher dashboard: aggregation and the Rich report."""

from __future__ import annotations

from .aggregate import (
    OTHER_CHAPTER,
    ChapterStats,
    QuestionResult,
    UserStats,
    WrongQuestion,
    percent,
    summarize_user,
    summarize_users,
)

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
