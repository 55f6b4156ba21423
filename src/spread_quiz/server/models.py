"""SQLAlchemy models for learners, answer rows and study days."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from flask_sqlalchemy import SQLAlchemy

__all__ = ["Answer", "StudyDay", "User", "db", "utc_now"]

db = SQLAlchemy()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    user_key = db.Column(db.String(255), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    def to_row(self) -> dict[str, Any]:
        return {
            "user_key": self.user_key,
            "created_at": _isoformat(self.created_at),
        }


class Answer(db.Model):
    """One answer row; a push replaces every row of the user."""

    __tablename__ = "answers"

    id = db.Column(db.Integer, primary_key=True)
    user_key = db.Column(db.String(255), nullable=False, index=True)
    question_id = db.Column(db.String(255), nullable=False)
    selected = db.Column(db.JSON, nullable=False, default=list)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    # Client timestamps are kept verbatim so ordering matches the learner.
    answered_at = db.Column(db.String(64), nullable=False)
    chapter = db.Column(db.String(255), nullable=True)
    source = db.Column(db.Text, nullable=True)

    def to_row(self) -> dict[str, Any]:
        return {
            "user_key": self.user_key,
            "question_id": self.question_id,
            "selected": list(self.selected or []),
            "is_correct": bool(self.is_correct),
            "answered_at": self.answered_at,
            "chapter": self.chapter,
            "source": self.source,
        }


class StudyDay(db.Model):
    __tablename__ = "study_days"
    __table_args__ = (
        db.UniqueConstraint("user_key", "study_date", name="uq_study_day"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_key = db.Column(db.String(255), nullable=False, index=True)
    study_date = db.Column(db.String(10), nullable=False)

    def to_row(self) -> dict[str, Any]:
        return {"user_key": self.user_key, "study_date": self.study_date}


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()
