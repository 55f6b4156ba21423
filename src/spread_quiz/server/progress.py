"""``/api/progress``: full-replace answer upload and progress lookup."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from .models import Answer, StudyDay, User, db, utc_now

__all__ = ["progress_bp"]

_LOGGER = logging.getLogger("spread_quiz.server.progress")

progress_bp = Blueprint("progress", __name__, url_prefix="/api")


class _BadPayload(ValueError):
    pass


@progress_bp.post("/progress")
def save_progress():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "JSON object body is required"}), 400
    user_key = str(body.get("userKey") or "").strip()
    if not user_key:
        return jsonify({"error": "userKey is required"}), 400
    try:
        answers = [
            _answer_from_payload(user_key, item)
            for item in _list(body, "answers")
        ]
        study_dates = [str(day) for day in _list(body, "studyDates") if day]
    except _BadPayload as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        user = db.session.execute(
            db.select(User).filter_by(user_key=user_key)
        ).scalar_one_or_none()
        if user is None:
            db.session.add(User(user_key=user_key))

        if answers:
            db.session.execute(
                db.delete(Answer).where(Answer.user_key == user_key)
            )
            db.session.add_all(answers)

        if study_dates:
            known = set(
                db.session.execute(
                    db.select(StudyDay.study_date).filter_by(user_key=user_key)
                ).scalars()
            )
            for day in dict.fromkeys(study_dates):
                if day not in known:
                    db.session.add(StudyDay(user_key=user_key, study_date=day))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        _LOGGER.exception(
            "POST /api/progress failed", extra={"user_key": user_key}
        )
        return jsonify({"error": "Internal server error"}), 500

    _LOGGER.info(
        "Saved progress",
        extra={"user_key": user_key, "answers": len(answers)},
    )
    return jsonify({"success": True})


@progress_bp.get("/progress")
def load_progress():
    user_key = (request.args.get("userKey") or "").strip()
    if not user_key:
        return jsonify({"error": "userKey is required"}), 400
    try:
        user = db.session.execute(
            db.select(User).filter_by(user_key=user_key)
        ).scalar_one_or_none()
        if user is None:
            return jsonify({"answers": [], "studyDays": []})
        answers = db.session.execute(
            db.select(Answer)
            .filter_by(user_key=user_key)
            .order_by(Answer.answered_at.asc(), Answer.id.asc())
        ).scalars().all()
        days = db.session.execute(
            db.select(StudyDay.study_date)
            .filter_by(user_key=user_key)
            .order_by(StudyDay.study_date.asc())
        ).scalars().all()
        rows = []
        for answer in answers:
            row = answer.to_row()
            row.pop("user_key")
            rows.append(row)
        return jsonify({"answers": rows, "studyDays": list(days)})
    except SQLAlchemyError:
        _LOGGER.exception(
            "GET /api/progress failed", extra={"user_key": user_key}
        )
        return jsonify({"error": "Internal server error"}), 500


def _list(body: Mapping[str, Any], key: str) -> list[Any]:
    value = body.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise _BadPayload(f"{key} must be a list")
    return value


def _answer_from_payload(user_key: str, item: Any) -> Answer:
    if not isinstance(item, dict) or not item.get("questionId"):
        raise _BadPayload("Each answer needs a questionId")
    selected = item.get("selected") or []
    if isinstance(selected, str):
        selected = [selected]
    return Answer(
        user_key=user_key,
        question_id=str(item["questionId"]),
        selected=[str(value) for value in selected],
        is_correct=bool(item.get("isCorrect")),
        answered_at=str(item.get("answeredAt") or utc_now().isoformat()),
        chapter=item.get("chapter") or None,
        source=item.get("source") or None,
    )
