"""``/api/teacher``: token-guarded aggregate of every learner's progress."""

from __future__ import annotations

import hmac
import logging

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ..dashboard.aggregate import summarize_users
from .models import Answer, StudyDay, User, db

__all__ = ["TOKEN_SETTING", "teacher_bp", "token_matches"]

TOKEN_SETTING = "TEACHER_SECRET_TOKEN"

_LOGGER = logging.getLogger("spread_quiz.server.teacher")

teacher_bp = Blueprint("teacher", __name__, url_prefix="/api")


def token_matches(candidate: str | None, secret: str | None) -> bool:
    """Constant-time comparison; an unset secret never matches."""
    if not secret or candidate is None:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


@teacher_bp.get("/teacher")
def teacher_dashboard():
    secret = current_app.config.get(TOKEN_SETTING)
    if not token_matches(request.args.get("token"), secret):
        _LOGGER.warning("Rejected teacher dashboard request")
        return jsonify({"error": "Unauthorized"}), 401

    try:
        users = db.session.execute(
            db.select(User).order_by(User.created_at.desc())
        ).scalars().all()
        answers = db.session.execute(db.select(Answer)).scalars().all()
        days = db.session.execute(db.select(StudyDay)).scalars().all()
    except SQLAlchemyError:
        _LOGGER.exception("GET /api/teacher failed")
        return jsonify({"error": "Internal server error"}), 500

    stats = summarize_users(
        [user.to_row() for user in users],
        [answer.to_row() for answer in answers],
        [day.to_row() for day in days],
    )
    return jsonify({"users": [item.to_dict() for item in stats]})
