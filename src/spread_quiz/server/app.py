"""Flask application factory for the progress server."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from flask import Flask, jsonify

from ..config import QuizConfig
from .models import db
from .progress import progress_bp
from .teacher import TOKEN_SETTING, teacher_bp
from .upload import STORAGE_CLIENT_EXTENSION, upload_bp

__all__ = ["create_app", "settings_from_config"]

_DEFAULTS: Mapping[str, Any] = {
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "SQLALCHEMY_TRACK_MODIFICATIONS": False,
    TOKEN_SETTING: None,
    "GCS_BUCKET": None,
    "GCP_PROJECT_ID": None,
    "GCP_SERVICE_ACCOUNT_KEY": None,
}


def settings_from_config(config: QuizConfig) -> dict[str, Any]:
    """Translate the resolved CLI configuration into Flask settings."""
    return {
        "SQLALCHEMY_DATABASE_URI": config.database_url,
        TOKEN_SETTING: config.teacher_token,
        "GCS_BUCKET": config.bucket,
        "GCP_PROJECT_ID": config.project_id,
        "GCP_SERVICE_ACCOUNT_KEY": config.service_account_key,
    }


def create_app(
    settings: Optional[Mapping[str, Any]] = None,
    *,
    storage_client: Any = None,
) -> Flask:
    """Build the app, register the API blueprints and create the tables."""

    app = Flask(__name__)
    app.config.from_mapping(_DEFAULTS)
    if settings:
        app.config.from_mapping(settings)
    app.json.ensure_ascii = False

    db.init_app(app)
    app.register_blueprint(progress_bp)
    app.register_blueprint(teacher_bp)
    app.register_blueprint(upload_bp)
    if storage_client is not None:
        app.extensions[STORAGE_CLIENT_EXTENSION] = storage_client

    @app.get("/healthz")
    def healthz():
        return jsonify({"status": "ok"})

    with app.app_context():
        db.create_all()
    return app
