"""``/api/upload``: store a JSON payload in the configured bucket."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from ..storage.upload import UploadError, upload_content

__all__ = ["STORAGE_CLIENT_EXTENSION", "upload_bp"]

STORAGE_CLIENT_EXTENSION = "spread_quiz.storage_client"

_LOGGER = logging.getLogger("spread_quiz.server.upload")

upload_bp = Blueprint("upload", __name__, url_prefix="/api")


@upload_bp.post("/upload")
def upload():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    name = body.get("name")
    content = body.get("content")
    if not name or not content or not isinstance(content, str):
        return jsonify({"error": "name and content are required"}), 400

    bucket = current_app.config.get("GCS_BUCKET")
    if not bucket:
        return jsonify({"error": "GCS_BUCKET is not configured"}), 500

    try:
        result = upload_content(
            str(name),
            content,
            bucket=bucket,
            project_id=current_app.config.get("GCP_PROJECT_ID"),
            service_account_key=current_app.config.get(
                "GCP_SERVICE_ACCOUNT_KEY"
            ),
            client=current_app.extensions.get(STORAGE_CLIENT_EXTENSION),
            logger=_LOGGER,
        )
    except UploadError:
        _LOGGER.exception("POST /api/upload failed", extra={"name": name})
        return jsonify({"error": "Upload failed"}), 500
    return jsonify(result.to_dict())
