"""Upload a JSON document to a Google Cloud Storage bucket."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

__all__ = [
    "CONTENT_TYPE",
    "UploadError",
    "UploadResult",
    "build_client",
    "upload_content",
]

CONTENT_TYPE = "application/json"

_LOGGER = logging.getLogger("spread_quiz.storage")


class UploadError(RuntimeError):
    """Raised when the bucket is not configured or the upload fails."""


@dataclass(frozen=True)
class UploadResult:
    message: str
    path: str

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "path": self.path}


def build_client(
    *,
    project_id: Optional[str] = None,
    service_account_key: Optional[str] = None,
) -> storage.Client:
    """Create a storage client from an inline service-account JSON key.

    Without a key the library's default credentials are used. The project
    falls back to the key's ``project_id``.
    """
    if service_account_key:
        try:
            info = json.loads(service_account_key)
        except ValueError as exc:
            raise UploadError("Service account key is not valid JSON.") from exc
        return storage.Client.from_service_account_info(
            info, project=project_id or info.get("project_id")
        )
    return storage.Client(project=project_id)


def upload_content(
    name: str,
    content: str,
    *,
    bucket: Optional[str],
    project_id: Optional[str] = None,
    service_account_key: Optional[str] = None,
    client: Any = None,
    logger: Optional[logging.Logger] = None,
) -> UploadResult:
    log = logger or _LOGGER
    if not name or not content:
        raise ValueError("name and content are required")
    if not bucket:
        raise UploadError("GCS_BUCKET is not configured.")

    try:
        if client is None:
            client = build_client(
                project_id=project_id,
                service_account_key=service_account_key,
            )
        blob = client.bucket(bucket).blob(name)
        blob.upload_from_string(content, content_type=CONTENT_TYPE)
    except (
        gcloud_exceptions.GoogleAPIError,
        auth_exceptions.GoogleAuthError,
    ) as exc:
        log.warning(
            "Upload failed",
            extra={"bucket": bucket, "name": name, "error": str(exc)},
        )
        raise UploadError(f"Upload to gs://{bucket}/{name} failed: {exc}") from exc

    log.info("Uploaded object", extra={"bucket": bucket, "name": name})
    return UploadResult(
        message=f"Uploaded to gs://{bucket}/{name}",
        path=f"{bucket}/{name}",
    )
