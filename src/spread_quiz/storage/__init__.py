"""Object-storage upload utility."""

from __future__ import annotations

from .upload import (
    CONTENT_TYPE,
    UploadError,
    UploadResult,
    build_client,
    upload_content,
)

__all__ = [
    "CONTENT_TYPE",
    "UploadError",
    "UploadResult",
    "build_client",
    "upload_content",
]
