"""Progress persistence: snapshot record, local file store, remote client."""

from __future__ import annotations

from .local import (
    PROGRESS_FILENAME,
    STORAGE_NAMESPACE,
    LocalProgressStore,
    ProgressStoreError,
)
from .remote import ProgressClient, ProgressSyncError, RemoteProgress
from .snapshot import (
    ALL_CHAPTERS,
    SNAPSHOT_VERSION,
    AnswerHistoryRecord,
    ProgressSnapshot,
    SnapshotError,
)

__all__ = [
    "ALL_CHAPTERS",
    "PROGRESS_FILENAME",
    "SNAPSHOT_VERSION",
    "STORAGE_NAMESPACE",
    "AnswerHistoryRecord",
    "LocalProgressStore",
    "ProgressClient",
    "ProgressSnapshot",
    "ProgressStoreError",
    "ProgressSyncError",
    "RemoteProgress",
    "SnapshotError",
]
