"""File-backed store for per-user progress snapshots.

All users share one JSON file. Snapshots live under a single namespace key
so the file can hold other data without collisions::

    {"spread-quiz-progress": {"<user key>": {...snapshot...}}}
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from .snapshot import ProgressSnapshot, SnapshotError

__all__ = [
    "PROGRESS_FILENAME",
    "STORAGE_NAMESPACE",
    "LocalProgressStore",
    "ProgressStoreError",
]

STORAGE_NAMESPACE = "spread-quiz-progress"
PROGRESS_FILENAME = "progress.json"

_LOCK_SUFFIX = ".lock"
_LOCK_TIMEOUT_SECONDS = 5.0


class ProgressStoreError(RuntimeError):
    """Raised when the local progress file cannot be read or written."""


class LocalProgressStore:
    """Read and write :class:`ProgressSnapshot` records keyed by user."""

    def __init__(self, path: Path, *, namespace: str = STORAGE_NAMESPACE):
        self._path = Path(path)
        self._namespace = namespace

    @classmethod
    def in_directory(cls, directory: Path) -> "LocalProgressStore":
        return cls(Path(directory) / PROGRESS_FILENAME)

    @property
    def path(self) -> Path:
        return self._path

    def load(self, user_key: str) -> Optional[ProgressSnapshot]:
        raw = self._entries(self._read()).get(user_key)
        if raw is None:
            return None
        try:
            return ProgressSnapshot.from_dict(raw)
        except SnapshotError as exc:
            raise ProgressStoreError(
                f"Stored progress for '{user_key}' is invalid: {exc}"
            ) from exc

    def save(self, user_key: str, snapshot: ProgressSnapshot) -> None:
        if not user_key:
            raise ProgressStoreError("A user key is required to save progress.")
        with _FileLock(self._lock_path()):
            document = self._read()
            entries = self._entries(document)
            entries[user_key] = snapshot.to_dict()
            document[self._namespace] = entries
            _atomic_write_json(self._path, document)

    def _lock_path(self) -> Path:
        return self._path.with_name(self._path.name + _LOCK_SUFFIX)

    def _read(self) -> MutableMapping[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ProgressStoreError(
                f"Failed to parse progress file: {self._path}"
            ) from exc
        except OSError as exc:
            raise ProgressStoreError(
                f"Failed to read progress file: {self._path}"
            ) from exc
        if not isinstance(document, dict):
            raise ProgressStoreError(
                f"Progress file must contain a JSON object: {self._path}"
            )
        return document

    def _entries(
        self, document: Mapping[str, Any]
    ) -> MutableMapping[str, Any]:
        entries = document.get(self._namespace) or {}
        if not isinstance(entries, dict):
            raise ProgressStoreError(
                f"Progress namespace '{self._namespace}' is not an object."
            )
        return dict(entries)


class _FileLock:
    """Exclusive-create lock file guarding read-modify-write cycles."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def __enter__(self) -> "_FileLock":
        self._path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + _LOCK_TIMEOUT_SECONDS
        while True:
            try:
                fd = os.open(
                    self._path,
                    os.O_CREAT | os.O_EXCL | os.O_WRONLY,
                )
                os.close(fd)
                return self
            except FileExistsError:
                if time.monotonic() > deadline:
                    raise ProgressStoreError(
                        f"Timed out waiting for progress lock: {self._path}"
                    )
                time.sleep(0.05)

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self._path.unlink(missing_ok=True)


def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(path.parent),
        suffix=".tmp",
    )
    try:
        json.dump(payload, handle, indent=2, ensure_ascii=False, sort_keys=True)
        handle.flush()
        os.fsync(handle.fileno())
    finally:
        handle.close()
    os.replace(handle.name, path)
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
