"""Location and layout of the spread-quiz data directory."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, List, Mapping

__all__ = [
    "DEFAULT_WORKSPACE",
    "SUBDIRECTORIES",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]

WORKSPACE_ENV = "SPREAD_QUIZ_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".spread-quiz-data"
FALLBACK_NAME = "spread-quiz-data"

# config: spread_quiz.toml, logs: JSON logs, progress: local snapshots and
# the server's SQLite file, exports: JSONL dumps from ``parse --jsonl``.
SUBDIRECTORIES = ("config", "logs", "progress", "exports")


class WorkspaceError(RuntimeError):
    """Raised when the data directory cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        if key not in self.directories:
            raise KeyError(f"Unknown workspace directory '{key}'.")
        return self.directories[key]

    def items(self) -> Iterator[tuple[str, Path]]:
        return iter(self.directories.items())


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
) -> WorkspaceLayout:
    """Create the data directory and its subdirectories.

    ``path`` beats ``$SPREAD_QUIZ_DATA_HOME`` which beats the home default.
    Only the home default may fall back to the temp dir when it is not
    writable; a location the user asked for fails loudly instead.
    """

    candidates = _candidates(os.environ if env is None else env, path)
    denied: PermissionError | None = None
    for base in candidates:
        try:
            return _prepare(base)
        except PermissionError as exc:
            denied = exc
    raise WorkspaceError(
        f"Unable to prepare workspace at {candidates[0]}"
    ) from denied


def _candidates(env: Mapping[str, str], path: Path | None) -> List[Path]:
    if path is not None:
        return [Path(path).expanduser().resolve()]
    configured = (env.get(WORKSPACE_ENV) or "").strip()
    if configured:
        return [Path(configured).expanduser().resolve()]
    fallback = Path(tempfile.gettempdir()) / FALLBACK_NAME
    default = DEFAULT_WORKSPACE.expanduser().resolve()
    return [default] if fallback == default else [default, fallback]


def _prepare(base: Path) -> WorkspaceLayout:
    created = {"home": _make_dir(base)}
    directories = {}
    for name in SUBDIRECTORIES:
        directories[name] = base / name
        created[name] = _make_dir(directories[name])
    return WorkspaceLayout(
        home=base,
        directories=MappingProxyType(directories),
        created=MappingProxyType(created),
    )


def _make_dir(path: Path) -> bool:
    """Create ``path`` owner-only and report whether it is new."""

    if path.is_dir():
        return False
    if path.exists():
        raise WorkspaceError(f"Workspace path is not a directory: {path}")
    path.mkdir(parents=True)
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
    return True
