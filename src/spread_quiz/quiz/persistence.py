"""Save/load quiz progress and report the outcome as a notice.

Failures never roll back in-memory state: they are logged and surfaced as
a warning notice, and the local snapshot stays the fallback copy.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..progress.local import LocalProgressStore, ProgressStoreError
from ..progress.remote import ProgressClient, ProgressSyncError
from .state import Notice, QuizState

__all__ = [
    "load_local",
    "pull_remote",
    "push_remote",
    "save_local",
]

_LOGGER = logging.getLogger("spread_quiz.quiz")

MISSING_USER_KEY = "Enter a user key (name or email) first."


def save_local(
    state: QuizState,
    store: LocalProgressStore,
    user_key: Optional[str],
    *,
    logger: Optional[logging.Logger] = None,
) -> Notice:
    log = logger or _LOGGER
    if not user_key:
        return state.post_notice(MISSING_USER_KEY, "warning")
    try:
        store.save(user_key, state.to_snapshot())
    except ProgressStoreError as exc:
        log.warning("Local save failed", extra={"error": str(exc)})
        return state.post_notice(f"Saving failed: {exc}", "error")
    log.info(
        "Saved local progress",
        extra={"user_key": user_key, "answers": len(state.history)},
    )
    return state.post_notice("Progress saved on this device.")


def load_local(
    state: QuizState,
    store: LocalProgressStore,
    user_key: Optional[str],
    *,
    logger: Optional[logging.Logger] = None,
) -> Notice:
    log = logger or _LOGGER
    if not user_key:
        return state.post_notice(MISSING_USER_KEY, "warning")
    try:
        snapshot = store.load(user_key)
    except ProgressStoreError as exc:
        log.warning("Local load failed", extra={"error": str(exc)})
        return state.post_notice(f"Loading failed: {exc}", "error")
    if snapshot is None:
        return state.post_notice("No saved progress found.", "warning")
    state.apply_snapshot(snapshot)
    log.info("Loaded local progress", extra={"user_key": user_key})
    return state.post_notice("Saved progress loaded.")


def push_remote(
    state: QuizState,
    client: ProgressClient,
    user_key: Optional[str],
    *,
    logger: Optional[logging.Logger] = None,
) -> Notice:
    log = logger or _LOGGER
    if not user_key:
        return state.post_notice(MISSING_USER_KEY, "warning")
    try:
        client.push(
            user_key, list(state.history.values()), set(state.study_dates)
        )
    except ProgressSyncError as exc:
        log.warning(
            "Remote sync failed",
            extra={"user_key": user_key, "error": str(exc)},
        )
        return state.post_notice(
            f"Sync failed ({exc}); progress kept on this device.", "warning"
        )
    return state.post_notice("Progress synced to the server.")


def pull_remote(
    state: QuizState,
    client: ProgressClient,
    user_key: Optional[str],
    *,
    logger: Optional[logging.Logger] = None,
) -> Notice:
    log = logger or _LOGGER
    if not user_key:
        return state.post_notice(MISSING_USER_KEY, "warning")
    try:
        remote = client.pull(user_key)
    except ProgressSyncError as exc:
        log.warning(
            "Remote load failed",
            extra={"user_key": user_key, "error": str(exc)},
        )
        return state.post_notice(
            f"Could not load server progress ({exc}).", "warning"
        )
    if not remote.answers and not remote.study_days:
        return state.post_notice("No server progress found.", "warning")
    state.apply_remote(remote.answers, remote.study_days)
    return state.post_notice(
        f"Loaded {len(remote.answers)} answer(s) from the server."
    )
