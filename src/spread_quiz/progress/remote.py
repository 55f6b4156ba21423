"""HTTP client for the progress and teacher endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

import requests

from .snapshot import AnswerHistoryRecord

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "ProgressClient",
    "ProgressSyncError",
    "RemoteProgress",
]

DEFAULT_TIMEOUT_SECONDS = 10.0

_LOGGER = logging.getLogger("spread_quiz.progress.remote")


class ProgressSyncError(RuntimeError):
    """Raised when a remote progress call fails for any reason."""

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class RemoteProgress:
    """Answer rows (ordered by answer time) and study days for one user."""

    answers: tuple[AnswerHistoryRecord, ...]
    study_days: tuple[str, ...]


class ProgressClient:
    """Thin wrapper over ``requests`` for the quiz server API.

    Calls are made once; failures surface as :class:`ProgressSyncError` and
    the caller decides how to report them.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._logger = logger or _LOGGER

    @property
    def base_url(self) -> str:
        return self._base_url

    def push(
        self,
        user_key: str,
        history: Iterable[AnswerHistoryRecord],
        study_dates: Iterable[str],
    ) -> None:
        """Replace the server-side answers for ``user_key``."""
        payload = {
            "userKey": user_key,
            "answers": [record.to_dict() for record in history],
            "studyDates": sorted(set(study_dates)),
        }
        self._request("POST", "/api/progress", json=payload)
        self._logger.info(
            "Pushed progress",
            extra={"user_key": user_key, "answers": len(payload["answers"])},
        )

    def pull(self, user_key: str) -> RemoteProgress:
        data = self._request(
            "GET", "/api/progress", params={"userKey": user_key}
        )
        rows = data.get("answers") or []
        answers = tuple(_record_from_row(row) for row in rows)
        days = tuple(str(day) for day in data.get("studyDays") or [])
        return RemoteProgress(answers=answers, study_days=days)

    def fetch_dashboard(self, token: str) -> list[dict[str, Any]]:
        data = self._request("GET", "/api/teacher", params={"token": token})
        users = data.get("users")
        if not isinstance(users, list):
            raise ProgressSyncError("Malformed dashboard response.")
        return users

    def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> Mapping[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.request(
                method, url, timeout=self._timeout, **kwargs
            )
        except requests.RequestException as exc:
            self._logger.warning(
                "Progress request failed",
                extra={"url": url, "error": str(exc)},
            )
            raise ProgressSyncError(f"Request to {url} failed: {exc}") from exc

        if response.status_code >= 400:
            message = _error_message(response)
            self._logger.warning(
                "Progress request rejected",
                extra={"url": url, "status": response.status_code},
            )
            raise ProgressSyncError(message, status=response.status_code)
        try:
            data = response.json()
        except ValueError as exc:
            raise ProgressSyncError(f"Invalid JSON from {url}") from exc
        if not isinstance(data, dict):
            raise ProgressSyncError(f"Unexpected payload from {url}")
        return data


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}"


def _record_from_row(row: Mapping[str, Any]) -> AnswerHistoryRecord:
    selected = row.get("selected") or []
    return AnswerHistoryRecord(
        question_id=str(row.get("question_id", "")),
        selected=tuple(str(item) for item in selected),
        is_correct=bool(row.get("is_correct")),
        answered_at=str(row.get("answered_at") or ""),
        chapter=row.get("chapter") or None,
        source=row.get("source") or None,
    )
