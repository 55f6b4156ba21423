from __future__ import annotations

import pytest
import requests
from fixtures import COURSE_DOCUMENT, FakeSession

from spread_quiz.parser import parse_spread_markdown
from spread_quiz.progress import (
    LocalProgressStore,
    ProgressClient,
    ProgressStoreError,
)
from spread_quiz.quiz.persistence import (
    load_local,
    pull_remote,
    push_remote,
    save_local,
)
from spread_quiz.quiz.state import QuizState


@pytest.fixture
def state() -> QuizState:
    quiz = QuizState(parse_spread_markdown(COURSE_DOCUMENT))
    quiz.begin()
    quiz.select("2")
    return quiz


def test_save_then_load_local(tmp_path, state: QuizState) -> None:
    store = LocalProgressStore.in_directory(tmp_path)

    notice = save_local(state, store, "taro")
    assert notice.level == "info"

    restored = QuizState(parse_spread_markdown(COURSE_DOCUMENT))
    notice = load_local(restored, store, "taro")
    assert notice.message == "Saved progress loaded."
    assert set(restored.history) == {"A1"}


def test_load_local_without_data(tmp_path, state: QuizState) -> None:
    store = LocalProgressStore.in_directory(tmp_path)
    notice = load_local(state, store, "nobody")
    assert notice.level == "warning"
    assert "No saved progress" in notice.message


def test_missing_user_key_warns(tmp_path, state: QuizState) -> None:
    store = LocalProgressStore.in_directory(tmp_path)
    for action in (save_local, load_local):
        notice = action(state, store, "")
        assert notice.level == "warning"
        assert "user key" in notice.message


def test_store_failure_becomes_error_notice(state: QuizState) -> None:
    class BrokenStore:
        def save(self, user_key, snapshot):  # noqa: ANN001
            raise ProgressStoreError("disk full")

    notice = save_local(state, BrokenStore(), "taro")

    assert notice.level == "error"
    assert "disk full" in notice.message
    assert set(state.history) == {"A1"}


def test_push_remote_sends_history(state: QuizState) -> None:
    session = FakeSession()
    session.respond(200, {"success": True})
    client = ProgressClient("http://quiz.test/", session=session)

    notice = push_remote(state, client, "taro")

    assert notice.message == "Progress synced to the server."
    call = session.calls[0]
    assert call.method == "POST"
    assert call.url == "http://quiz.test/api/progress"
    payload = call.kwargs["json"]
    assert payload["userKey"] == "taro"
    assert payload["answers"][0]["questionId"] == "A1"
    assert payload["answers"][0]["chapter"] == "第1章 基礎"
    assert payload["studyDates"] == sorted(state.study_dates)


def test_push_remote_network_error_keeps_state(state: QuizState) -> None:
    session = FakeSession()
    session.fail(requests.ConnectionError("refused"))
    client = ProgressClient("http://quiz.test", session=session)

    notice = push_remote(state, client, "taro")

    assert notice.level == "warning"
    assert "Sync failed" in notice.message
    assert set(state.history) == {"A1"}


def test_pull_remote_applies_server_copy(state: QuizState) -> None:
    session = FakeSession()
    session.respond(
        200,
        {
            "answers": [
                {
                    "question_id": "A2",
                    "selected": ["✕"],
                    "is_correct": True,
                    "answered_at": "2024-05-01T09:00:00+09:00",
                    "chapter": "第1章 基礎",
                    "source": None,
                }
            ],
            "studyDays": ["2024-05-01"],
        },
    )
    client = ProgressClient("http://quiz.test", session=session)

    notice = pull_remote(state, client, "taro")

    assert "Loaded 1 answer(s)" in notice.message
    assert set(state.history) == {"A2"}
    assert state.history["A2"].is_correct is True
    assert session.calls[0].kwargs["params"] == {"userKey": "taro"}


def test_pull_remote_with_nothing_stored(state: QuizState) -> None:
    session = FakeSession()
    session.respond(200, {"answers": [], "studyDays": []})
    client = ProgressClient("http://quiz.test", session=session)

    notice = pull_remote(state, client, "taro")

    assert notice.level == "warning"
    assert set(state.history) == {"A1"}
