from __future__ import annotations

import pytest
import requests
from fixtures import FakeSession

from spread_quiz.progress import (
    AnswerHistoryRecord,
    ProgressClient,
    ProgressSyncError,
)


def _client(session: FakeSession) -> ProgressClient:
    return ProgressClient("http://quiz.test/", timeout=3.0, session=session)


def test_base_url_is_required() -> None:
    with pytest.raises(ValueError):
        ProgressClient("")


def test_push_posts_answers_and_sorted_dates(fake_session: FakeSession) -> None:
    fake_session.respond(200, {"success": True})
    record = AnswerHistoryRecord(
        question_id="A1",
        selected=("2",),
        is_correct=True,
        answered_at="2024-05-01T10:00:00+09:00",
    )

    _client(fake_session).push(
        "taro", [record], ["2024-05-02", "2024-05-01", "2024-05-02"]
    )

    call = fake_session.calls[0]
    assert (call.method, call.url, call.timeout) == (
        "POST",
        "http://quiz.test/api/progress",
        3.0,
    )
    assert call.kwargs["json"] == {
        "userKey": "taro",
        "answers": [record.to_dict()],
        "studyDates": ["2024-05-01", "2024-05-02"],
    }


def test_pull_maps_snake_case_rows(fake_session: FakeSession) -> None:
    fake_session.respond(
        200,
        {
            "answers": [
                {
                    "question_id": "A3",
                    "selected": ["1", "3"],
                    "is_correct": True,
                    "answered_at": "2024-05-01T10:00:00+09:00",
                    "chapter": "第2章 応用",
                    "source": "",
                }
            ],
            "studyDays": ["2024-05-01"],
        },
    )

    progress = _client(fake_session).pull("taro")

    assert progress.study_days == ("2024-05-01",)
    (record,) = progress.answers
    assert record.question_id == "A3"
    assert record.selected == ("1", "3")
    assert record.chapter == "第2章 応用"
    assert record.source is None


def test_error_body_becomes_message(fake_session: FakeSession) -> None:
    fake_session.respond(400, {"error": "userKey is required"})

    with pytest.raises(ProgressSyncError, match="userKey is required") as info:
        _client(fake_session).pull("")
    assert info.value.status == 400


def test_error_without_body_reports_status(fake_session: FakeSession) -> None:
    fake_session.respond(502)

    with pytest.raises(ProgressSyncError, match="HTTP 502"):
        _client(fake_session).pull("taro")


def test_transport_error_is_wrapped(fake_session: FakeSession) -> None:
    fake_session.fail(requests.Timeout("slow"))

    with pytest.raises(ProgressSyncError, match="failed") as info:
        _client(fake_session).pull("taro")
    assert info.value.status is None


def test_invalid_json_is_rejected(fake_session: FakeSession) -> None:
    fake_session.respond(200)

    with pytest.raises(ProgressSyncError, match="Invalid JSON"):
        _client(fake_session).pull("taro")


def test_fetch_dashboard_passes_token(fake_session: FakeSession) -> None:
    fake_session.respond(200, {"users": [{"userKey": "taro"}]})

    users = _client(fake_session).fetch_dashboard("s3cret")

    assert users == [{"userKey": "taro"}]
    call = fake_session.calls[0]
    assert call.url == "http://quiz.test/api/teacher"
    assert call.kwargs["params"] == {"token": "s3cret"}


def test_fetch_dashboard_rejects_malformed(fake_session: FakeSession) -> None:
    fake_session.respond(200, {"users": "nope"})

    with pytest.raises(ProgressSyncError, match="Malformed"):
        _client(fake_session).fetch_dashboard("s3cret")
