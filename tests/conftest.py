from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fixtures import (  # noqa: E402
    FakeSession,
    FakeStorageClient,
    WorkspaceBuilder,
)

from spread_quiz.server import create_app, db  # noqa: E402

_ISOLATED_ENV = (
    "SPREAD_QUIZ_DATA_HOME",
    "SPREAD_QUIZ_CONFIG",
    "SPREAD_QUIZ_DOCUMENT",
    "SPREAD_QUIZ_USER_KEY",
    "SPREAD_QUIZ_REMOTE_URL",
    "SPREAD_QUIZ_DATABASE_URL",
    "SPREAD_QUIZ_LOG_LEVEL",
    "TEACHER_SECRET_TOKEN",
    "GCS_BUCKET",
    "GCP_PROJECT_ID",
    "GCP_SERVICE_ACCOUNT_KEY",
)

TEACHER_TOKEN = "teacher-s3cret"
BUCKET = "spread-quiz-test"


@pytest.fixture(autouse=True)
def _isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Keep every test away from the real home directory and secrets."""

    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SPREAD_QUIZ_DATA_HOME", str(tmp_path / "data-home"))
    yield


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def storage_client() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def app(storage_client: FakeStorageClient):
    application = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "TEACHER_SECRET_TOKEN": TEACHER_TOKEN,
            "GCS_BUCKET": BUCKET,
        },
        storage_client=storage_client,
    )
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
