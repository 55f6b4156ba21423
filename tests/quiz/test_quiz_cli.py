from __future__ import annotations

import json
from pathlib import Path

import pytest
from fixtures import COURSE_DOCUMENT, NO_BLOCKS_DOCUMENT, FakeSession
from rich.console import Console

from spread_quiz.progress import LocalProgressStore, ProgressClient
from spread_quiz.quiz import cli as quiz_cli


def make_console() -> Console:
    return Console(record=True, width=120, force_terminal=True)


def _read_records(path: Path) -> list[dict]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines if line.strip()]


def make_provider(commands: list[str]):
    iterator = iter(commands)
    return lambda: next(iterator)


def progress_store(home: Path) -> LocalProgressStore:
    return LocalProgressStore.in_directory(home / "progress")


def test_quiz_saves_progress_for_user(workspace) -> None:
    document = workspace.document(COURSE_DOCUMENT)
    console = make_console()

    exit_code = quiz_cli.main(
        [str(document), "--user", "taro"],
        console=console,
        input_provider=make_provider(["2", "q"]),
    )

    assert exit_code == 0
    output = console.export_text()
    assert "Correct!" in output
    assert "Progress saved on this device." in output

    snapshot = progress_store(workspace.home).load("taro")
    assert snapshot is not None
    assert [record.question_id for record in snapshot.history] == ["A1"]
    assert (workspace.home / "logs" / "quiz.log").exists()


def test_quiz_resume_restores_history(workspace) -> None:
    document = workspace.document(COURSE_DOCUMENT)
    quiz_cli.main(
        [str(document), "--user", "taro"],
        console=make_console(),
        input_provider=make_provider(["1", "q"]),
    )

    console = make_console()
    exit_code = quiz_cli.main(
        [str(document), "--user", "taro", "--resume", "--only-incorrect"],
        console=console,
        input_provider=make_provider(["q"]),
    )

    assert exit_code == 0
    output = console.export_text()
    assert "Saved progress loaded." in output
    assert "A1" in output


def test_quiz_without_user_does_not_save(workspace) -> None:
    document = workspace.document(COURSE_DOCUMENT)

    exit_code = quiz_cli.main(
        [str(document)],
        console=make_console(),
        input_provider=make_provider(["2", "f"]),
    )

    assert exit_code == 0
    assert not (workspace.home / "progress" / "progress.json").exists()


def test_quiz_sync_pulls_then_pushes(workspace) -> None:
    document = workspace.document(COURSE_DOCUMENT)
    session = FakeSession()
    session.respond(200, {"answers": [], "studyDays": []})
    session.respond(200, {"success": True})
    client = ProgressClient("http://quiz.test", session=session)
    console = make_console()

    exit_code = quiz_cli.main(
        [str(document), "--user", "taro", "--sync"],
        console=console,
        input_provider=make_provider(["2", "q"]),
        client=client,
    )

    assert exit_code == 0
    assert [call.method for call in session.calls] == ["GET", "POST"]
    assert "Progress synced to the server." in console.export_text()


def test_quiz_sync_without_remote_is_skipped(workspace) -> None:
    document = workspace.document(COURSE_DOCUMENT)
    console = make_console()

    exit_code = quiz_cli.main(
        [str(document), "--sync"],
        console=console,
        input_provider=make_provider(["q"]),
    )

    assert exit_code == 0
    assert "No remote server configured" in console.export_text()


def test_quiz_chapter_filter(workspace) -> None:
    document = workspace.document(COURSE_DOCUMENT)
    console = make_console()

    exit_code = quiz_cli.main(
        [str(document), "--chapter", "第2章 応用"],
        console=console,
        input_provider=make_provider(["q"]),
    )

    assert exit_code == 0
    assert "A3" in console.export_text()


def test_quiz_unknown_chapter_exits_2(workspace, capsys) -> None:
    document = workspace.document(COURSE_DOCUMENT)

    exit_code = quiz_cli.main(
        [str(document), "--chapter", "第9章"],
        console=make_console(),
        input_provider=make_provider([]),
    )

    assert exit_code == 2
    assert "Unknown chapter" in capsys.readouterr().err


def test_quiz_rejects_document_without_questions(workspace, capsys) -> None:
    document = workspace.document(NO_BLOCKS_DOCUMENT)

    exit_code = quiz_cli.main([str(document)], console=make_console())

    assert exit_code == 1
    assert "No extractable questions" in capsys.readouterr().err


def test_quiz_missing_document_exits_1(workspace, capsys) -> None:
    exit_code = quiz_cli.main(
        [str(workspace.root / "missing.md")], console=make_console()
    )

    assert exit_code == 1
    assert "not found" in capsys.readouterr().err


def test_quiz_requires_a_document(workspace) -> None:
    with pytest.raises(SystemExit) as excinfo:
        quiz_cli.main([], console=make_console())
    assert excinfo.value.code == 2


def test_quiz_document_from_config(workspace) -> None:
    document = workspace.document(COURSE_DOCUMENT)
    workspace.config(f'[quiz]\ndocument = "{document.as_posix()}"\n')
    console = make_console()

    exit_code = quiz_cli.main(
        [], console=console, input_provider=make_provider(["q"])
    )

    assert exit_code == 0
    assert "A1" in console.export_text()


def test_parse_lists_entries(workspace) -> None:
    document = workspace.document(COURSE_DOCUMENT)
    console = make_console()

    assert quiz_cli.parse_main([str(document)], console=console) == 0

    output = console.export_text()
    for question_id in ("A1", "A2", "A3"):
        assert question_id in output
    assert "3 question(s)" in output


def test_parse_exports_jsonl_to_workspace(workspace) -> None:
    document = workspace.document(COURSE_DOCUMENT, name="course.md")
    console = make_console()

    assert quiz_cli.parse_main([str(document), "--jsonl"], console=console) == 0

    target = workspace.home / "exports" / "course.jsonl"
    records = _read_records(target)
    assert [record["id"] for record in records] == ["A1", "A2", "A3"]
    assert [record["questionType"] for record in records] == [
        "choice",
        "ox",
        "multi",
    ]
    assert records[0]["source"] == "公式テキスト p.12"
    assert "Wrote 3 entry(ies)" in console.export_text()


def test_parse_exports_jsonl_with_chapter(workspace, tmp_path) -> None:
    document = workspace.document(COURSE_DOCUMENT)
    target = tmp_path / "out" / "chapter2.jsonl"

    exit_code = quiz_cli.parse_main(
        [str(document), "--jsonl", str(target), "--chapter", "第2章 応用"],
        console=make_console(),
    )

    assert exit_code == 0
    records = _read_records(target)
    assert [record["id"] for record in records] == ["A3"]
    assert records[0]["answerTokens"] == ["1", "3"]


def test_parse_unknown_chapter_fails(workspace, capsys) -> None:
    document = workspace.document(COURSE_DOCUMENT)

    exit_code = quiz_cli.parse_main(
        [str(document), "--chapter", "nope"], console=make_console()
    )

    assert exit_code == 1
    assert "No entries in chapter" in capsys.readouterr().err


def test_quiz_tui_runs_textual_app(workspace, monkeypatch) -> None:
    document = workspace.document(COURSE_DOCUMENT)
    launched = {}

    class StubQuizApp:
        def __init__(self, state, **kwargs):
            launched.update(state=state, **kwargs)

        def run(self) -> None:
            launched["ran"] = True
            launched["state"].begin()
            launched["state"].select("2")

    monkeypatch.setattr(quiz_cli, "QuizApp", StubQuizApp)

    exit_code = quiz_cli.main(
        [str(document), "--tui", "--user", "taro"], console=make_console()
    )

    assert exit_code == 0
    assert launched["ran"] is True
    assert launched["user_key"] == "taro"
    assert launched["store"] is not None
    snapshot = progress_store(workspace.home).load("taro")
    assert snapshot is not None
