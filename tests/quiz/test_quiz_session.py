from __future__ import annotations

from fixtures import COURSE_DOCUMENT, FakeSession
from rich.console import Console

from spread_quiz.parser import parse_spread_markdown
from spread_quiz.progress import LocalProgressStore, ProgressClient
from spread_quiz.quiz.session import (
    SessionCommand,
    parse_session_command,
    run_quiz_session,
)
from spread_quiz.quiz.state import QuizPhase, QuizState


def make_provider(commands: list[str]):
    iterator = iter(commands)

    def _provider() -> str:
        return next(iterator)

    return _provider


def make_console() -> Console:
    return Console(record=True, width=100, force_terminal=True)


def make_state() -> QuizState:
    return QuizState(parse_spread_markdown(COURSE_DOCUMENT))


def test_parse_session_command_variants() -> None:
    assert parse_session_command("2") == SessionCommand("select", "2")
    assert parse_session_command("o") == SessionCommand("select", "〇")
    assert parse_session_command("×") == SessionCommand("select", "✕")
    assert parse_session_command("  Next ") == SessionCommand("next")
    assert parse_session_command("p") == SessionCommand("prev")
    assert parse_session_command("submit") == SessionCommand("finish")
    assert parse_session_command("c 第2章 応用") == SessionCommand(
        "chapter", "第2章 応用"
    )
    assert parse_session_command("chapter") == SessionCommand("chapter", "all")
    assert parse_session_command("q") == SessionCommand("quit")
    assert parse_session_command(None) is None
    assert parse_session_command("") is None
    assert parse_session_command("?unknown") is None


def test_finish_flow_renders_summary() -> None:
    console = make_console()
    state = make_state()

    result = run_quiz_session(
        state, console, make_provider(["2", "n", "x", "n", "1", "3", "f"])
    )

    assert result.exit_action == "finished"
    assert state.phase is QuizPhase.RESULT
    assert result.summary.answered_questions == 3
    assert result.summary.correct_answers == 3
    rendered = console.export_text()
    assert "Quiz Summary" in rendered
    assert "光と熱を避けて保管する。" in rendered
    assert "Correct!" in rendered


def test_quit_flow_keeps_quiz_phase() -> None:
    console = make_console()
    state = make_state()

    result = run_quiz_session(state, console, make_provider(["1", "q"]))

    assert result.exit_action == "quit"
    assert state.phase is QuizPhase.QUIZ
    assert result.summary.answered_questions == 1
    rendered = console.export_text()
    assert "Incorrect. The answer is 2" in rendered
    assert "Ending session" in rendered
    assert "Quiz Summary" not in rendered


def test_hidden_explanations() -> None:
    console = make_console()
    run_quiz_session(
        make_state(),
        console,
        make_provider(["2", "q"]),
        show_explanations=False,
    )
    assert "光と熱を避けて保管する。" not in console.export_text()


def test_invalid_input_and_option() -> None:
    console = make_console()
    state = make_state()

    run_quiz_session(state, console, make_provider(["??", "9", "q"]))

    rendered = console.export_text()
    assert "Unrecognized command" in rendered
    assert "'9' is not an option here." in rendered
    assert state.history == {}


def test_end_of_input_interrupts_session() -> None:
    console = make_console()
    result = run_quiz_session(make_state(), console, make_provider(["2"]))
    assert result.exit_action == "quit"
    assert "Session interrupted" in console.export_text()


def test_empty_question_list() -> None:
    console = make_console()
    result = run_quiz_session(QuizState([]), console, make_provider([]))
    assert result.exit_action == "empty"
    assert "No extractable questions" in console.export_text()


def test_chapter_and_wrong_filters() -> None:
    console = make_console()
    state = make_state()

    run_quiz_session(
        state,
        console,
        make_provider(["2", "n", "o", "w", "c 第9章", "q"]),
    )

    assert state.only_incorrect is True
    assert [e.id for e in state.filtered_entries] == ["A2"]
    assert "Unknown chapter" in console.export_text()


def test_save_and_load_commands(tmp_path) -> None:
    store = LocalProgressStore.in_directory(tmp_path)
    console = make_console()
    first = make_state()
    run_quiz_session(
        first,
        console,
        make_provider(["2", "save", "q"]),
        store=store,
        user_key="hanako",
    )
    assert store.load("hanako") is not None
    assert "Progress saved on this device." in console.export_text()

    second = make_state()
    console = make_console()
    run_quiz_session(
        second,
        console,
        make_provider(["load", "q"]),
        store=store,
        user_key="hanako",
    )
    assert set(second.history) == {"A1"}
    assert "Saved progress loaded." in console.export_text()


def test_save_without_user_key_warns(tmp_path) -> None:
    console = make_console()
    run_quiz_session(
        make_state(),
        console,
        make_provider(["save", "q"]),
        store=LocalProgressStore.in_directory(tmp_path),
    )
    assert "Enter a user key" in console.export_text()


def test_sync_failure_is_reported_not_raised() -> None:
    session = FakeSession()
    session.respond(500, {"error": "database down"})
    client = ProgressClient("http://quiz.test", session=session)
    console = make_console()
    state = make_state()

    run_quiz_session(
        state,
        console,
        make_provider(["2", "sync", "q"]),
        client=client,
        user_key="hanako",
    )

    assert "Sync failed (database down)" in console.export_text()
    assert set(state.history) == {"A1"}


def test_sync_without_remote_configured() -> None:
    console = make_console()
    run_quiz_session(
        make_state(), console, make_provider(["sync", "q"]), user_key="k"
    )
    assert "No remote server configured." in console.export_text()
