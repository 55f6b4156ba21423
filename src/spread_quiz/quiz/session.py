"""Rich-powered interactive quiz loop.

The loop reads one command per prompt, applies it to a
:class:`~spread_quiz.quiz.state.QuizState` and re-renders. Rendering and
command parsing are plain functions so they can be tested with a recorded
console and a scripted input provider.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..parser.text import CIRCLE, CROSS
from ..progress.local import LocalProgressStore
from ..progress.remote import ProgressClient
from .grading import QuestionType, evaluate_entry
from .persistence import load_local, push_remote, save_local
from .state import ALL_CHAPTERS, QuizPhase, QuizState, QuizSummary

__all__ = [
    "QuizSessionResult",
    "SessionCommand",
    "answer_feedback",
    "parse_session_command",
    "render_question",
    "render_summary",
    "run_quiz_session",
]

InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit", "empty"]
CommandType = Literal[
    "select",
    "next",
    "prev",
    "answer",
    "chapter",
    "wrong",
    "shuffle",
    "save",
    "load",
    "sync",
    "finish",
    "quit",
]

_SYMBOL_INPUTS = {
    "o": CIRCLE,
    "〇": CIRCLE,
    "○": CIRCLE,
    "⭕": CIRCLE,
    "x": CROSS,
    "✕": CROSS,
    "×": CROSS,
    "❌": CROSS,
}

_KEYWORDS: dict[str, CommandType] = {
    "n": "next",
    "next": "next",
    "p": "prev",
    "prev": "prev",
    "previous": "prev",
    "a": "answer",
    "answer": "answer",
    "w": "wrong",
    "wrong": "wrong",
    "shuffle": "shuffle",
    "save": "save",
    "load": "load",
    "sync": "sync",
    "f": "finish",
    "finish": "finish",
    "submit": "finish",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
}

_COMMAND_HINT = (
    "Commands: option id, n/p (next/prev), a (toggle answer), "
    "c <chapter>, w (only wrong), shuffle, save, load, sync, f (finish), q"
)


@dataclass(frozen=True)
class SessionCommand:
    type: CommandType
    argument: Optional[str] = None


@dataclass(frozen=True)
class QuizSessionResult:
    summary: QuizSummary
    exit_action: ExitAction


def parse_session_command(raw: Optional[str]) -> Optional[SessionCommand]:
    """Parse one line of learner input into a command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    head, _, rest = text.partition(" ")
    lowered = head.lower()
    if lowered in {"c", "chapter"}:
        return SessionCommand("chapter", rest.strip() or ALL_CHAPTERS)
    if lowered in _KEYWORDS:
        return SessionCommand(_KEYWORDS[lowered])
    if lowered in _SYMBOL_INPUTS:
        return SessionCommand("select", _SYMBOL_INPUTS[lowered])
    if head.isdigit():
        return SessionCommand("select", str(int(head)))
    return None


def run_quiz_session(
    state: QuizState,
    console: Console,
    input_provider: InputProvider,
    *,
    store: Optional[LocalProgressStore] = None,
    client: Optional[ProgressClient] = None,
    user_key: Optional[str] = None,
    rng: Optional[random.Random] = None,
    show_explanations: bool = True,
    logger: Optional[logging.Logger] = None,
) -> QuizSessionResult:
    """Drive ``state`` through an interactive session until finish or quit."""

    if not state.entries:
        console.print(
            Panel(
                "No extractable questions. Check the document format.",
                title="Spread Quiz",
                border_style="yellow",
            )
        )
        return QuizSessionResult(state.summary(), "empty")

    if state.phase is not QuizPhase.QUIZ:
        if state.phase is QuizPhase.RESULT:
            state.restart()
        else:
            state.begin()

    exit_action: ExitAction = "quit"
    while True:
        render_question(console, state, show_explanations=show_explanations)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            break
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Ending session.[/]")
            break
        if command.type == "finish":
            exit_action = "finished"
            break
        _apply_command(
            command,
            state,
            console,
            store=store,
            client=client,
            user_key=user_key,
            rng=rng,
            logger=logger,
        )

    if exit_action == "finished":
        summary = state.finish()
        render_summary(console, summary)
    else:
        summary = state.summary()
    return QuizSessionResult(summary, exit_action)


def _apply_command(
    command: SessionCommand,
    state: QuizState,
    console: Console,
    *,
    store: Optional[LocalProgressStore],
    client: Optional[ProgressClient],
    user_key: Optional[str],
    rng: Optional[random.Random],
    logger: Optional[logging.Logger],
) -> None:
    if command.type == "select" and command.argument:
        if state.select(command.argument) is None:
            console.print(
                f"[red]'{command.argument}' is not an option here.[/red]"
            )
    elif command.type == "next":
        state.go_next()
    elif command.type == "prev":
        state.go_previous()
    elif command.type == "answer":
        state.toggle_answer()
    elif command.type == "chapter" and command.argument:
        if command.argument in state.chapters:
            state.set_chapter(command.argument)
        else:
            state.post_notice(
                "Unknown chapter. Available: " + ", ".join(state.chapters),
                "warning",
            )
    elif command.type == "wrong":
        state.set_only_incorrect(not state.only_incorrect)
    elif command.type == "shuffle":
        state.shuffle(rng)
    elif command.type == "save":
        if store is None:
            state.post_notice("Local saving is not configured.", "warning")
        else:
            save_local(state, store, user_key, logger=logger)
    elif command.type == "load":
        if store is None:
            state.post_notice("Local saving is not configured.", "warning")
        else:
            load_local(state, store, user_key, logger=logger)
    elif command.type == "sync":
        if client is None:
            state.post_notice("No remote server configured.", "warning")
        else:
            push_remote(state, client, user_key, logger=logger)


def render_question(
    console: Console, state: QuizState, *, show_explanations: bool = True
) -> None:
    entries = state.filtered_entries
    entry = state.current
    console.print()
    if state.notice is not None:
        style = {"warning": "yellow", "error": "red"}.get(
            state.notice.level, "green"
        )
        console.print(Text(state.notice.message, style=style))
        state.dismiss_notice()
    if entry is None:
        console.print(
            Panel(
                "No questions match the current filters.",
                border_style="yellow",
            )
        )
        console.print(Text(_COMMAND_HINT, style="dim"))
        return

    header = Text.assemble(
        (f"{entry.id}", "bold cyan"),
        (f"  {state.index + 1} / {len(entries)}", "dim"),
        (f"  {state.progress_percent}%", "dim"),
    )
    console.rule(header)
    meta = f"Chapter: {entry.chapter}"
    if entry.source:
        meta += f" | Source: {entry.source}"
    console.print(Text(meta, style="dim"))
    console.print(Text(entry.statement, style="bold"))
    if entry.question_body and entry.question_body != entry.statement:
        console.print(entry.question_body, markup=False)

    qtype = state.question_type
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    for option in state.options:
        chosen = option.id in state.choice
        label = Text(("• " if chosen else "  ") + option.label)
        if chosen:
            label.stylize("bold green")
        table.add_row(option.id, label)
    console.print(table)
    if qtype is QuestionType.MULTI:
        console.print(Text("Select every correct option.", style="dim"))

    if state.show_answer:
        _render_answer(console, state, show_explanations=show_explanations)
    console.print(
        Text(
            f"Answered {len(state.history)}/{len(state.entries)} | "
            + _COMMAND_HINT,
            style="dim",
        )
    )


def answer_feedback(
    state: QuizState, *, show_explanations: bool = True
) -> tuple[list[str], str]:
    """Verdict, answer and explanation lines plus a border colour."""
    entry = state.current
    if entry is None:
        return [], "blue"
    lines: list[str] = []
    if state.choice:
        if evaluate_entry(entry, state.choice):
            verdict, border = "Correct!", "green"
        else:
            expected = " / ".join(entry.answer_tokens) or entry.answer
            verdict, border = f"Incorrect. The answer is {expected}", "red"
        lines.append(verdict)
    else:
        border = "blue"
    suffix = " (multiple)" if state.question_type is QuestionType.MULTI else ""
    lines.append(f"Answer: {entry.answer or '?'}{suffix}")
    if show_explanations and entry.explanation:
        lines.append("")
        lines.append(entry.explanation)
    return lines, border


def _render_answer(
    console: Console, state: QuizState, *, show_explanations: bool
) -> None:
    lines, border = answer_feedback(state, show_explanations=show_explanations)
    if not lines:
        return
    console.print(
        Panel(Text("\n".join(lines)), title="Explanation", border_style=border)
    )


def render_summary(console: Console, summary: QuizSummary) -> None:
    console.print()
    console.rule(Text("Quiz Summary", style="bold magenta"))

    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Total questions", str(summary.total_questions))
    overview.add_row("Answered", str(summary.answered_questions))
    overview.add_row("Correct", str(summary.correct_answers))
    overview.add_row("Accuracy", f"{summary.accuracy * 100:.1f}%")
    console.print(overview)

    if summary.per_chapter:
        per_chapter = Table(title="Per chapter", box=box.SIMPLE)
        per_chapter.add_column("Chapter")
        per_chapter.add_column("Asked", justify="right")
        per_chapter.add_column("Correct", justify="right")
        per_chapter.add_column("Accuracy", justify="right")
        for name, metrics in summary.per_chapter.items():
            per_chapter.add_row(
                name,
                str(metrics.asked),
                str(metrics.correct),
                f"{metrics.accuracy * 100:.1f}%",
            )
        console.print(per_chapter)
