"""CLI entry points for the ``quiz`` and ``parse`` commands."""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..config import ConfigOverrides, LoadResult, QuizConfigError, load_config
from ..core.files import write_jsonl
from ..core.logging import configure_logger
from ..parser import DocumentError, load_questions
from ..progress.local import LocalProgressStore
from ..progress.remote import ProgressClient
from .grading import question_type_for
from .persistence import load_local, pull_remote, push_remote, save_local
from .session import InputProvider, run_quiz_session
from .state import ALL_CHAPTERS, Notice, QuizState
from .view import QuizApp

__all__ = ["main", "parse_main"]

_LOGGER_NAME = "spread_quiz"
_STATEMENT_PREVIEW = 60


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to a TOML config file (defaults to the workspace config "
            "directory)."
        ),
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root used for config, logs and progress.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log output to stderr.",
    )


def _build_quiz_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spread-quiz quiz",
        description="Run an interactive quiz over a spread markdown document.",
    )
    parser.add_argument(
        "document",
        nargs="?",
        type=Path,
        help="Spread document (defaults to quiz.document from the config).",
    )
    parser.add_argument("--user", help="User key for saving progress.")
    parser.add_argument(
        "--chapter",
        help=(
            "Only ask questions from this chapter "
            f"(default: {ALL_CHAPTERS})."
        ),
    )
    parser.add_argument(
        "--only-incorrect",
        action="store_true",
        help="Only ask questions answered incorrectly before (with --resume).",
    )
    parser.add_argument(
        "--shuffle",
        action="store_true",
        default=None,
        help="Shuffle the question order.",
    )
    parser.add_argument(
        "--seed", type=int, help="Random seed used with --shuffle."
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Restore progress saved on this device for --user.",
    )
    parser.add_argument(
        "--sync",
        action="store_true",
        help="Pull progress from the server first and push it when done.",
    )
    parser.add_argument("--remote-url", help="Override remote.url.")
    parser.add_argument(
        "--tui",
        action="store_true",
        help="Use the full-screen Textual interface instead of the prompt.",
    )
    _add_common_arguments(parser)
    return parser


def _build_parse_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spread-quiz parse",
        description=(
            "Parse a spread document and list the extracted questions."
        ),
    )
    parser.add_argument(
        "document", type=Path, help="Spread markdown document."
    )
    parser.add_argument(
        "--jsonl",
        nargs="?",
        const="",
        metavar="PATH",
        help=(
            "Export entries as JSON lines (defaults to the workspace exports "
            "directory when PATH is omitted)."
        ),
    )
    parser.add_argument("--chapter", help="Only list entries of this chapter.")
    _add_common_arguments(parser)
    return parser


def _load(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    overrides: ConfigOverrides,
) -> LoadResult:
    try:
        return load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except QuizConfigError as exc:
        parser.error(str(exc))
        raise  # pragma: no cover - parser.error exits


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
    client: Optional[ProgressClient] = None,
) -> int:
    parser = _build_quiz_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    load_result = _load(
        parser,
        args,
        ConfigOverrides(
            document=args.document,
            user_key=args.user,
            shuffle=args.shuffle,
            remote_url=args.remote_url,
        ),
    )
    config = load_result.config
    if config.document is None:
        parser.error(
            "A spread document is required (argument or quiz.document)."
        )

    logger, log_path = configure_logger(
        _LOGGER_NAME,
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
        filename="quiz.log",
    )
    logger.info(
        "quiz command invoked", extra={"document": str(config.document)}
    )

    try:
        entries = load_questions(config.document, logger=logger)
    except DocumentError as exc:
        logger.error("Document rejected", extra={"error": str(exc)})
        sys.stderr.write(str(exc) + "\n")
        return 1

    console = console or Console()
    state = QuizState(entries)
    store = LocalProgressStore.in_directory(
        load_result.layout.path_for("progress")
    )
    if client is None and config.remote_url:
        client = ProgressClient(
            config.remote_url, timeout=config.remote_timeout, logger=logger
        )

    if config.shuffle:
        state.shuffle(random.Random(args.seed))
    if args.resume:
        _report(
            console, load_local(state, store, config.user_key, logger=logger)
        )
    if args.sync:
        if client is None:
            console.print(
                "[yellow]No remote server configured; skipping sync.[/]"
            )
        else:
            _report(
                console,
                pull_remote(state, client, config.user_key, logger=logger),
            )

    if args.chapter:
        if args.chapter not in state.chapters:
            sys.stderr.write(
                "Unknown chapter '{0}'. Available: {1}\n".format(
                    args.chapter, ", ".join(state.chapters)
                )
            )
            return 2
        state.set_chapter(args.chapter)
    if args.only_incorrect:
        state.set_only_incorrect(True)
    state.dismiss_notice()

    if args.tui:
        QuizApp(
            state,
            store=store,
            client=client,
            user_key=config.user_key,
            show_explanations=config.show_explanations,
            logger=logger,
        ).run()
        summary = state.summary()
        logger.info(
            "quiz app closed",
            extra={
                "answered": summary.answered_questions,
                "correct": summary.correct_answers,
            },
        )
    else:
        result = run_quiz_session(
            state,
            console,
            input_provider or (lambda: console.input("[bold cyan]> [/]")),
            store=store,
            client=client,
            user_key=config.user_key,
            rng=random.Random(args.seed),
            show_explanations=config.show_explanations,
            logger=logger,
        )
        logger.info(
            "quiz session ended",
            extra={
                "exit_action": result.exit_action,
                "answered": result.summary.answered_questions,
                "correct": result.summary.correct_answers,
            },
        )

    if config.user_key and state.history:
        _report(
            console, save_local(state, store, config.user_key, logger=logger)
        )
        if args.sync and client is not None:
            _report(
                console,
                push_remote(state, client, config.user_key, logger=logger),
            )
    console.print(f"[dim]Log file: {log_path}[/]")
    return 0


def parse_main(
    argv: Sequence[str] | None = None,
    *,
    console: Optional[Console] = None,
) -> int:
    parser = _build_parse_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    load_result = _load(parser, args, ConfigOverrides(document=args.document))

    logger, _ = configure_logger(
        _LOGGER_NAME,
        log_dir=load_result.layout.path_for("logs"),
        level=load_result.config.log_level,
        verbose=args.verbose,
        filename="parse.log",
    )
    try:
        entries = load_questions(args.document, logger=logger)
    except DocumentError as exc:
        logger.error("Document rejected", extra={"error": str(exc)})
        sys.stderr.write(str(exc) + "\n")
        return 1

    if args.chapter:
        entries = [entry for entry in entries if entry.chapter == args.chapter]
        if not entries:
            sys.stderr.write(f"No entries in chapter '{args.chapter}'.\n")
            return 1

    console = console or Console()
    if args.jsonl is not None:
        target = (
            Path(args.jsonl).expanduser()
            if args.jsonl
            else load_result.layout.path_for("exports")
            / f"{args.document.stem}.jsonl"
        )
        records = []
        for entry in entries:
            payload = entry.to_dict()
            payload["questionType"] = question_type_for(entry).value
            records.append(payload)
        count = write_jsonl(target, records)
        logger.info(
            "Exported entries", extra={"path": str(target), "entries": count}
        )
        console.print(f"Wrote {count} entry(ies) -> {target}")
        return 0

    table = Table(title=str(args.document), box=box.SIMPLE_HEAVY)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Chapter")
    table.add_column("Type")
    table.add_column("Answer", justify="center")
    table.add_column("Statement")
    for entry in entries:
        statement = entry.statement
        if len(statement) > _STATEMENT_PREVIEW:
            statement = statement[: _STATEMENT_PREVIEW - 1] + "…"
        table.add_row(
            entry.id,
            entry.chapter,
            question_type_for(entry).value,
            entry.answer or "-",
            statement,
        )
    console.print(table)
    console.print(f"{len(entries)} question(s)")
    return 0


def _report(console: Console, notice: Notice) -> None:
    style = {"warning": "yellow", "error": "red"}.get(notice.level, "green")
    console.print(Text(notice.message, style=style))


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
