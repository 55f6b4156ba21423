"""CLI entry point for ``spread-quiz report``: the teacher dashboard."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..config import ConfigOverrides, QuizConfigError, load_config
from ..core.logging import configure_logger
from ..progress.remote import ProgressClient, ProgressSyncError

__all__ = ["main", "render_dashboard"]

_TOP_WRONG = 5


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spread-quiz report",
        description="Show every learner's progress from the teacher endpoint.",
    )
    parser.add_argument(
        "--token",
        help="Teacher token (defaults to TEACHER_SECRET_TOKEN).",
    )
    parser.add_argument("--remote-url", help="Override remote.url.")
    parser.add_argument("--user", help="Only show this learner.")
    parser.add_argument("--config", type=Path, help="Path to a TOML config.")
    parser.add_argument("--workspace", type=Path, help="Workspace override.")
    parser.add_argument(
        "--verbose", action="store_true", help="Mirror logs to stderr."
    )
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Optional[Console] = None,
    client: Optional[ProgressClient] = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        load_result = load_config(
            config_path=args.config,
            overrides=ConfigOverrides(remote_url=args.remote_url),
            workspace_path=args.workspace,
        )
    except QuizConfigError as exc:
        parser.error(str(exc))
    config = load_result.config

    logger, _ = configure_logger(
        "spread_quiz",
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
        filename="report.log",
    )

    token = args.token or config.teacher_token
    if not token:
        parser.error("A teacher token is required (--token).")
    if client is None:
        if not config.remote_url:
            parser.error(
                "A server URL is required (--remote-url or remote.url)."
            )
        client = ProgressClient(
            config.remote_url, timeout=config.remote_timeout, logger=logger
        )

    try:
        users = client.fetch_dashboard(token)
    except ProgressSyncError as exc:
        sys.stderr.write(f"Could not load the dashboard: {exc}\n")
        return 1

    if args.user:
        users = [u for u in users if u.get("userKey") == args.user]
        if not users:
            sys.stderr.write(f"No progress recorded for '{args.user}'.\n")
            return 1

    render_dashboard(console or Console(), users)
    logger.info("Rendered dashboard", extra={"users": len(users)})
    return 0


def render_dashboard(
    console: Console, users: Sequence[Mapping[str, Any]]
) -> None:
    if not users:
        console.print("[yellow]No learners yet.[/]")
        return

    overview = Table(title="Learners", box=box.SIMPLE_HEAVY)
    overview.add_column("User")
    overview.add_column("Answers", justify="right")
    overview.add_column("Correct", justify="right")
    overview.add_column("Accuracy", justify="right")
    overview.add_column("Study days", justify="right")
    overview.add_column("Latest activity")
    for user in users:
        overview.add_row(
            Text(str(user.get("userKey", ""))),
            str(user.get("totalAnswers", 0)),
            str(user.get("correctAnswers", 0)),
            Text(f"{user.get('accuracy', 0)}%", style=_accuracy_style(user)),
            str(user.get("studyDaysCount", 0)),
            str(user.get("latestActivity") or "-"),
        )
    console.print(overview)

    for user in users:
        _render_user_detail(console, user)


def _render_user_detail(console: Console, user: Mapping[str, Any]) -> None:
    chapters = user.get("chapterStats") or {}
    wrong = list(user.get("wrongQuestions") or [])
    if not chapters and not wrong:
        return
    console.rule(Text(str(user.get("userKey", "")), style="bold cyan"))
    if chapters:
        table = Table(box=box.SIMPLE)
        table.add_column("Chapter")
        table.add_column("Correct", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Questions")
        for name, stats in chapters.items():
            table.add_row(
                Text(name),
                str(stats.get("correct", 0)),
                str(stats.get("total", 0)),
                _question_marks(stats.get("questions") or []),
            )
        console.print(table)
    if wrong:
        lines = [
            f"{item.get('questionId')}  x{item.get('wrongCount')}"
            f"  ({item.get('chapter')})"
            for item in wrong[:_TOP_WRONG]
        ]
        console.print(Text("Most missed:\n" + "\n".join(lines), style="red"))


def _question_marks(questions: Iterable[Mapping[str, Any]]) -> Text:
    text = Text()
    for index, question in enumerate(questions):
        if index:
            text.append(" ")
        style = "green" if question.get("isCorrect") else "red"
        text.append(str(question.get("questionId")), style=style)
    return text


def _accuracy_style(user: Mapping[str, Any]) -> str:
    accuracy = user.get("accuracy") or 0
    if accuracy >= 80:
        return "green"
    if accuracy >= 50:
        return "yellow"
    return "red"


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
