"""``spread-quiz`` dispatcher.

Each subcommand lives in its own module and exposes ``main(argv) -> int``;
modules are imported lazily so ``spread-quiz list`` does not pay for Flask,
Textual or the Google client.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import List, Mapping, Optional, Sequence, TextIO

__all__ = ["COMMANDS", "Command", "main", "usage"]

DISTRIBUTION = "spread-quiz"


@dataclass(frozen=True)
class Command:
    summary: str
    target: str
    interactive: bool = False

    def invoke(self, name: str, argv: Sequence[str]) -> int:
        """Run the command with ``sys.argv`` pointing at it for argparse."""

        module_name, _, attribute = self.target.partition(":")
        entry = getattr(import_module(module_name), attribute or "main")
        saved = sys.argv
        sys.argv = [f"spread-quiz {name}", *argv]
        try:
            outcome = entry(list(argv))
        except SystemExit as exc:
            return _exit_status(exc.code)
        finally:
            sys.argv = saved
        return outcome if isinstance(outcome, int) else 0


COMMANDS: Mapping[str, Command] = {
    "init": Command(
        "Bootstrap the workspace and optionally the config file.",
        "spread_quiz.workspace.cli",
    ),
    "parse": Command(
        "Parse a spread document and list or export its questions.",
        "spread_quiz.quiz.cli:parse_main",
    ),
    "quiz": Command(
        "Run an interactive quiz over a spread document.",
        "spread_quiz.quiz.cli",
        interactive=True,
    ),
    "report": Command(
        "Show the teacher dashboard for every learner.",
        "spread_quiz.dashboard.report",
    ),
    "serve": Command(
        "Run the progress and teacher dashboard server.",
        "spread_quiz.server.cli",
    ),
    "upload": Command(
        "Upload a JSON file to the storage bucket.",
        "spread_quiz.storage.cli",
    ),
}


def command_table() -> str:
    width = max(map(len, COMMANDS))
    rows = ["Available commands:"]
    for name in sorted(COMMANDS):
        command = COMMANDS[name]
        marker = " (interactive)" if command.interactive else ""
        rows.append(f"  {name:<{width}}  {command.summary}{marker}")
    return "\n".join(rows)


def usage() -> str:
    return "\n".join(
        [
            "Usage: spread-quiz <command> [args...]",
            "Run `spread-quiz list` for commands or "
            "`spread-quiz help <name>` for details.",
            "",
            command_table(),
        ]
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args: List[str] = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _emit(usage())
        return 2

    name, rest = args[0], args[1:]
    if name in ("-h", "--help"):
        _emit(usage())
        return 0
    if name in ("-V", "--version", "version"):
        _emit(_version())
        return 0
    if name == "list":
        _emit(command_table())
        return 0
    if name == "help":
        return _help(rest)

    command = COMMANDS.get(name)
    if command is None:
        return _unknown(name)
    return command.invoke(name, rest)


def _help(rest: Sequence[str]) -> int:
    if not rest:
        _emit(usage())
        return 0
    command = COMMANDS.get(rest[0])
    if command is None:
        return _unknown(rest[0])
    _emit(f"{rest[0]}: {command.summary}")
    _emit(f"Run `spread-quiz {rest[0]} --help` for command options.")
    return 0


def _unknown(name: str) -> int:
    _emit(f"Unknown command '{name}'.", sys.stderr)
    _emit(command_table(), sys.stderr)
    return 2


def _version() -> str:
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "unknown"


def _exit_status(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _emit(str(code), sys.stderr)
    return 1


def _emit(text: str, stream: Optional[TextIO] = None) -> None:
    (stream or sys.stdout).write(text + "\n")


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
