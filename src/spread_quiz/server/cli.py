"""CLI entry point for ``spread-quiz serve``."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from ..config import ConfigOverrides, QuizConfigError, load_config
from ..core.logging import configure_logger
from .app import create_app, settings_from_config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spread-quiz serve",
        description=(
            "Run the progress server (/api/progress, /api/teacher, "
            "/api/upload)."
        ),
    )
    parser.add_argument("--host", help="Bind address (default 127.0.0.1).")
    parser.add_argument("--port", type=int, help="Port (default 5000).")
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (defaults to a workspace SQLite file).",
    )
    parser.add_argument("--config", type=Path, help="Path to a TOML config.")
    parser.add_argument("--workspace", type=Path, help="Workspace override.")
    parser.add_argument(
        "--debug", action="store_true", help="Enable the Flask debugger."
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Mirror logs to stderr."
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        load_result = load_config(
            config_path=args.config,
            overrides=ConfigOverrides(
                host=args.host,
                port=args.port,
                database_url=args.database_url,
            ),
            workspace_path=args.workspace,
        )
    except QuizConfigError as exc:
        parser.error(str(exc))
    config = load_result.config

    logger, log_path = configure_logger(
        "spread_quiz",
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
        filename="server.log",
    )
    if not config.teacher_token:
        logger.warning(
            "TEACHER_SECRET_TOKEN is not set; /api/teacher rejects every call"
        )
    app = create_app(settings_from_config(config))
    logger.info(
        "Starting progress server",
        extra={
            "host": config.host,
            "port": config.port,
            "log_path": str(log_path),
        },
    )
    app.run(host=config.host, port=config.port, debug=args.debug)
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
