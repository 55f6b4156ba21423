"""CLI entry point for ``spread-quiz upload``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Sequence

from ..config import ConfigOverrides, QuizConfigError, load_config
from ..core.files import read_text_file
from ..core.logging import configure_logger
from .upload import UploadError, upload_content


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spread-quiz upload",
        description="Upload a JSON file to the configured storage bucket.",
    )
    parser.add_argument("file", type=Path, help="File to upload.")
    parser.add_argument(
        "--name",
        help="Object name in the bucket (defaults to the file name).",
    )
    parser.add_argument(
        "--bucket", help="Bucket name (overrides GCS_BUCKET / upload.bucket)."
    )
    parser.add_argument("--config", type=Path, help="Path to a TOML config.")
    parser.add_argument("--workspace", type=Path, help="Workspace override.")
    parser.add_argument(
        "--verbose", action="store_true", help="Mirror logs to stderr."
    )
    return parser


def main(argv: Sequence[str] | None = None, *, client: Any = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        load_result = load_config(
            config_path=args.config,
            overrides=ConfigOverrides(bucket=args.bucket),
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
        filename="upload.log",
    )

    try:
        content = read_text_file(args.file)
    except OSError as exc:
        sys.stderr.write(f"Failed to read {args.file}: {exc}\n")
        return 1
    if not content:
        sys.stderr.write(f"{args.file} is empty.\n")
        return 1

    try:
        result = upload_content(
            args.name or args.file.name,
            content,
            bucket=config.bucket,
            project_id=config.project_id,
            service_account_key=config.service_account_key,
            client=client,
            logger=logger,
        )
    except UploadError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(result.message + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
