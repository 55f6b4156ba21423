"""``spread-quiz init``: create the data directory and the config file."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Sequence

from ..config import CONFIG_FILENAME
from ..core import config as core_config
from ..core import workspace as workspace_mod


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spread-quiz init",
        description="Create the spread-quiz data directory and subfolders.",
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Data directory (default: $SPREAD_QUIZ_DATA_HOME or "
            "~/.spread-quiz-data)."
        ),
    )
    parser.add_argument(
        "--config",
        action="store_true",
        help=f"Write the default {CONFIG_FILENAME} into config/.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="With --config, replace an existing file.",
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Print nothing on success."
    )
    return parser


def _report(layout: workspace_mod.WorkspaceLayout) -> List[str]:
    def state(key: str) -> str:
        return "created" if layout.created.get(key) else "exists"

    report = [f"Workspace ready at {layout.home} ({state('home')})"]
    if layout.directories:
        report.append("Subdirectories:")
        pad = max(map(len, layout.directories))
        report.extend(
            f"  {name:<{pad}}  {folder} ({state(name)})"
            for name, folder in layout.items()
        )
    return report


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(list(argv) if argv is not None else None)

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
    except workspace_mod.WorkspaceError as exc:
        print(exc, file=sys.stderr)
        return 1
    report = _report(layout)

    if args.config:
        destination = layout.path_for("config") / CONFIG_FILENAME
        try:
            core_config.write_template(destination, overwrite=args.force)
        except core_config.ConfigFileError as exc:
            print(exc, file=sys.stderr)
            return 1
        report.append(f"Wrote config template to {destination}")

    if not args.quiet:
        print("\n".join(report))
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
