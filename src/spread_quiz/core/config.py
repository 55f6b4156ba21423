"""Reading, layering and scaffolding the ``spread_quiz.toml`` file.

The packaged ``template.toml`` doubles as documentation of every table the
loader accepts; ``spread-quiz init --config`` copies it into the workspace.
"""

from __future__ import annotations

import tomllib
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, MutableMapping

__all__ = [
    "ConfigFileError",
    "TEMPLATE_RESOURCE",
    "overlay_tables",
    "read_config_file",
    "template_text",
    "write_template",
]

TEMPLATE_RESOURCE = "template.toml"


class ConfigFileError(RuntimeError):
    """The config file is unreadable, malformed or shaped unexpectedly."""


def read_config_file(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        raise ConfigFileError(f"Config file not found: {path}") from exc
    except OSError as exc:
        raise ConfigFileError(f"Cannot read {path}: {exc}") from exc
    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigFileError(f"Failed to parse config TOML: {exc}") from exc


def overlay_tables(
    defaults: MutableMapping[str, Any],
    parsed: Mapping[str, Any],
    *,
    prefix: str = "",
) -> None:
    """Write ``parsed`` values over ``defaults`` in place.

    Only keys already present in ``defaults`` are accepted, and a default
    table can only be replaced by a table. Scalar values are copied as-is;
    the caller validates them once every source has been layered.
    """

    for key, value in parsed.items():
        dotted = prefix + key
        if key not in defaults:
            raise ConfigFileError(f"Unknown configuration key '{dotted}'.")
        target = defaults[key]
        if not isinstance(target, MutableMapping):
            defaults[key] = value
        elif isinstance(value, Mapping):
            overlay_tables(target, value, prefix=dotted + ".")
        else:
            raise ConfigFileError(
                f"Expected table for '{dotted}', found {type(value).__name__}."
            )


def template_text() -> str:
    resource = resources.files("spread_quiz").joinpath(TEMPLATE_RESOURCE)
    return resource.read_text(encoding="utf-8")


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    """Copy the packaged template to ``path`` with owner-only permissions."""

    if path.exists() and not overwrite:
        raise ConfigFileError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template_text(), encoding="utf-8")
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path
