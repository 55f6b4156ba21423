"""Plumbing shared by every spread-quiz command: config files, logs,
the data directory and JSONL exports."""

from __future__ import annotations

from .config import ConfigFileError, overlay_tables, read_config_file
from .config import template_text, write_template
from .files import read_text_file, write_jsonl
from .logging import JsonLogFormatter, configure_logger
from .workspace import WorkspaceError, WorkspaceLayout, ensure_workspace

__all__ = [
    "ConfigFileError",
    "JsonLogFormatter",
    "WorkspaceError",
    "WorkspaceLayout",
    "configure_logger",
    "ensure_workspace",
    "overlay_tables",
    "read_config_file",
    "read_text_file",
    "template_text",
    "write_jsonl",
    "write_template",
]
