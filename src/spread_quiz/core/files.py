"""File helpers: document reading and JSONL export."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping

__all__ = [
    "read_text_file",
    "write_jsonl",
]


def read_text_file(path: Path) -> str:
    """Read a text file as UTF-8, replacing undecodable bytes."""
    with Path(path).open("r", encoding="utf-8", errors="replace") as fh:
        return fh.read()


def write_jsonl(path: Path, records: Iterable[Mapping[str, object]]) -> int:
    """Write ``records`` one JSON object per line; return the count."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with p.open("w", encoding="utf-8") as fh:
        for rec in records:
            fh.write(json.dumps(dict(rec), ensure_ascii=False))
            fh.write("\n")
            count += 1
    return count
