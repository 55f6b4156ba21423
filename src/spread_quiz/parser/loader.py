"""Load a spread document from disk and turn parse failures into errors."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from ..core.files import read_text_file
from .spread import QuestionEntry, parse_spread_markdown

__all__ = [
    "DocumentError",
    "NoQuestionsError",
    "load_questions",
    "parse_document_text",
]

_LOGGER = logging.getLogger("spread_quiz.parser")


class DocumentError(RuntimeError):
    """Raised when the source document is missing or unusable."""


class NoQuestionsError(DocumentError):
    """Raised when a document parses to zero question entries."""

    def __init__(self, origin: str = "document") -> None:
        super().__init__(
            f"No extractable questions in {origin}. Check the spread format."
        )
        self.origin = origin


def parse_document_text(
    text: str, *, origin: str = "document"
) -> List[QuestionEntry]:
    entries = parse_spread_markdown(text)
    if not entries:
        raise NoQuestionsError(origin)
    _LOGGER.debug(
        "Parsed spread document",
        extra={"origin": origin, "entries": len(entries)},
    )
    return entries


def load_questions(
    path: Path, *, logger: Optional[logging.Logger] = None
) -> List[QuestionEntry]:
    """Read ``path`` and parse it, raising :class:`DocumentError` on failure."""
    log = logger or _LOGGER
    source = Path(path)
    if not source.is_file():
        raise DocumentError(f"Spread document not found: {source}")
    try:
        text = read_text_file(source)
    except OSError as exc:
        raise DocumentError(f"Failed to read {source}: {exc}") from exc
    entries = parse_document_text(text, origin=str(source))
    log.info(
        "Loaded spread document",
        extra={"path": str(source), "entries": len(entries)},
    )
    return entries
