"""Text normalisation shared by the spread parser and answer grading."""

from __future__ import annotations

import re
from typing import List

__all__ = [
    "CIRCLE",
    "CROSS",
    "ANSWER_CHARS",
    "clean_markdown",
    "normalize_symbol",
    "strip_answer_lines",
    "to_half_width",
    "tokenize_answer",
]

CIRCLE = "〇"
CROSS = "✕"

_SYMBOL_ALIASES = {
    "〇": CIRCLE,
    "○": CIRCLE,
    "⭕": CIRCLE,
    "✕": CROSS,
    "×": CROSS,
    "❌": CROSS,
}

# Characters an answer value may be built from: digits (either width),
# true/false glyphs, and the separators between multiple answers.
ANSWER_CHARS = r"0-9０-９〇○×✕❌⭕、,，\s"

_FULL_WIDTH_DIGITS = str.maketrans("０１２３４５６７８９", "0123456789")
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TOKEN_SPLIT_RE = re.compile(r"[,，、\s]+")
_ANSWER_LINE_RE = re.compile(r"答え[:：]")


def to_half_width(text: str) -> str:
    """Convert full-width digits to their ASCII counterparts."""
    return text.translate(_FULL_WIDTH_DIGITS)


def clean_markdown(text: str) -> str:
    """Drop emphasis and inline code markup; turn ``<br>`` into newlines."""
    text = text.replace("\r\n", "\n").replace("**", "")
    text = _BR_RE.sub("\n", text)
    return text.replace("`", "").strip()


def normalize_symbol(token: str) -> str:
    """Map true/false glyph variants onto ``〇`` / ``✕``; pass others through."""
    stripped = token.strip()
    return _SYMBOL_ALIASES.get(stripped, stripped)


def tokenize_answer(answer: str) -> List[str]:
    """Split a raw answer into normalised comparison tokens.

    >>> tokenize_answer("１、３ ×")
    ['1', '3', '✕']
    """
    parts = _TOKEN_SPLIT_RE.split(to_half_width(answer))
    return [normalize_symbol(part) for part in parts if part.strip()]


def strip_answer_lines(text: str) -> str:
    """Remove every line carrying an ``答え:`` label."""
    kept = [line for line in text.split("\n") if not _ANSWER_LINE_RE.search(line)]
    return "\n".join(kept).strip()
