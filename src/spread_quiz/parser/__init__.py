"""Spread document parsing."""

from __future__ import annotations

from .loader import (
    DocumentError,
    NoQuestionsError,
    load_questions,
    parse_document_text,
)
from .spread import (
    UNCLASSIFIED,
    ChapterMarker,
    QuestionEntry,
    SpreadBlock,
    SpreadRegions,
    chapter_for,
    extract_regions,
    extract_statement,
    find_chapter_markers,
    iter_spread_blocks,
    parse_spread_markdown,
)
from .strategies import ANSWER_STRATEGIES, AnswerStrategy, extract_answer
from .text import (
    CIRCLE,
    CROSS,
    clean_markdown,
    normalize_symbol,
    strip_answer_lines,
    to_half_width,
    tokenize_answer,
)

__all__ = [
    "ANSWER_STRATEGIES",
    "AnswerStrategy",
    "CIRCLE",
    "CROSS",
    "ChapterMarker",
    "DocumentError",
    "NoQuestionsError",
    "QuestionEntry",
    "SpreadBlock",
    "SpreadRegions",
    "UNCLASSIFIED",
    "chapter_for",
    "clean_markdown",
    "extract_answer",
    "extract_regions",
    "extract_statement",
    "find_chapter_markers",
    "iter_spread_blocks",
    "load_questions",
    "normalize_symbol",
    "parse_document_text",
    "parse_spread_markdown",
    "strip_answer_lines",
    "to_half_width",
    "tokenize_answer",
]
