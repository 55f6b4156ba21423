"""Question-type inference, option derivation and answer evaluation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from ..parser.spread import QuestionEntry
from ..parser.text import CIRCLE, CROSS, normalize_symbol, to_half_width

__all__ = [
    "Option",
    "QuestionType",
    "SELECT_ALL_PHRASES",
    "derive_options",
    "evaluate_answer",
    "evaluate_entry",
    "infer_question_type",
    "question_type_for",
]

SELECT_ALL_PHRASES: tuple[str, ...] = (
    "すべて選",
    "全て選",
    "select all that apply",
)

_TRUE_FALSE = frozenset({CIRCLE, CROSS})
_NUMBERED_LINE_RE = re.compile(r"^(\d+)[.\s、)]\s*(.+)$")
_MIN_NUMERIC_OPTIONS = 4


class QuestionType(str, Enum):
    OX = "ox"
    MULTI = "multi"
    CHOICE = "choice"


@dataclass(frozen=True)
class Option:
    id: str
    label: str


def infer_question_type(
    answer_tokens: Sequence[str], question_text: str = ""
) -> QuestionType:
    """Classify a question from its answer tokens and text.

    ``ox`` wins when every token is a true/false glyph, then ``multi`` for
    several tokens or a "select all" phrase, else ``choice``.
    """
    tokens = [normalize_symbol(t) for t in answer_tokens if t.strip()]
    if tokens and all(token in _TRUE_FALSE for token in tokens):
        return QuestionType.OX
    if len(tokens) > 1:
        return QuestionType.MULTI
    lowered = question_text.lower()
    if any(phrase in lowered for phrase in SELECT_ALL_PHRASES):
        return QuestionType.MULTI
    return QuestionType.CHOICE


def question_type_for(entry: Optional[QuestionEntry]) -> QuestionType:
    if entry is None:
        return QuestionType.CHOICE
    return infer_question_type(entry.answer_tokens, entry.question_text)


def evaluate_answer(
    answer_tokens: Sequence[str],
    selected: Iterable[str],
    question_type: QuestionType,
) -> bool:
    """Return whether ``selected`` matches the canonical answer tokens.

    Glyph variants and full-width digits are normalised on both sides.
    Single-answer questions need exactly one selection equal to the first
    token, even when a true/false answer lists several glyphs; multi-select
    questions compare sorted, de-duplicated sets.
    """
    canonical = [_canonical(token) for token in answer_tokens if token.strip()]
    if not canonical:
        return False
    chosen = [_canonical(item) for item in selected if str(item).strip()]
    if question_type is QuestionType.MULTI:
        return sorted(set(chosen)) == sorted(set(canonical))
    return len(chosen) == 1 and chosen[0] == canonical[0]


def evaluate_entry(entry: QuestionEntry, selected: Iterable[str]) -> bool:
    return evaluate_answer(
        entry.answer_tokens, selected, question_type_for(entry)
    )


def derive_options(
    entry: Optional[QuestionEntry],
    question_type: Optional[QuestionType] = None,
) -> List[Option]:
    """Build the selectable options for ``entry``.

    True/false questions always offer ``〇`` and ``✕``. Otherwise numbered
    lines of the question body become options; failing that, purely
    numeric answers get ``1..max(4, largest answer)``.
    """
    if entry is None:
        return []
    qtype = question_type or question_type_for(entry)
    if qtype is QuestionType.OX:
        return [Option(CIRCLE, CIRCLE), Option(CROSS, CROSS)]

    options: List[Option] = []
    for line in entry.question_body.split("\n"):
        match = _NUMBERED_LINE_RE.match(line.strip())
        if match:
            options.append(Option(match.group(1), match.group(2).strip()))
    if not options:
        tokens = list(entry.answer_tokens)
        if tokens and all(token.isdigit() for token in tokens):
            upper = max(_MIN_NUMERIC_OPTIONS, *(int(t) for t in tokens))
            options = [Option(str(n), str(n)) for n in range(1, upper + 1)]
    return _unique(options)


def _unique(options: Iterable[Option]) -> List[Option]:
    seen: set[str] = set()
    unique: List[Option] = []
    for option in options:
        if option.id in seen:
            continue
        seen.add(option.id)
        unique.append(option)
    return unique


def _canonical(token: str) -> str:
    return normalize_symbol(to_half_width(str(token)))
