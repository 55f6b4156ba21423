"""Ordered answer-extraction strategies.

Each strategy is a pure function ``(left, right) -> str | None`` that looks
for one labelled answer form. :func:`extract_answer` tries them in
:data:`ANSWER_STRATEGIES` order and the first hit wins:

1. ``答え:`` on the left page
2. ``正解:`` / ``正解は`` on the right page
3. ``解答:`` on the right page

Both pages are searched with bold markers removed. Hits are returned with
full-width digits already converted to half-width.
"""

from __future__ import annotations

import re
from typing import Callable, Optional, Sequence

from .text import ANSWER_CHARS, to_half_width

__all__ = [
    "ANSWER_STRATEGIES",
    "AnswerStrategy",
    "answer_from_correct_label",
    "answer_from_left_label",
    "answer_from_response_label",
    "extract_answer",
    "match_answer",
]

AnswerStrategy = Callable[[str, str], Optional[str]]

LEFT_ANSWER_RE = re.compile(rf"答え[:：]\s*([{ANSWER_CHARS}]+)")
CORRECT_ANSWER_RE = re.compile(rf"正解[:：は]?\s*([{ANSWER_CHARS}]+)")
RESPONSE_ANSWER_RE = re.compile(rf"解答[:：]?\s*([{ANSWER_CHARS}]+)")


def match_answer(pattern: "re.Pattern[str]", text: str) -> Optional[str]:
    """Return the half-width value captured by ``pattern`` in ``text``."""
    match = pattern.search(text.replace("**", ""))
    if not match:
        return None
    value = to_half_width(match.group(1).strip())
    return value or None


def answer_from_left_label(left: str, right: str) -> Optional[str]:
    return match_answer(LEFT_ANSWER_RE, left)


def answer_from_correct_label(left: str, right: str) -> Optional[str]:
    return match_answer(CORRECT_ANSWER_RE, right)


def answer_from_response_label(left: str, right: str) -> Optional[str]:
    return match_answer(RESPONSE_ANSWER_RE, right)


ANSWER_STRATEGIES: tuple[AnswerStrategy, ...] = (
    answer_from_left_label,
    answer_from_correct_label,
    answer_from_response_label,
)


def extract_answer(
    left: str,
    right: str,
    strategies: Sequence[AnswerStrategy] = ANSWER_STRATEGIES,
) -> str:
    """Return the first answer any strategy finds, or ``""``."""
    for strategy in strategies:
        found = strategy(left, right)
        if found:
            return found
    return ""
