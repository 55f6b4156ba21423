"""Parse spread-formatted Markdown into question entries.

A spread document looks like::

    ## Chapter title
    ### Q1
    <<<SPREAD_START>>>
    [LEFT] question, options, optional 答え: line [/LEFT]
    [RIGHT] answer restated and explanation [/RIGHT]
    [SOURCE] citation [/SOURCE]
    <<<SPREAD_END>>>

Every block is handled independently: a missing or malformed region
degrades to an empty string instead of failing the parse. A block is only
skipped when its heading/sentinel frame does not match at all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence

from .strategies import (
    CORRECT_ANSWER_RE,
    RESPONSE_ANSWER_RE,
    extract_answer,
    match_answer,
)
from .text import (
    clean_markdown,
    strip_answer_lines,
    to_half_width,
    tokenize_answer,
)

__all__ = [
    "UNCLASSIFIED",
    "ChapterMarker",
    "QuestionEntry",
    "SpreadBlock",
    "SpreadRegions",
    "chapter_for",
    "extract_regions",
    "extract_statement",
    "find_chapter_markers",
    "iter_spread_blocks",
    "parse_spread_markdown",
]

UNCLASSIFIED = "unclassified"

_CHAPTER_RE = re.compile(r"(^|\n)##[ \t]+([^\n]+)")
_BLOCK_RE = re.compile(
    r"###[ \t]+([^\n]+)\n<<<SPREAD_START>>>\s*(.*?)<<<SPREAD_END>>>",
    re.DOTALL,
)
_LEFT_RE = re.compile(r"\[LEFT\]\s*(.*?)\s*\[/LEFT\]", re.DOTALL)
_RIGHT_RE = re.compile(r"\[RIGHT\]\s*(.*?)\s*\[/RIGHT\]", re.DOTALL)
_SOURCE_RE = re.compile(r"\[SOURCE\](.*?)\[/SOURCE\]", re.DOTALL)
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_LEFT_ANSWER_TAIL_RE = re.compile(r"答え[:：].*")

# Convention A: several bold "問題 N" markers on the left page, with the
# matching "問題 N ... 【解答】 X ... 【解説】 ..." runs on the right page.
_LEFT_QUESTION_RE = re.compile(r"\*\*問題\s*(\d+)\*\*")
_RIGHT_QUESTION_RE = re.compile(r"問題\s*\d+")
_BRACKET_ANSWER_RE = re.compile(r"【解答】\s*([0-9０-９〇○×✕❌⭕.．、,，]+)")
_BRACKET_EXPLANATION_RE = re.compile(r"【解説】(.*)", re.DOTALL)

# Convention B: the right page alone is split into "Q1 ... Q2 ..." runs.
_RIGHT_SEGMENT_RE = re.compile(r"^Q\d+", re.MULTILINE)
_EXPLANATION_LABEL_RE = re.compile(r"解説[:：]")
_SEGMENT_LEAD_RE = re.compile(r"^[\s.．:：)）]+")


@dataclass(frozen=True)
class ChapterMarker:
    title: str
    offset: int


@dataclass(frozen=True)
class SpreadBlock:
    id: str
    text: str
    offset: int


@dataclass(frozen=True)
class SpreadRegions:
    """Raw LEFT/RIGHT/SOURCE text of one block; absent regions are ``""``."""

    left: str = ""
    right: str = ""
    source: str = ""
    has_right: bool = False
    has_source: bool = False


@dataclass(frozen=True)
class QuestionEntry:
    """One parsed question. Entries are never mutated after parsing."""

    id: str
    statement: str
    answer: str
    answer_tokens: tuple[str, ...]
    question_body: str
    explanation: str
    chapter: str = UNCLASSIFIED
    source: Optional[str] = None
    raw_left: str = field(default="", compare=False)

    @property
    def question_text(self) -> str:
        """Statement and body joined, used for phrase-based type checks."""
        if self.question_body == self.statement:
            return self.statement
        return f"{self.statement}\n{self.question_body}".strip()

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": self.id,
            "statement": self.statement,
            "answer": self.answer,
            "answerTokens": list(self.answer_tokens),
            "questionBody": self.question_body,
            "explanation": self.explanation,
            "chapter": self.chapter,
            "rawLeft": self.raw_left,
        }
        if self.source is not None:
            payload["source"] = self.source
        return payload


def find_chapter_markers(markdown: str) -> List[ChapterMarker]:
    """Return level-2 headings in document order with their offsets."""
    return [
        ChapterMarker(title=match.group(2).strip(), offset=match.start())
        for match in _CHAPTER_RE.finditer(markdown)
    ]


def iter_spread_blocks(markdown: str) -> Iterator[SpreadBlock]:
    for match in _BLOCK_RE.finditer(markdown):
        yield SpreadBlock(
            id=match.group(1).strip(),
            text=match.group(2),
            offset=match.start(),
        )


def extract_regions(block_text: str) -> SpreadRegions:
    left = _LEFT_RE.search(block_text)
    right = _RIGHT_RE.search(block_text)
    source = _SOURCE_RE.search(block_text)
    return SpreadRegions(
        left=left.group(1) if left else "",
        right=right.group(1) if right else "",
        source=source.group(1) if source else "",
        has_right=right is not None,
        has_source=source is not None,
    )


def extract_statement(left: str) -> str:
    """First bold span of the left page, else its first non-blank line."""
    bold = _BOLD_RE.search(left)
    if bold:
        return _LEFT_ANSWER_TAIL_RE.sub("", bold.group(1)).strip()
    for line in left.split("\n"):
        if line.strip():
            return line.strip()
    return ""


def chapter_for(offset: int, markers: Sequence[ChapterMarker]) -> str:
    """Title of the last marker before ``offset``; ``unclassified`` if none."""
    title = UNCLASSIFIED
    for marker in markers:
        if marker.offset >= offset:
            break
        title = marker.title
    return title


def parse_spread_markdown(markdown: str) -> List[QuestionEntry]:
    """Parse a whole spread document into an ordered list of entries.

    Returns an empty list when no block frame matches; callers decide how
    to report that.
    """
    normalized = markdown.replace("\r\n", "\n")
    markers = find_chapter_markers(normalized)
    entries: List[QuestionEntry] = []
    for block in iter_spread_blocks(normalized):
        chapter = chapter_for(block.offset, markers)
        entries.extend(_parse_block(block, chapter))
    return entries


def _parse_block(block: SpreadBlock, chapter: str) -> List[QuestionEntry]:
    regions = extract_regions(block.text)
    raw_left = clean_markdown(regions.left)
    explanation = clean_markdown(regions.right) if regions.has_right else ""
    source = clean_markdown(regions.source) if regions.has_source else None
    statement = extract_statement(regions.left)
    answer = extract_answer(regions.left, regions.right)

    base = QuestionEntry(
        id=block.id,
        statement=statement,
        answer=answer,
        answer_tokens=tuple(tokenize_answer(answer)),
        question_body=strip_answer_lines(raw_left),
        explanation=explanation,
        chapter=chapter,
        source=source,
        raw_left=raw_left,
    )

    if len(_LEFT_QUESTION_RE.findall(regions.left)) > 1:
        return _expand_left_questions(base, regions.left, explanation)
    if len(_RIGHT_SEGMENT_RE.findall(explanation)) > 1:
        return _expand_right_segments(base, explanation)
    return [base]


def _expand_left_questions(
    base: QuestionEntry, left: str, right_clean: str
) -> List[QuestionEntry]:
    # Text before the first marker is an introduction shared by all parts.
    parts = _LEFT_QUESTION_RE.split(left)
    # ``split`` keeps the captured numbers: [intro, n1, body1, n2, body2, ...]
    bodies = parts[2::2]
    entries: List[QuestionEntry] = []
    for index, body in enumerate(bodies, start=1):
        cleaned = clean_markdown(body)
        lines = [line.strip() for line in cleaned.split("\n") if line.strip()]
        statement = lines[0] if lines else ""
        options = "\n".join(lines[1:])
        segment = _right_question_segment(right_clean, index)
        answer = _bracket_answer(segment)
        explanation_match = _BRACKET_EXPLANATION_RE.search(segment)
        entries.append(
            QuestionEntry(
                id=f"{base.id}-Q{index}",
                statement=statement,
                answer=answer,
                answer_tokens=tuple(tokenize_answer(answer)),
                question_body=options or statement,
                explanation=(
                    explanation_match.group(1).strip()
                    if explanation_match
                    else ""
                ),
                chapter=base.chapter,
                source=base.source,
                raw_left=cleaned,
            )
        )
    return entries


def _right_question_segment(right: str, number: int) -> str:
    """Slice of ``right`` from ``問題 <number>`` up to the next ``問題 N``."""
    start = re.search(rf"問題\s*{number}(?!\d)", right)
    if not start:
        return ""
    following = _RIGHT_QUESTION_RE.search(right, start.end())
    end = following.start() if following else len(right)
    return right[start.start():end]


def _bracket_answer(segment: str) -> str:
    match = _BRACKET_ANSWER_RE.search(segment)
    if not match:
        return ""
    return to_half_width(re.sub(r"[.．]", "", match.group(1)).strip())


def _expand_right_segments(
    base: QuestionEntry, right_clean: str
) -> List[QuestionEntry]:
    segments = [
        seg.strip() for seg in _RIGHT_SEGMENT_RE.split(right_clean)[1:]
    ]
    entries: List[QuestionEntry] = []
    for index, segment in enumerate(filter(None, segments), start=1):
        answer = (
            match_answer(RESPONSE_ANSWER_RE, segment)
            or match_answer(CORRECT_ANSWER_RE, segment)
            or base.answer
        )
        statement = _segment_statement(segment) or base.statement
        labelled = _EXPLANATION_LABEL_RE.split(segment, maxsplit=1)
        explanation = labelled[1].strip() if len(labelled) > 1 else ""
        entries.append(
            QuestionEntry(
                id=f"{base.id}-Q{index}",
                statement=statement,
                answer=answer,
                answer_tokens=tuple(tokenize_answer(answer)),
                question_body=statement,
                explanation=explanation or segment,
                chapter=base.chapter,
                source=base.source,
                raw_left=base.raw_left,
            )
        )
    return entries


def _segment_statement(segment: str) -> str:
    """First non-answer line of a ``Q{n}`` segment.

    The punctuation that follows the marker (``Q1.``, ``Q2：``, ``Q3)``) is
    stripped on purpose, so the statement reads the same as a left-page one
    instead of keeping the line exactly as written.
    """
    for line in segment.split("\n"):
        text = _SEGMENT_LEAD_RE.sub("", line).strip()
        if text and "解答" not in text:
            return text
    return ""
