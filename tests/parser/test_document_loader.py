from __future__ import annotations

import pytest
from fixtures import NO_BLOCKS_DOCUMENT, SAMPLE_DOCUMENT

from spread_quiz.parser import (
    DocumentError,
    NoQuestionsError,
    load_questions,
    parse_document_text,
)


def test_load_questions_reads_document(workspace) -> None:
    path = workspace.document(SAMPLE_DOCUMENT)
    entries = load_questions(path)
    assert [entry.id for entry in entries] == ["Q1"]


def test_missing_document_raises(tmp_path) -> None:
    with pytest.raises(DocumentError, match="not found"):
        load_questions(tmp_path / "absent.md")


def test_document_without_questions_raises(workspace) -> None:
    path = workspace.document(NO_BLOCKS_DOCUMENT)
    with pytest.raises(NoQuestionsError) as excinfo:
        load_questions(path)
    assert "No extractable questions" in str(excinfo.value)
    assert isinstance(excinfo.value, DocumentError)


def test_parse_document_text_names_origin() -> None:
    with pytest.raises(NoQuestionsError, match="lesson.md"):
        parse_document_text("", origin="lesson.md")
