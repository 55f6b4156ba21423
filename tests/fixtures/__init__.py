"""Shared testing fixtures for the spread-quiz test suite."""

from .documents import (  # noqa: F401
    COURSE_DOCUMENT,
    LEFT_MARKERS_DOCUMENT,
    NO_BLOCKS_DOCUMENT,
    RIGHT_SEGMENTS_DOCUMENT,
    SAMPLE_DOCUMENT,
)
from .http import FakeResponse, FakeSession  # noqa: F401
from .storage import FakeStorageClient  # noqa: F401
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "COURSE_DOCUMENT",
    "FakeResponse",
    "FakeSession",
    "FakeStorageClient",
    "LEFT_MARKERS_DOCUMENT",
    "NO_BLOCKS_DOCUMENT",
    "RIGHT_SEGMENTS_DOCUMENT",
    "SAMPLE_DOCUMENT",
    "WorkspaceBuilder",
    "build_tree",
]
