"""Spread quiz trainer: parse spread documents, drill them, track progress."""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
