"""Flask progress server: learner progress, teacher dashboard, uploads."""

from __future__ import annotations

from .app import create_app, settings_from_config
from .models import Answer, StudyDay, User, db

__all__ = [
    "Answer",
    "StudyDay",
    "User",
    "create_app",
    "db",
    "settings_from_config",
]
