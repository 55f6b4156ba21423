"""JSON-lines logging for spread-quiz commands and the progress server.

Each command writes to its own rotating file in the workspace ``logs/``
directory (``quiz.log``, ``server.log``...). ``--verbose`` mirrors records
to stderr in a short human format.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping

__all__ = ["JsonLogFormatter", "configure_logger"]

_FILE_TAG = "_spread_quiz_file"
_CONSOLE_TAG = "_spread_quiz_console"
_MAX_BYTES = 2 * 1024 * 1024
_BACKUPS = 3


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields go under ``extra``."""

    _STANDARD = frozenset(vars(logging.makeLogRecord({}))) | {
        "message",
        "asctime",
        "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in self._STANDARD
        }
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = record.stack_info
        return json.dumps(entry, ensure_ascii=False)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Attach (or reuse) the JSON file handler of ``name``.

    Returns the logger and the file actually written to, which lives under
    the temp dir when ``log_dir`` is not writable. Calling again with the
    same file keeps a single handler.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    filename = filename or f"{name.split('.')[-1]}.log"
    wanted = _usable_dir(log_dir) / filename
    handler = _file_handler(logger, wanted)
    handler.setLevel(logging.DEBUG if verbose else _level_number(level))

    console = [h for h in logger.handlers if getattr(h, _CONSOLE_TAG, False)]
    if verbose and not console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(
            logging.Formatter("%(levelname)s %(name)s: %(message)s")
        )
        setattr(stream, _CONSOLE_TAG, True)
        logger.addHandler(stream)
    elif not verbose:
        for stream in console:
            logger.removeHandler(stream)
            stream.close()

    return logger, Path(handler.baseFilename)


def _file_handler(logger: logging.Logger, path: Path) -> RotatingFileHandler:
    for current in list(logger.handlers):
        if not getattr(current, _FILE_TAG, False):
            continue
        if Path(current.baseFilename) == path:
            return current
        logger.removeHandler(current)
        current.close()

    try:
        handler = _rotating(path)
    except PermissionError:
        handler = _rotating(_usable_dir(_fallback_log_dir()) / path.name)
    try:
        Path(handler.baseFilename).chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    handler.setFormatter(JsonLogFormatter())
    setattr(handler, _FILE_TAG, True)
    logger.addHandler(handler)
    return handler


def _rotating(path: Path) -> RotatingFileHandler:
    return RotatingFileHandler(
        path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8"
    )


def _usable_dir(log_dir: Path) -> Path:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        log_dir = _fallback_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "spread-quiz-logs"


def _level_number(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return str(value)
