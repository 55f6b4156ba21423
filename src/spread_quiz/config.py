"""Configuration loader for spread-quiz commands."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from dotenv import load_dotenv

from .core import config as core_config
from .core import workspace as workspace_mod

__all__ = [
    "CONFIG_ENV",
    "CONFIG_FILENAME",
    "ConfigOverrides",
    "LoadResult",
    "QuizConfig",
    "QuizConfigError",
    "load_config",
]

CONFIG_FILENAME = "spread_quiz.toml"
CONFIG_ENV = "SPREAD_QUIZ_CONFIG"
ENV_PREFIX = "SPREAD_QUIZ_"
DATABASE_FILENAME = "progress.sqlite3"

TEACHER_TOKEN_ENV = "TEACHER_SECRET_TOKEN"
BUCKET_ENV = "GCS_BUCKET"
PROJECT_ENV = "GCP_PROJECT_ID"
SERVICE_ACCOUNT_ENV = "GCP_SERVICE_ACCOUNT_KEY"

_DEFAULT_TIMEOUT = 10.0
_DEFAULT_HOST = "127.0.0.1"
_DEFAULT_PORT = 5000
_DEFAULT_LOG_LEVEL = "INFO"


class QuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizConfig:
    """Fully resolved configuration shared by every command."""

    document: Optional[Path]
    user_key: Optional[str]
    shuffle: bool
    show_explanations: bool
    remote_url: Optional[str]
    remote_timeout: float
    database_url: str
    host: str
    port: int
    teacher_token: Optional[str]
    bucket: Optional[str]
    project_id: Optional[str]
    service_account_key: Optional[str]
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    document: Optional[Path] = None
    user_key: Optional[str] = None
    shuffle: Optional[bool] = None
    remote_url: Optional[str] = None
    database_url: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    bucket: Optional[str] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Result of loading configuration, including workspace context."""

    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML defaults.

    When ``env`` is omitted, a ``.env`` file is loaded into the process
    environment first so deployment secrets can live outside the TOML.
    """

    overrides = overrides or ConfigOverrides()
    if env is None:
        load_dotenv()
        env_map: Mapping[str, str] = os.environ
    else:
        env_map = env

    try:
        layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise QuizConfigError(str(exc)) from exc
    default_path = layout.path_for("config") / CONFIG_FILENAME

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_path,
    )

    defaults = _default_table()
    loaded_path: Optional[Path]
    if requested_path.exists():
        loaded_path = requested_path
        try:
            parsed = core_config.read_config_file(requested_path)
            core_config.overlay_tables(defaults, parsed)
        except core_config.ConfigFileError as exc:
            raise QuizConfigError(str(exc)) from exc
    else:
        loaded_path = None
        if config_path is not None or env_map.get(CONFIG_ENV, "").strip():
            raise QuizConfigError(f"Config file not found: {requested_path}")

    quiz = defaults["quiz"]
    remote = defaults["remote"]
    server = defaults["server"]
    upload = defaults["upload"]

    document = _pick_first(
        overrides.document,
        _parse_env_path(env_map, "DOCUMENT"),
        _coerce_optional_path(quiz["document"], "quiz.document"),
    )
    if isinstance(document, Path) and not document.is_absolute():
        document = document.expanduser().resolve()

    database_url = _pick_first(
        overrides.database_url,
        _parse_env_string(env_map, "DATABASE_URL"),
        _coerce_optional_str(server["database_url"], "server.database_url"),
    )
    if database_url is None:
        database_url = "sqlite:///{0}".format(
            layout.path_for("progress") / DATABASE_FILENAME
        )

    config = QuizConfig(
        document=document,
        user_key=_pick_first(
            overrides.user_key,
            _parse_env_string(env_map, "USER_KEY"),
            _coerce_optional_str(quiz["user_key"], "quiz.user_key"),
        ),
        shuffle=_coerce_bool(
            _pick_first(overrides.shuffle, quiz["shuffle"]), "quiz.shuffle"
        ),
        show_explanations=_coerce_bool(
            quiz["show_explanations"], "quiz.show_explanations"
        ),
        remote_url=_pick_first(
            overrides.remote_url,
            _parse_env_string(env_map, "REMOTE_URL"),
            _coerce_optional_str(remote["url"], "remote.url"),
        ),
        remote_timeout=_coerce_positive_float(
            remote["timeout_seconds"], "remote.timeout_seconds"
        ),
        database_url=database_url,
        host=_coerce_str(
            _pick_first(overrides.host, server["host"]), "server.host"
        ),
        port=_coerce_port(_pick_first(overrides.port, server["port"])),
        teacher_token=_raw_env(env_map, TEACHER_TOKEN_ENV),
        bucket=_pick_first(
            overrides.bucket,
            _raw_env(env_map, BUCKET_ENV),
            _coerce_optional_str(upload["bucket"], "upload.bucket"),
        ),
        project_id=_pick_first(
            _raw_env(env_map, PROJECT_ENV),
            _coerce_optional_str(upload["project_id"], "upload.project_id"),
        ),
        service_account_key=_raw_env(env_map, SERVICE_ACCOUNT_ENV),
        log_level=_resolve_log_level(
            overrides.log_level,
            _parse_env_string(env_map, "LOG_LEVEL"),
            defaults["logging"]["level"],
        ),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "quiz": {
            "document": "",
            "user_key": "",
            "shuffle": False,
            "show_explanations": True,
        },
        "remote": {"url": "", "timeout_seconds": _DEFAULT_TIMEOUT},
        "server": {
            "database_url": "",
            "host": _DEFAULT_HOST,
            "port": _DEFAULT_PORT,
        },
        "upload": {"bucket": "", "project_id": ""},
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = env_map.get(CONFIG_ENV)
    if env_candidate and env_candidate.strip():
        return Path(env_candidate.strip()).expanduser()
    return default_path


def _coerce_optional_path(value: object, key: str) -> Optional[Path]:
    text = _coerce_optional_str(value, key)
    if text is None:
        return None
    return Path(text).expanduser()


def _coerce_optional_str(value: object, key: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise QuizConfigError(f"{key} must be a string.")
    stripped = value.strip()
    return stripped or None


def _coerce_str(value: object, key: str) -> str:
    text = _coerce_optional_str(value, key)
    if text is None:
        raise QuizConfigError(f"{key} must be a non-empty string.")
    return text


def _coerce_bool(value: object, key: str) -> bool:
    if not isinstance(value, bool):
        raise QuizConfigError(f"{key} must be true or false.")
    return value


def _coerce_positive_float(value: object, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise QuizConfigError(f"{key} must be a number.")
    if value <= 0:
        raise QuizConfigError(f"{key} must be greater than zero.")
    return float(value)


def _coerce_port(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise QuizConfigError("server.port must be an integer.")
    if not 0 < value < 65536:
        raise QuizConfigError("server.port must be between 1 and 65535.")
    return value


def _resolve_log_level(
    override: Optional[str],
    env_value: Optional[str],
    file_value: object,
) -> str:
    candidate = _pick_first(override, env_value, file_value)
    if not isinstance(candidate, str) or not candidate.strip():
        raise QuizConfigError("logging.level must be a non-empty string.")
    return candidate.strip().upper()


def _parse_env_path(env_map: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    return Path(raw).expanduser()


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    return _raw_env(env_map, f"{ENV_PREFIX}{key}")


def _raw_env(env_map: Mapping[str, str], name: str) -> Optional[str]:
    raw = env_map.get(name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates):
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
