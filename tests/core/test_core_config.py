from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from spread_quiz.config import load_config
from spread_quiz.core import config as core_config
from spread_quiz.core.config import ConfigFileError


def _defaults() -> dict:
    return {
        "quiz": {"document": "", "shuffle": False},
        "logging": {"level": "INFO"},
    }


def test_packaged_template_lists_every_table() -> None:
    contents = core_config.template_text()
    parsed = tomllib.loads(contents)

    assert set(parsed) == {"quiz", "remote", "server", "upload", "logging"}
    assert parsed["quiz"]["show_explanations"] is True
    assert parsed["server"]["port"] == 5000
    assert "TEACHER_SECRET_TOKEN" in contents


def test_written_template_loads_as_defaults(workspace) -> None:
    target = workspace.home / "config" / "spread_quiz.toml"

    assert core_config.write_template(target) == target
    result = load_config(env=workspace.env())

    assert result.config_path is not None
    assert result.config.document is None
    assert result.config.remote_url is None
    assert result.config.log_level == "INFO"


def test_write_template_refuses_overwrite(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "spread_quiz.toml"
    target.parent.mkdir()
    target.write_text("# mine\n", encoding="utf-8")

    with pytest.raises(ConfigFileError, match="already exists"):
        core_config.write_template(target)
    assert target.read_text(encoding="utf-8") == "# mine\n"

    core_config.write_template(target, overwrite=True)
    assert "[quiz]" in target.read_text(encoding="utf-8")


def test_overlay_replaces_known_values() -> None:
    defaults = _defaults()

    core_config.overlay_tables(
        defaults, {"quiz": {"shuffle": True}, "logging": {"level": "DEBUG"}}
    )

    assert defaults == {
        "quiz": {"document": "", "shuffle": True},
        "logging": {"level": "DEBUG"},
    }


@pytest.mark.parametrize(
    "parsed, message",
    [
        ({"quiz": {"seed": 1}}, "Unknown configuration key 'quiz.seed'"),
        ({"server": {}}, "Unknown configuration key 'server'"),
        ({"logging": "DEBUG"}, "Expected table for 'logging', found str"),
    ],
)
def test_overlay_rejects_bad_shapes(parsed: dict, message: str) -> None:
    with pytest.raises(ConfigFileError, match=message):
        core_config.overlay_tables(_defaults(), parsed)


def test_read_config_file_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileError, match="not found"):
        core_config.read_config_file(tmp_path / "missing.toml")

    broken = tmp_path / "broken.toml"
    broken.write_text("[quiz\n", encoding="utf-8")
    with pytest.raises(ConfigFileError, match="Failed to parse"):
        core_config.read_config_file(broken)


def test_read_config_file_keeps_japanese_values(tmp_path: Path) -> None:
    path = tmp_path / "spread_quiz.toml"
    path.write_text('[quiz]\nuser_key = "花子"\n', encoding="utf-8")

    assert core_config.read_config_file(path) == {"quiz": {"user_key": "花子"}}
