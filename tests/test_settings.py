"""Tests for persisted settings."""

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from fibs.errors import SettingsError
from fibs.model.results import ValidationResult
from fibs.runtime import settings


def _write_settings(project_dir: Path, table: Any) -> Path:
    path = project_dir / ".fibs" / "settings.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(table), encoding="utf-8")
    return path


def _read(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def test_unknown_config_name_kept_by_builtin_setting(
    make_engine: Callable[..., Any], project_dir: Path
) -> None:
    """The builtin config setting accepts any name, unknown keys are dropped."""
    path = _write_settings(project_dir, {"config": "bogus-config", "unknownKey": "x"})
    project = make_engine().configure()

    assert settings.get(project, "config") == "bogus-config"
    assert _read(path) == {"config": "bogus-config"}


def test_strict_config_setting_falls_back_to_default(
    make_engine: Callable[..., Any], project_dir: Path
) -> None:
    """A project validator rejecting the stored name restores the default."""

    def strict(project: Any, value: str) -> ValidationResult:
        if project.find_config(value) is None:
            return ValidationResult.fail(f"unknown config '{value}'")
        return ValidationResult.ok()

    def configure(c: Any) -> None:
        c.add_setting(name="config", default="linux-make-debug", validator=strict)

    path = _write_settings(project_dir, {"config": "bogus-config", "unknownKey": "x"})
    engine = make_engine(configure=configure)
    project = engine.configure()

    assert settings.get(project, "config") == "linux-make-debug"
    assert _read(path) == {"config": "linux-make-debug"}
    assert engine.activate_config().name == "linux-make-debug"


def test_clean_file_is_not_rewritten(make_engine: Callable[..., Any], project_dir: Path) -> None:
    path = _write_settings(project_dir, {"config": "linux-ninja-debug"})
    path.write_text('{"config":"linux-ninja-debug"}', encoding="utf-8")
    project = make_engine().configure()

    assert not settings.load(project)
    assert path.read_text(encoding="utf-8") == '{"config":"linux-ninja-debug"}'


def test_set_and_unset(make_engine: Callable[..., Any], project_dir: Path) -> None:
    """Setting a value persists every known setting, unset restores the default."""

    def configure(c: Any) -> None:
        c.add_setting(name="jobs", default="4", validator=lambda p, v: v.isdigit())

    project = make_engine(configure=configure).configure()
    path = project_dir / ".fibs" / "settings.json"

    settings.set_value(project, "jobs", "8")
    assert settings.get(project, "jobs") == "8"
    assert _read(path)["jobs"] == "8"
    assert "config" in _read(path)

    with pytest.raises(SettingsError, match="invalid value 'many'"):
        settings.set_value(project, "jobs", "many")
    with pytest.raises(SettingsError):
        settings.set_value(project, "nope", "1")

    settings.unset(project, "jobs")
    assert settings.get(project, "jobs") == "4"
    with pytest.raises(SettingsError):
        settings.unset(project, "nope")


@pytest.mark.parametrize(
    "table",
    [
        {"config": "linux-ninja-debug", "unknownKey": 5},
        {"config": "linux-ninja-debug", "nested": {"a": "b"}},
    ],
)
def test_unknown_key_with_non_string_value_is_dropped(
    make_engine: Callable[..., Any], project_dir: Path, table: Any
) -> None:
    path = _write_settings(project_dir, table)
    project = make_engine().configure()

    assert settings.get(project, "config") == "linux-ninja-debug"
    assert _read(path) == {"config": "linux-ninja-debug"}


@pytest.mark.parametrize("value", [True, 5, None, ["not", "a", "string"]])
def test_wrongly_typed_value_falls_back_to_default(
    make_engine: Callable[..., Any], project_dir: Path, value: Any
) -> None:
    """A known key holding a non-string keeps its default and the file is rewritten."""
    path = _write_settings(project_dir, {"config": value})
    project = make_engine().configure()

    default = project.setting("config").default
    assert settings.get(project, "config") == default
    assert _read(path) == {"config": default}


@pytest.mark.parametrize("text", ["{not json", '["config", "linux-make-debug"]'])
def test_unreadable_settings_file_is_fatal(
    make_engine: Callable[..., Any], project_dir: Path, text: str
) -> None:
    """Only a file that is not a JSON object at all stops configuration."""
    path = project_dir / ".fibs" / "settings.json"
    path.parent.mkdir(parents=True)
    path.write_text(text, encoding="utf-8")
    with pytest.raises(SettingsError, match="failed loading settings"):
        make_engine().configure()
