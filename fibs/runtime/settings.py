"""Persisted user settings (``<fibs dir>/settings.json``).

The file is a flat ``{name: value}`` table. Unknown keys and invalid values
are dropped on load with a warning, after which the file is rewritten with
the current value of every known setting.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fibs.errors import SettingsError
from fibs.model.results import ValidationResult
from fibs.runtime.project import ProjectState
from fibs.utils.fsutil import read_json_object, write_json_atomic

logger = logging.getLogger("fibs.runtime.settings")


def validate(project: ProjectState, key: str, value: str) -> ValidationResult:
    """Check ``value`` against the validator of setting ``key``."""
    setting = project.find("setting", key)
    if setting is None:
        return ValidationResult.fail(f"unknown settings item '{key}' (run 'fibs list settings')")
    return ValidationResult.coerce(setting.validator(project, value))


def load(project: ProjectState) -> bool:
    """Apply persisted values to the resolved settings.

    Returns:
        bool: True if the file had to be rewritten.

    Raises:
        SettingsError: If the file exists but is not a JSON object.
    """
    path = project.layout.settings_path()
    try:
        table = read_json_object(path)
    except (ValueError, OSError) as exc:
        raise SettingsError(f"failed loading settings from '{path}': {exc}") from exc

    dirty = False
    for key, value in table.items():
        if isinstance(value, str):
            result = validate(project, key, value)
        else:
            result = ValidationResult.fail(f"value must be a string, got {type(value).__name__}")
        if result.valid:
            project.setting(key).value = value
        else:
            logger.warning("dropping settings item '%s'=%r: %s", key, value, "; ".join(result.hints))
            dirty = True
    if dirty:
        logger.warning("invalid settings encountered, cleaning up %s", path)
        save(project)
    return dirty


def save(project: ProjectState) -> None:
    """Write every known setting, not only changed ones."""
    path = project.layout.settings_path()
    try:
        write_json_atomic(path, as_table(project))
    except OSError as exc:
        raise SettingsError(f"failed saving settings to '{path}': {exc}") from exc


def as_table(project: ProjectState) -> Dict[str, str]:
    return {setting.name: setting.value for setting in project.settings()}


def set_value(project: ProjectState, key: str, value: str) -> None:
    """Validate and persist a new value.

    Raises:
        SettingsError: If the key is unknown or the value does not validate.
    """
    result = validate(project, key, value)
    if not result.valid:
        hints = "; ".join(result.hints) or "rejected by validator"
        raise SettingsError(f"invalid value '{value}' for settings item '{key}': {hints}")
    project.setting(key).value = value
    save(project)
    logger.info("%s => %s", key, value)


def unset(project: ProjectState, key: str) -> None:
    """Reset ``key`` to its default and persist.

    Raises:
        SettingsError: If the key is unknown.
    """
    setting = project.find("setting", key)
    if setting is None:
        raise SettingsError(f"unknown settings item '{key}' (run 'fibs list settings')")
    setting.value = setting.default
    save(project)
    logger.info("%s => %s (default)", key, setting.default)


def get(project: ProjectState, key: str) -> Optional[str]:
    setting = project.find("setting", key)
    return None if setting is None else setting.value
