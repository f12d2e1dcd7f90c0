"""Filesystem helpers for persisted JSON state."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import TypeAdapter, ValidationError

logger = logging.getLogger("fibs.utils.fsutil")

PathLike = Union[str, Path]

_STRING_TABLE = TypeAdapter(Dict[str, str])
_JSON_OBJECT = TypeAdapter(Dict[str, Any])


def write_json_atomic(path: PathLike, data: Any) -> None:
    """Write JSON to ``path`` through a temp file and ``os.replace``.

    Readers either see the previous file or the complete new one.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
            fh.write("\n")
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    logger.debug("Wrote %s", target)


def read_string_table(path: PathLike) -> Dict[str, str]:
    """Read a flat ``{str: str}`` JSON object, empty when the file is missing.

    Raises:
        ValueError: If the file is not valid JSON or not a flat string table.
    """
    source = Path(path)
    if not source.is_file():
        return {}
    text = source.read_text(encoding="utf-8")
    try:
        return _STRING_TABLE.validate_json(text)
    except ValidationError as exc:
        raise ValueError(f"'{source}' is not a flat JSON string table: {exc}") from exc


def read_json_object(path: PathLike) -> Dict[str, Any]:
    """Read a JSON object with arbitrary values, empty when the file is missing.

    Raises:
        ValueError: If the file is not valid JSON or not an object.
    """
    source = Path(path)
    if not source.is_file():
        return {}
    text = source.read_text(encoding="utf-8")
    try:
        return _JSON_OBJECT.validate_json(text)
    except ValidationError as exc:
        raise ValueError(f"'{source}' is not a JSON object: {exc}") from exc


def remove_tree(path: PathLike) -> bool:
    """Remove a directory tree, returning False if it did not exist."""
    target = Path(path)
    if not target.exists():
        return False
    shutil.rmtree(target)
    return True


def dir_exists(path: PathLike) -> bool:
    return Path(path).is_dir()
