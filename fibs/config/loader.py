"""Helpers for loading the engine configuration from TOML/JSON sources.

This module provides a single entry point `load_engine_config`
that accepts various configuration sources:

* None -> default EngineConfig
* dict -> EngineConfig.model_validate
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings

``FIBS_<FIELD>`` environment variables override values from any source.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from fibs.config.schema import EngineConfig
from fibs.errors import ConfigurationError

logger = logging.getLogger("fibs.config.loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]

ENV_PREFIX = "FIBS_"


def _parse_toml(text: str) -> Dict[str, Any]:
    """Parse TOML text into a dict.

    Uses stdlib tomllib on Python 3.11+ and `tomli` on older interpreters.
    """
    try:
        import tomllib  # type: ignore[attr-defined]
    except ImportError:  # pragma: no cover - Python <3.11 path
        import tomli as tomllib  # type: ignore[no-redef]
    return tomllib.loads(text)


def _read_source(source: Union[str, Path]) -> Dict[str, Any]:
    path = Path(source)
    if path.exists():
        text = path.read_text(encoding="utf-8")
        suffix = path.suffix.lower()
        if suffix in {".toml", ".tml"}:
            fmt = "toml"
        elif suffix == ".json":
            fmt = "json"
        else:
            fmt = "json" if text.lstrip().startswith(("{", "[")) else "toml"
        logger.info("Loading engine configuration from file: %s (fmt=%s)", path, fmt)
    else:
        text = str(source)
        fmt = "json" if text.lstrip().startswith(("{", "[")) else "toml"
        logger.info("Loading engine configuration from inline %s string", fmt)

    data = json.loads(text) if fmt == "json" else _parse_toml(text)
    if not isinstance(data, dict):
        raise ConfigurationError("Top-level engine configuration must be a mapping")
    # allow a [fibs] table so the options can live in a shared TOML file
    if isinstance(data.get("fibs"), dict):
        data = data["fibs"]
    return data


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    for field_name in EngineConfig.model_fields:
        key = ENV_PREFIX + field_name.upper()
        if key in environ:
            overrides[field_name] = environ[key]
    return overrides


def load_engine_config(
    source: ConfigSource = None, environ: Optional[Mapping[str, str]] = None
) -> EngineConfig:
    """Load EngineConfig from various configuration sources.

    Args:
        source: One of:
            * None: defaults
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)
        environ: Environment used for ``FIBS_*`` overrides, defaults to
            ``os.environ``.

    Returns:
        EngineConfig instance.

    Raises:
        ConfigurationError: If the source cannot be parsed or fails validation.
    """
    if source is None:
        data: Dict[str, Any] = {}
    elif isinstance(source, dict):
        data = dict(source)
    elif isinstance(source, (str, Path)):
        try:
            data = _read_source(source)
        except (ValueError, OSError) as exc:
            raise ConfigurationError(f"failed to read engine configuration: {exc}") from exc
    else:
        raise TypeError(f"Unsupported config source type: {type(source)!r}")

    overrides = _env_overrides(os.environ if environ is None else environ)
    if overrides:
        logger.debug("Engine configuration overrides from environment: %s", overrides)
        data.update(overrides)

    try:
        return EngineConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid engine configuration: {exc}") from exc


__all__ = ["ConfigSource", "load_engine_config"]
