"""Project directory layout and alias-based path resolution.

Paths in declarations may start with an alias token such as ``@build`` or
``@self``. Alias maps are plain dicts rebuilt on every call by
``build_alias_map()`` for one of three scopes (project, config, target).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from fibs.errors import UnknownAliasError
from fibs.model.enums import Platform, TargetType


ALIAS_MARKER = "@"


class AliasScope(Enum):
    """Scope of an alias map, each scope extends the previous one."""

    PROJECT = "project"
    CONFIG = "config"
    TARGET = "target"


@dataclass(frozen=True)
class ProjectLayout:
    """On-disk layout below a project root.

    Paths are built with pathlib and handed out as forward-slash strings,
    the form CMake files and alias maps expect on every platform.

    Attributes:
        root_dir: Absolute project directory.
        fibs_dir_name: Name of the state directory below ``root_dir``.
    """

    root_dir: str
    fibs_dir_name: str = ".fibs"

    @property
    def fibs_path(self) -> Path:
        return Path(self.root_dir) / self.fibs_dir_name

    def fibs_dir(self) -> str:
        return self.fibs_path.as_posix()

    def sdk_dir(self) -> str:
        return (self.fibs_path / "sdks").as_posix()

    def imports_dir(self) -> str:
        return (self.fibs_path / "imports").as_posix()

    def config_dir(self, config_name: str) -> str:
        return (self.fibs_path / "config" / config_name).as_posix()

    def build_dir(self, config_name: str) -> str:
        return (self.fibs_path / "build" / config_name).as_posix()

    def dist_dir(self, config_name: str) -> str:
        return (self.fibs_path / "dist" / config_name).as_posix()

    def settings_path(self) -> str:
        return (self.fibs_path / "settings.json").as_posix()

    def links_path(self) -> str:
        return (self.fibs_path / "links.json").as_posix()

    def target_build_dir(self, config_name: str, target_name: str) -> str:
        return (self.fibs_path / "build" / config_name / target_name).as_posix()

    def target_dist_dir(
        self,
        config_name: str,
        target_name: str,
        platform: Platform,
        target_type: TargetType,
    ) -> str:
        """Directory executables of a target end up in.

        Windowed executables on Apple platforms live inside an app bundle.
        """
        dist = Path(self.dist_dir(config_name))
        if target_type == TargetType.WINDOWED_EXE:
            if platform == Platform.MACOS:
                return (dist / f"{target_name}.app" / "Contents" / "MacOS").as_posix()
            if platform == Platform.IOS:
                return (dist / f"{target_name}.app").as_posix()
        return dist.as_posix()

    def target_assets_dir(
        self,
        config_name: str,
        target_name: str,
        platform: Platform,
        target_type: TargetType,
    ) -> str:
        dist = Path(self.dist_dir(config_name))
        if target_type == TargetType.WINDOWED_EXE:
            if platform == Platform.MACOS:
                return (dist / f"{target_name}.app" / "Contents" / "Resources").as_posix()
            if platform == Platform.IOS:
                return (dist / f"{target_name}.app").as_posix()
        return dist.as_posix()


def build_alias_map(
    layout: ProjectLayout,
    scope: AliasScope,
    self_dir: str,
    config_name: Optional[str] = None,
    platform: Optional[Platform] = None,
    target_name: Optional[str] = None,
    target_type: Optional[TargetType] = None,
    target_dir: Optional[str] = None,
) -> Dict[str, str]:
    """Build the alias map for a scope.

    Args:
        layout: Project layout the aliases point into.
        scope: Project, config or target scope.
        self_dir: Directory of the declaring import, bound to ``@self``.
        config_name: Required for config and target scope.
        platform: Required for target scope.
        target_name: Required for target scope.
        target_type: Required for target scope.
        target_dir: Source directory of the target, required for target scope.

    Returns:
        Mapping of alias token to absolute directory.
    """
    aliases = {
        "@root": layout.root_dir,
        "@self": self_dir,
        "@fibs": layout.fibs_dir(),
        "@sdks": layout.sdk_dir(),
        "@imports": layout.imports_dir(),
    }
    if scope in (AliasScope.CONFIG, AliasScope.TARGET):
        if config_name is None:
            raise ValueError(f"{scope.value} scope alias map requires a config name")
        aliases["@build"] = layout.build_dir(config_name)
        aliases["@dist"] = layout.dist_dir(config_name)
    if scope == AliasScope.TARGET:
        if target_name is None or target_type is None or platform is None or target_dir is None:
            raise ValueError("target scope alias map requires target name, type, dir and platform")
        aliases["@targetsources"] = target_dir
        aliases["@targetbuild"] = layout.target_build_dir(config_name, target_name)
        aliases["@targetdist"] = layout.target_dist_dir(
            config_name, target_name, platform, target_type
        )
        aliases["@targetassets"] = layout.target_assets_dir(
            config_name, target_name, platform, target_type
        )
    return aliases


def _expand(alias_map: Dict[str, str], segment: str) -> str:
    token, sep, rest = segment.partition("/")
    if token not in alias_map:
        raise UnknownAliasError(token, alias_map.keys())
    return alias_map[token] + sep + rest


def resolve_alias(alias_map: Dict[str, str], item: str) -> str:
    """Resolve a single item, leaving non-alias items untouched."""
    if item.startswith(ALIAS_MARKER):
        return _expand(alias_map, item)
    return item


def resolve_path(alias_map: Dict[str, str], *segments: Optional[str]) -> str:
    """Resolve path segments into one path.

    Empty segments are skipped. The last segment that starts with an alias
    token (or is an absolute path) becomes the base, every segment before
    it is discarded. Remaining segments are joined with ``/``.

    Raises:
        UnknownAliasError: If the base alias token is not in ``alias_map``.
    """
    parts = [seg for seg in segments if seg]
    start = 0
    for index, seg in enumerate(parts):
        if seg.startswith(ALIAS_MARKER) or os.path.isabs(seg):
            start = index
    parts = parts[start:]
    if not parts:
        return ""
    if parts[0].startswith(ALIAS_MARKER):
        parts[0] = _expand(alias_map, parts[0])
    head = [seg.rstrip("/") for seg in parts[:-1]]
    return "/".join(head + [parts[-1]])
