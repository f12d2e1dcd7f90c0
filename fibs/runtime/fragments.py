"""Expansion of flag fragment descriptors into flat, tagged items.

Each expander resolves path aliases against the given alias map, applies
the default visibility scope and tags every item with its owning import.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, TypeVar

from fibs.model.descriptors import (
    CompileDefinitionsDesc,
    CompileOptionsDesc,
    IncludeDirectoriesDesc,
    LinkDirectoriesDesc,
    LinkOptionsDesc,
)
from fibs.model.enums import Scope
from fibs.model.resolved import (
    CompileDefinition,
    CompileOption,
    IncludeDirectory,
    LinkDirectory,
    LinkOption,
    TargetBuckets,
)
from fibs.runtime.paths import resolve_alias, resolve_path

T = TypeVar("T")


def expand_include_directories(
    descs: Iterable[IncludeDirectoriesDesc],
    alias_map: Dict[str, str],
    base_dir: str,
    default_scope: Scope,
    owner_dir: str = "",
    owner_module: str = "",
) -> List[IncludeDirectory]:
    return [
        IncludeDirectory(
            dir=resolve_path(alias_map, base_dir, path),
            scope=desc.scope or default_scope,
            system=desc.system,
            language=desc.language,
            build_mode=desc.build_mode,
            owner_dir=owner_dir,
            owner_module=owner_module,
        )
        for desc in descs
        for path in desc.dirs
    ]


def expand_link_directories(
    descs: Iterable[LinkDirectoriesDesc],
    alias_map: Dict[str, str],
    base_dir: str,
    default_scope: Scope,
    owner_dir: str = "",
    owner_module: str = "",
) -> List[LinkDirectory]:
    return [
        LinkDirectory(
            dir=resolve_path(alias_map, base_dir, path),
            scope=desc.scope or default_scope,
            build_mode=desc.build_mode,
            owner_dir=owner_dir,
            owner_module=owner_module,
        )
        for desc in descs
        for path in desc.dirs
    ]


def expand_compile_definitions(
    descs: Iterable[CompileDefinitionsDesc],
    alias_map: Dict[str, str],
    default_scope: Scope,
    owner_dir: str = "",
    owner_module: str = "",
) -> List[CompileDefinition]:
    return [
        CompileDefinition(
            name=name,
            value=resolve_alias(alias_map, value),
            scope=desc.scope or default_scope,
            language=desc.language,
            build_mode=desc.build_mode,
            owner_dir=owner_dir,
            owner_module=owner_module,
        )
        for desc in descs
        for name, value in desc.defs.items()
    ]


def expand_compile_options(
    descs: Iterable[CompileOptionsDesc],
    alias_map: Dict[str, str],
    default_scope: Scope,
    owner_dir: str = "",
    owner_module: str = "",
) -> List[CompileOption]:
    return [
        CompileOption(
            opt=resolve_alias(alias_map, opt),
            scope=desc.scope or default_scope,
            language=desc.language,
            build_mode=desc.build_mode,
            owner_dir=owner_dir,
            owner_module=owner_module,
        )
        for desc in descs
        for opt in desc.opts
    ]


def expand_link_options(
    descs: Iterable[LinkOptionsDesc],
    alias_map: Dict[str, str],
    default_scope: Scope,
    owner_dir: str = "",
    owner_module: str = "",
) -> List[LinkOption]:
    return [
        LinkOption(
            opt=resolve_alias(alias_map, opt),
            scope=desc.scope or default_scope,
            build_mode=desc.build_mode,
            owner_dir=owner_dir,
            owner_module=owner_module,
        )
        for desc in descs
        for opt in desc.opts
    ]


def into_buckets(items: Sequence[T]) -> TargetBuckets[T]:
    """Sort scoped items into their visibility buckets, keeping order."""
    buckets: TargetBuckets[T] = TargetBuckets()
    for item in items:
        buckets.add(getattr(item, "scope"), item)
    return buckets
