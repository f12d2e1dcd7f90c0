"""Resolved build items produced by the resolution engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar, Union

from fibs.model.enums import (
    Arch,
    BuildMode,
    Compiler,
    Generator,
    Language,
    Platform,
    Scope,
    TargetType,
)


@dataclass(frozen=True)
class ArenaRef:
    """Handle into an arena of resolved items.

    Attributes:
        kind: Fragment kind of the arena (e.g. ``runner``).
        index: Position of the item inside the arena.
        name: Name of the referenced item, kept for diagnostics.
    """

    kind: str
    index: int
    name: str


@dataclass
class IncludeDirectory:
    dir: str
    scope: Scope
    system: bool = False
    language: Optional[Language] = None
    build_mode: Optional[BuildMode] = None
    owner_dir: str = ""
    owner_module: str = ""


@dataclass
class LinkDirectory:
    dir: str
    scope: Scope
    build_mode: Optional[BuildMode] = None
    owner_dir: str = ""
    owner_module: str = ""


@dataclass
class CompileDefinition:
    name: str
    value: str
    scope: Scope
    language: Optional[Language] = None
    build_mode: Optional[BuildMode] = None
    owner_dir: str = ""
    owner_module: str = ""


@dataclass
class CompileOption:
    opt: str
    scope: Scope
    language: Optional[Language] = None
    build_mode: Optional[BuildMode] = None
    owner_dir: str = ""
    owner_module: str = ""


@dataclass
class LinkOption:
    opt: str
    scope: Scope
    build_mode: Optional[BuildMode] = None
    owner_dir: str = ""
    owner_module: str = ""


@dataclass
class CmakeInclude:
    path: str
    owner_dir: str = ""
    owner_module: str = ""


T = TypeVar("T")


@dataclass
class TargetBuckets(Generic[T]):
    """Per-visibility lists of a target's flag items, never merged."""

    interface: List[T] = field(default_factory=list)
    private: List[T] = field(default_factory=list)
    public: List[T] = field(default_factory=list)

    def bucket(self, scope: Union[Scope, str]) -> List[T]:
        return getattr(self, Scope(scope).value)

    def add(self, scope: Union[Scope, str], item: T) -> None:
        self.bucket(scope).append(item)

    def items(self) -> Iterator[Tuple[Scope, List[T]]]:
        for scope in (Scope.INTERFACE, Scope.PRIVATE, Scope.PUBLIC):
            yield scope, self.bucket(scope)

    def all(self) -> List[T]:
        return [*self.interface, *self.private, *self.public]


@dataclass
class Config:
    """A resolved build configuration.

    Cross references are ``ArenaRef`` handles, look them up through
    ``ProjectState.runner_for()`` and friends.
    """

    name: str
    platform: Platform
    build_mode: BuildMode
    runner: ArenaRef
    adapter: ArenaRef
    opener: Optional[ArenaRef] = None
    inherits: Optional[str] = None
    generator: Optional[Generator] = None
    arch: Optional[Arch] = None
    toolchain_file: Optional[str] = None
    cmake_includes: List[CmakeInclude] = field(default_factory=list)
    cmake_variables: Dict[str, Union[bool, str]] = field(default_factory=dict)
    environment: Dict[str, str] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    compilers: List[Compiler] = field(default_factory=list)
    include_directories: List[IncludeDirectory] = field(default_factory=list)
    compile_definitions: List[CompileDefinition] = field(default_factory=list)
    compile_options: List[CompileOption] = field(default_factory=list)
    link_options: List[LinkOption] = field(default_factory=list)
    validator: Optional[Callable[..., Any]] = None
    owner_dir: str = ""
    owner_module: str = ""


@dataclass
class Target:
    """A resolved build target with absolute source paths."""

    name: str
    type: TargetType
    dir: str
    sources: List[str] = field(default_factory=list)
    deps: List[str] = field(default_factory=list)
    libs: List[str] = field(default_factory=list)
    frameworks: List[str] = field(default_factory=list)
    props: Dict[str, str] = field(default_factory=dict)
    include_directories: TargetBuckets[IncludeDirectory] = field(default_factory=TargetBuckets)
    compile_definitions: TargetBuckets[CompileDefinition] = field(default_factory=TargetBuckets)
    compile_options: TargetBuckets[CompileOption] = field(default_factory=TargetBuckets)
    link_options: TargetBuckets[LinkOption] = field(default_factory=TargetBuckets)
    jobs: List[Any] = field(default_factory=list)
    owner_dir: str = ""
    owner_module: str = ""
