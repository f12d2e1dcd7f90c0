"""Declarative descriptors registered through the Configurer and Builder.

Descriptors are pydantic models so that plain mappings coming from user
modules are validated once at registration time. Callback fields are
plain callables. Flag fragment fields on targets and configs accept
either a list of fragment descriptors, a plain list (or mapping, for
definitions) or a mapping keyed by visibility bucket::

    compile_options={"interface": ["-A"], "private": ["-B"], "public": ["-C"]}
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field, field_validator

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
from fibs.model.results import ValidationResult

_SCOPE_KEYS = {scope.value for scope in Scope}


def _always_valid(*_args: Any) -> ValidationResult:
    return ValidationResult.ok()


class Desc(BaseModel):
    """Base for every named descriptor."""

    name: str = Field(min_length=1)

    model_config = {"extra": "forbid", "arbitrary_types_allowed": True}


class Owned(BaseModel):
    """Ownership tags attached to resolved fragments.

    Attributes:
        owner_dir: Directory of the import that declared the item.
        owner_module: Identity (file path) of the declaring module.
    """

    owner_dir: str = ""
    owner_module: str = ""


# -- flag fragments ---------------------------------------------------------


class IncludeDirectoriesDesc(BaseModel):
    dirs: List[str]
    scope: Optional[Scope] = None
    system: bool = False
    language: Optional[Language] = None
    build_mode: Optional[BuildMode] = None

    model_config = {"extra": "forbid"}


class LinkDirectoriesDesc(BaseModel):
    dirs: List[str]
    scope: Optional[Scope] = None
    build_mode: Optional[BuildMode] = None

    model_config = {"extra": "forbid"}


class CompileDefinitionsDesc(BaseModel):
    defs: Dict[str, str]
    scope: Optional[Scope] = None
    language: Optional[Language] = None
    build_mode: Optional[BuildMode] = None

    model_config = {"extra": "forbid"}


class CompileOptionsDesc(BaseModel):
    opts: List[str]
    scope: Optional[Scope] = None
    language: Optional[Language] = None
    build_mode: Optional[BuildMode] = None

    model_config = {"extra": "forbid"}


class LinkOptionsDesc(BaseModel):
    opts: List[str]
    scope: Optional[Scope] = None
    build_mode: Optional[BuildMode] = None

    model_config = {"extra": "forbid"}


_PAYLOAD_KEYS = {
    IncludeDirectoriesDesc: "dirs",
    LinkDirectoriesDesc: "dirs",
    CompileDefinitionsDesc: "defs",
    CompileOptionsDesc: "opts",
    LinkOptionsDesc: "opts",
}


def normalize_fragments(value: Any, desc_cls: type) -> List[Any]:
    """Normalize the accepted fragment shapes into a list of descriptor inputs.

    Args:
        value: A descriptor, a mapping, a list of strings or descriptors, or
            a mapping keyed by visibility bucket.
        desc_cls: Fragment descriptor class the result is validated against.

    Returns:
        List of descriptors or mappings accepted by ``desc_cls``.
    """
    key = _PAYLOAD_KEYS[desc_cls]
    if value is None:
        return []
    if isinstance(value, desc_cls):
        return [value]
    if isinstance(value, Mapping):
        if key in value:
            return [value]
        if value and set(value) <= _SCOPE_KEYS:
            return [
                {key: items, "scope": scope}
                for scope, items in value.items()
                if items
            ]
        if key == "defs":
            return [{"defs": dict(value)}] if value else []
        raise ValueError(f"cannot interpret {dict(value)!r} as {desc_cls.__name__}")
    if isinstance(value, (list, tuple)):
        if all(isinstance(item, str) for item in value):
            return [{key: list(value)}] if value else []
        return list(value)
    raise ValueError(f"cannot interpret {value!r} as {desc_cls.__name__}")


def coerce_fragment(value: Any, desc_cls: type) -> List[Any]:
    """Validate builder input into a list of fragment descriptors."""
    return [desc_cls.model_validate(item) if not isinstance(item, desc_cls) else item
            for item in normalize_fragments(value, desc_cls)]


class FragmentFields(BaseModel):
    """Flag fragment lists shared by configs and targets."""

    include_directories: List[IncludeDirectoriesDesc] = Field(default_factory=list)
    compile_definitions: List[CompileDefinitionsDesc] = Field(default_factory=list)
    compile_options: List[CompileOptionsDesc] = Field(default_factory=list)
    link_options: List[LinkOptionsDesc] = Field(default_factory=list)

    @field_validator("include_directories", mode="before")
    @classmethod
    def _include_directories(cls, v: Any) -> List[Any]:
        return normalize_fragments(v, IncludeDirectoriesDesc)

    @field_validator("compile_definitions", mode="before")
    @classmethod
    def _compile_definitions(cls, v: Any) -> List[Any]:
        return normalize_fragments(v, CompileDefinitionsDesc)

    @field_validator("compile_options", mode="before")
    @classmethod
    def _compile_options(cls, v: Any) -> List[Any]:
        return normalize_fragments(v, CompileOptionsDesc)

    @field_validator("link_options", mode="before")
    @classmethod
    def _link_options(cls, v: Any) -> List[Any]:
        return normalize_fragments(v, LinkOptionsDesc)


# -- configure phase descriptors ----------------------------------------------


class CmakeVariableDesc(Desc):
    value: Union[bool, str]


class ImportDesc(Desc):
    """An external dependency fetched by git URL and ref.

    Attributes:
        url: Git URL of the dependency.
        ref: Branch, tag or commit, the remote HEAD when None.
        files: Module files to load, the conventional entry file when None.
    """

    url: str = Field(min_length=1)
    ref: Optional[str] = None
    files: Optional[List[str]] = None


class CommandDesc(Desc):
    help: str = ""
    run: Callable[..., Any]


class JobDesc(Desc):
    """A job template targets can reference by name.

    ``validator(args)`` returns a ValidationResult for the job arguments,
    ``build(project, config, target, args)`` returns a ``Job``.
    """

    help: str = ""
    validator: Callable[..., Any] = _always_valid
    build: Callable[..., Any]


class ToolDesc(Desc):
    platforms: List[Platform] = Field(
        default_factory=lambda: [Platform.WINDOWS, Platform.MACOS, Platform.LINUX]
    )
    optional: bool = False
    not_found_msg: str = ""
    exists: Callable[[], bool]


class RunnerDesc(Desc):
    run: Callable[..., Any]


class OpenerDesc(Desc):
    generate: Callable[..., Any]
    open: Callable[..., Any]


class AdapterDesc(Desc):
    configure: Callable[..., Any]
    generate: Callable[..., Any]
    build: Callable[..., Any]


class SettingDesc(Desc):
    default: str
    validator: Callable[..., Any] = _always_valid


class CmakeCodeDesc(Desc):
    """Injects raw CMake code, ``func(project, config) -> str``."""

    func: Callable[..., str]


class TargetAttributesDesc(Desc):
    """Runs ``func(target_builder)`` on every target before its user callback."""

    func: Callable[..., Any]


class ConfigDesc(Desc, FragmentFields):
    """A build configuration.

    ``platform`` and ``build_mode`` may be omitted when the config inherits
    them from another config through ``inherits``.
    """

    platform: Optional[Platform] = None
    build_mode: Optional[BuildMode] = None
    inherits: Optional[str] = None
    runner: Optional[str] = None
    opener: Optional[str] = None
    adapter: Optional[str] = None
    generator: Optional[Generator] = None
    arch: Optional[Arch] = None
    toolchain_file: Optional[str] = None
    cmake_includes: List[str] = Field(default_factory=list)
    cmake_variables: Dict[str, Union[bool, str]] = Field(default_factory=dict)
    environment: Dict[str, str] = Field(default_factory=dict)
    options: Dict[str, Any] = Field(default_factory=dict)
    compilers: List[Compiler] = Field(default_factory=list)
    validator: Optional[Callable[..., Any]] = None

    model_config = {"extra": "forbid", "arbitrary_types_allowed": True}


# -- build phase descriptors --------------------------------------------------


class TargetJob(BaseModel):
    job: str
    args: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}


class TargetDesc(Desc, FragmentFields):
    type: TargetType
    dir: Optional[str] = None
    sources: List[str] = Field(default_factory=list)
    deps: List[str] = Field(default_factory=list)
    libs: List[str] = Field(default_factory=list)
    frameworks: List[str] = Field(default_factory=list)
    props: Dict[str, str] = Field(default_factory=dict)
    jobs: List[TargetJob] = Field(default_factory=list)

    model_config = {"extra": "forbid", "arbitrary_types_allowed": True}


# -- resolved configure phase items -------------------------------------------


class CmakeVariable(CmakeVariableDesc, Owned):
    pass


class Command(CommandDesc, Owned):
    pass


class JobTemplate(JobDesc, Owned):
    pass


class Tool(ToolDesc, Owned):
    pass


class Runner(RunnerDesc, Owned):
    pass


class Opener(OpenerDesc, Owned):
    pass


class Adapter(AdapterDesc, Owned):
    pass


class CmakeCode(CmakeCodeDesc, Owned):
    pass


class TargetAttributes(TargetAttributesDesc, Owned):
    pass


class Setting(SettingDesc, Owned):
    value: str


class Import(ImportDesc, Owned):
    """A resolved import.

    Attributes:
        import_dir: Local working copy, empty when the fetch failed.
        valid: Whether the working copy was available.
        errors: Soft errors recorded while fetching, loading or configuring.
        modules: Identities of the modules loaded from ``import_dir``.
    """

    import_dir: str = ""
    valid: bool = False
    errors: List[Any] = Field(default_factory=list)
    modules: List[str] = Field(default_factory=list)


def owned(resolved_cls: type, desc: BaseModel, owner_dir: str, owner_module: str,
          **extra: Any) -> Any:
    """Build a resolved item from a descriptor plus ownership tags."""
    return resolved_cls(
        **dict(desc), owner_dir=owner_dir, owner_module=owner_module, **extra
    )


def names(items: Sequence[Desc]) -> List[str]:
    return [item.name for item in items]
