"""Build-phase registration surfaces and target resolution.

``Builder`` is handed to every module's ``build(b)`` once a config is
active. Targets are declared either as a ready descriptor or as
``(name, type, fn)`` where ``fn`` receives a ``TargetBuilder``. Target
attribute injectors run on their own TargetBuilder before the user's
declaration and both results are merged.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from fibs.errors import ConfigurationError, DuplicateNameError
from fibs.model.descriptors import (
    CmakeVariableDesc,
    CompileDefinitionsDesc,
    CompileOptionsDesc,
    IncludeDirectoriesDesc,
    LinkDirectoriesDesc,
    LinkOptionsDesc,
    TargetAttributes,
    TargetDesc,
    TargetJob,
    coerce_fragment,
)
from fibs.model.enums import Scope, TargetType
from fibs.model.resolved import Config, Target
from fibs.runtime.fragments import (
    expand_compile_definitions,
    expand_compile_options,
    expand_include_directories,
    expand_link_options,
    into_buckets,
)
from fibs.runtime.merge import merge_target_desc
from fibs.runtime.paths import AliasScope, ProjectLayout, build_alias_map, resolve_alias, resolve_path

logger = logging.getLogger("fibs.runtime.builder")


def _fragments(value: Any, desc_cls: type) -> List[Any]:
    try:
        return coerce_fragment(value, desc_cls)
    except (ValidationError, ValueError) as exc:
        raise ConfigurationError(f"invalid {desc_cls.__name__}: {exc}") from exc


def _forward(name: str) -> Callable[..., Any]:
    def method(self: "Builder", *args: Any, **kwargs: Any) -> Any:
        return getattr(self.project, name)(*args, **kwargs)

    method.__name__ = name
    method.__doc__ = f"Same as ``ProjectState.{name}()``."
    return method


class TargetBuilder:
    """Incrementally assembles a target descriptor.

    Args:
        name: Target name.
        type: Target type.
        project: Project state, available to callbacks for queries.
    """

    def __init__(self, name: str, type: Union[TargetType, str], project: Any = None) -> None:
        self._name = name
        self._type = TargetType(type)
        self.project = project
        self._dir: Optional[str] = None
        self._sources: List[str] = []
        self._deps: List[str] = []
        self._libs: List[str] = []
        self._frameworks: List[str] = []
        self._props: Dict[str, str] = {}
        self._jobs: List[TargetJob] = []
        self._include_directories: List[IncludeDirectoriesDesc] = []
        self._compile_definitions: List[CompileDefinitionsDesc] = []
        self._compile_options: List[CompileOptionsDesc] = []
        self._link_options: List[LinkOptionsDesc] = []

    def name(self) -> str:
        return self._name

    def type(self) -> TargetType:
        return self._type

    def set_dir(self, dir: str) -> None:
        self._dir = dir

    def add_source(self, source: str) -> None:
        self._sources.append(source)

    def add_sources(self, sources: Sequence[str]) -> None:
        self._sources.extend(sources)

    def add_dependencies(self, deps: Sequence[str]) -> None:
        self._deps.extend(deps)

    def add_libraries(self, libs: Sequence[str]) -> None:
        self._libs.extend(libs)

    def add_frameworks(self, frameworks: Sequence[str]) -> None:
        self._frameworks.extend(frameworks)

    def set_property(self, key: str, value: str) -> None:
        self._props[key] = value

    def add_include_directories(self, dirs: Any) -> None:
        self._include_directories.extend(_fragments(dirs, IncludeDirectoriesDesc))

    def add_compile_definitions(self, defs: Any) -> None:
        self._compile_definitions.extend(_fragments(defs, CompileDefinitionsDesc))

    def add_compile_options(self, opts: Any) -> None:
        self._compile_options.extend(_fragments(opts, CompileOptionsDesc))

    def add_link_options(self, opts: Any) -> None:
        self._link_options.extend(_fragments(opts, LinkOptionsDesc))

    def add_job(self, job: Union[TargetJob, Mapping, str], args: Optional[Mapping[str, Any]] = None) -> None:
        """Attach a job, as a TargetJob, a mapping or ``(job_name, args)``."""
        if isinstance(job, str):
            job = TargetJob(job=job, args=dict(args or {}))
        elif not isinstance(job, TargetJob):
            job = TargetJob.model_validate(job)
        self._jobs.append(job)

    def to_desc(self) -> TargetDesc:
        try:
            return TargetDesc(
                name=self._name,
                type=self._type,
                dir=self._dir,
                sources=self._sources,
                deps=self._deps,
                libs=self._libs,
                frameworks=self._frameworks,
                props=self._props,
                jobs=self._jobs,
                include_directories=self._include_directories,
                compile_definitions=self._compile_definitions,
                compile_options=self._compile_options,
                link_options=self._link_options,
            )
        except ValidationError as exc:
            raise ConfigurationError(f"invalid target '{self._name}': {exc}") from exc


class Builder:
    """Collects build-phase declarations of one module.

    Args:
        project: Project state in the build phase.
        self_dir: Directory of the import the module belongs to.
        module_identity: Identity of the module, used for ownership tags.
        injectors: Target attribute injectors to run on every target.
    """

    def __init__(
        self,
        project: Any,
        self_dir: str,
        module_identity: str = "",
        injectors: Sequence[TargetAttributes] = (),
    ) -> None:
        self.project = project
        self._self_dir = self_dir
        self.module_identity = module_identity
        self.injectors = list(injectors)
        self.project_name: Optional[str] = None
        self.cmake_variables: List[CmakeVariableDesc] = []
        self.cmake_includes: List[str] = []
        self.targets: List[TargetDesc] = []
        self.include_directories: List[IncludeDirectoriesDesc] = []
        self.link_directories: List[LinkDirectoriesDesc] = []
        self.compile_definitions: List[CompileDefinitionsDesc] = []
        self.compile_options: List[CompileOptionsDesc] = []
        self.link_options: List[LinkOptionsDesc] = []

    def self_dir(self) -> str:
        return self._self_dir

    def set_project_name(self, name: str) -> None:
        """Set the project name, only honoured for the root module."""
        self.project_name = name

    def add_cmake_variable(self, name: str, value: Union[bool, str]) -> None:
        if any(var.name == name for var in self.cmake_variables):
            raise DuplicateNameError("cmake variable", name, self._self_dir)
        try:
            self.cmake_variables.append(CmakeVariableDesc(name=name, value=value))
        except ValidationError as exc:
            raise ConfigurationError(f"invalid cmake variable '{name}': {exc}") from exc

    def add_cmake_include(self, path: str) -> None:
        self.cmake_includes.append(path)

    def add_include_directories(self, dirs: Any) -> None:
        self.include_directories.extend(_fragments(dirs, IncludeDirectoriesDesc))

    def add_link_directories(self, dirs: Any) -> None:
        self.link_directories.extend(_fragments(dirs, LinkDirectoriesDesc))

    def add_compile_definitions(self, defs: Any) -> None:
        self.compile_definitions.extend(_fragments(defs, CompileDefinitionsDesc))

    def add_compile_options(self, opts: Any) -> None:
        self.compile_options.extend(_fragments(opts, CompileOptionsDesc))

    def add_link_options(self, opts: Any) -> None:
        self.link_options.extend(_fragments(opts, LinkOptionsDesc))

    def add_target(
        self,
        target: Union[TargetDesc, Mapping, str],
        type: Union[TargetType, str, None] = None,
        fn: Optional[Callable[[TargetBuilder], None]] = None,
    ) -> TargetDesc:
        """Declare a target.

        Args:
            target: A TargetDesc or mapping, or the target name.
            type: Target type, required when ``target`` is a name.
            fn: Callback filling a TargetBuilder, required when ``target``
                is a name.

        Raises:
            DuplicateNameError: If this builder already declared the name.
            ConfigurationError: On argument mismatch or invalid fields.
        """
        if isinstance(target, str):
            if type is None or fn is None:
                raise ConfigurationError(f"add_target('{target}') requires a type and a callback")
            # injectors fill the builder first, the callback extends or overrides
            target_builder = TargetBuilder(target, type, self.project)
            self._inject(target_builder)
            fn(target_builder)
            desc = target_builder.to_desc()
        else:
            if isinstance(target, TargetDesc):
                desc = target
            else:
                try:
                    desc = TargetDesc.model_validate(target)
                except ValidationError as exc:
                    raise ConfigurationError(f"invalid target: {exc}") from exc
            if self.injectors:
                injected = TargetBuilder(desc.name, desc.type, self.project)
                self._inject(injected)
                desc = merge_target_desc(injected.to_desc(), desc)

        if any(existing.name == desc.name for existing in self.targets):
            raise DuplicateNameError("target", desc.name, self._self_dir)
        self.targets.append(desc)
        return desc

    def _inject(self, target_builder: TargetBuilder) -> None:
        for injector in self.injectors:
            injector.func(target_builder)

    # build-phase info, forwarded to the project
    host_platform = _forward("host_platform")
    host_arch = _forward("host_arch")
    project_dir = _forward("dir")
    fibs_dir = _forward("fibs_dir")
    sdk_dir = _forward("sdk_dir")
    imports_dir = _forward("imports_dir")
    config_dir = _forward("config_dir")
    build_dir = _forward("build_dir")
    dist_dir = _forward("dist_dir")
    active_config = _forward("active_config")
    platform = _forward("platform")
    compiler = _forward("compiler")
    build_mode = _forward("build_mode")
    imports = _forward("imports")
    find_import = _forward("find_import")
    import_dir = _forward("import_dir")
    settings = _forward("settings")
    is_platform = _forward("is_platform")
    is_windows = _forward("is_windows")
    is_linux = _forward("is_linux")
    is_macos = _forward("is_macos")
    is_ios = _forward("is_ios")
    is_android = _forward("is_android")
    is_emscripten = _forward("is_emscripten")
    is_wasi = _forward("is_wasi")
    is_wasm = _forward("is_wasm")
    is_compiler = _forward("is_compiler")
    is_msvc = _forward("is_msvc")
    is_gcc = _forward("is_gcc")
    is_clang = _forward("is_clang")
    is_appleclang = _forward("is_appleclang")
    is_debug = _forward("is_debug")
    is_release = _forward("is_release")
    is_host_windows = _forward("is_host_windows")
    is_host_linux = _forward("is_host_linux")
    is_host_macos = _forward("is_host_macos")


def default_target_scope(target_type: TargetType) -> Scope:
    return Scope.INTERFACE if target_type == TargetType.INTERFACE else Scope.PRIVATE


def resolve_target(
    layout: ProjectLayout,
    config: Config,
    desc: TargetDesc,
    owner_dir: str,
    owner_module: str = "",
) -> Target:
    """Resolve a target descriptor into a Target with absolute paths.

    The source directory is resolved relative to the declaring import,
    sources and include directories relative to the source directory.
    Flag fragments keep their visibility buckets.
    """
    project_aliases = build_alias_map(layout, AliasScope.CONFIG, owner_dir, config_name=config.name)
    target_dir = resolve_path(project_aliases, owner_dir, desc.dir)
    aliases = build_alias_map(
        layout,
        AliasScope.TARGET,
        owner_dir,
        config_name=config.name,
        platform=config.platform,
        target_name=desc.name,
        target_type=desc.type,
        target_dir=target_dir,
    )
    scope = default_target_scope(desc.type)
    return Target(
        name=desc.name,
        type=desc.type,
        dir=target_dir,
        sources=[resolve_path(aliases, target_dir, src) for src in desc.sources],
        deps=[resolve_alias(aliases, dep) for dep in desc.deps],
        libs=[resolve_alias(aliases, lib) for lib in desc.libs],
        frameworks=list(desc.frameworks),
        props={key: resolve_alias(aliases, value) for key, value in desc.props.items()},
        include_directories=into_buckets(
            expand_include_directories(
                desc.include_directories, aliases, target_dir, scope, owner_dir, owner_module
            )
        ),
        compile_definitions=into_buckets(
            expand_compile_definitions(desc.compile_definitions, aliases, scope, owner_dir, owner_module)
        ),
        compile_options=into_buckets(
            expand_compile_options(desc.compile_options, aliases, scope, owner_dir, owner_module)
        ),
        link_options=into_buckets(
            expand_link_options(desc.link_options, aliases, scope, owner_dir, owner_module)
        ),
        jobs=list(desc.jobs),
        owner_dir=owner_dir,
        owner_module=owner_module,
    )
