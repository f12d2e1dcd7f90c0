"""Phase-gated project state.

``ProjectState`` is the aggregate the resolution engine fills in phase by
phase. Every accessor declares the phase its data becomes valid in,
calling it earlier raises ``PhaseError``. Only the engine moves the phase
forward, one step at a time.
"""

from __future__ import annotations

import functools
import logging
import os
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar, Union

import networkx as nx

from fibs.errors import ConfigurationError, FibsError, PhaseError, UnresolvedReferenceError
from fibs.model.descriptors import (
    Adapter,
    CmakeCode,
    CmakeVariable,
    Command,
    Import,
    JobTemplate,
    Opener,
    Runner,
    Setting,
    TargetAttributes,
    Tool,
)
from fibs.model.enums import Arch, BuildMode, Compiler, Platform
from fibs.model.resolved import (
    CmakeInclude,
    CompileDefinition,
    CompileOption,
    Config,
    IncludeDirectory,
    LinkDirectory,
    LinkOption,
    Target,
)
from fibs.runtime import host
from fibs.runtime.arena import Arena
from fibs.runtime.lifecycle import ProjectPhase
from fibs.runtime.paths import ProjectLayout

logger = logging.getLogger("fibs.runtime.project")

F = TypeVar("F", bound=Callable[..., Any])

# configure-phase fragment kinds stored in arenas
CONFIGURE_KINDS = (
    "cmake_variable",
    "import",
    "command",
    "job",
    "tool",
    "runner",
    "opener",
    "config",
    "setting",
    "adapter",
    "cmake_code",
    "target_attributes",
)


def requires_phase(phase: ProjectPhase) -> Callable[[F], F]:
    """Guard a ``ProjectState`` method with a minimum phase."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: "ProjectState", *args: Any, **kwargs: Any) -> Any:
            self.assert_phase_at_least(phase, func.__name__)
            return func(self, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


class ProjectState:
    """Resolved project data, readable according to the current phase.

    Args:
        layout: Directory layout of the project.
    """

    def __init__(self, layout: ProjectLayout) -> None:
        self.layout = layout
        self._phase = ProjectPhase.INITIAL
        self._name = os.path.basename(layout.root_dir.rstrip("/")) or "project"
        self._arenas: Dict[str, Arena] = {kind: Arena(kind) for kind in CONFIGURE_KINDS}
        self._import_graph: nx.DiGraph = nx.DiGraph()
        self._active_config: Optional[str] = None
        self._compiler = Compiler.UNKNOWN
        self._targets: Arena[Target] = Arena("target")
        self._cmake_includes: List[CmakeInclude] = []
        self._include_directories: List[IncludeDirectory] = []
        self._link_directories: List[LinkDirectory] = []
        self._compile_definitions: List[CompileDefinition] = []
        self._compile_options: List[CompileOption] = []
        self._link_options: List[LinkOption] = []

    # -- phase handling ----------------------------------------------------

    @property
    def phase(self) -> ProjectPhase:
        return self._phase

    def assert_phase_at_least(self, required: ProjectPhase, accessor: str = "") -> None:
        """Raise PhaseError unless the current phase is ``required`` or later."""
        if self._phase < required:
            raise PhaseError(accessor or "accessor", required, self._phase)

    def _advance(self, phase: ProjectPhase) -> None:
        if phase != self._phase + 1:
            raise FibsError(f"invalid project phase transition: {self._phase!s} -> {phase!s}")
        logger.debug("project phase: %s -> %s", self._phase, phase)
        self._phase = phase

    # -- engine side population --------------------------------------------

    def _install_configure(
        self, name: Optional[str], arenas: Dict[str, Arena], import_graph: nx.DiGraph
    ) -> None:
        if name:
            self._name = name
        self._arenas.update(arenas)
        self._import_graph = import_graph

    def _install_active(self, config_name: str, compiler: Compiler) -> None:
        self._active_config = config_name
        self._compiler = compiler

    def _install_build(
        self,
        name: Optional[str],
        targets: Iterable[Target],
        cmake_variables: Iterable[CmakeVariable],
        cmake_includes: List[CmakeInclude],
        include_directories: List[IncludeDirectory],
        link_directories: List[LinkDirectory],
        compile_definitions: List[CompileDefinition],
        compile_options: List[CompileOption],
        link_options: List[LinkOption],
    ) -> None:
        if name:
            self._name = name
        self._targets = Arena("target", targets)
        for var in cmake_variables:
            self._arenas["cmake_variable"].add(var)
        self._cmake_includes = cmake_includes
        self._include_directories = include_directories
        self._link_directories = link_directories
        self._compile_definitions = compile_definitions
        self._compile_options = compile_options
        self._link_options = link_options

    # -- configure phase: host info and directories --------------------------

    @requires_phase(ProjectPhase.CONFIGURE)
    def host_platform(self) -> Platform:
        return host.host_platform()

    @requires_phase(ProjectPhase.CONFIGURE)
    def host_arch(self) -> Arch:
        return host.host_arch()

    def is_host_platform(self, platform: Union[Platform, str]) -> bool:
        return self.host_platform() == Platform(platform)

    def is_host_windows(self) -> bool:
        return self.is_host_platform(Platform.WINDOWS)

    def is_host_linux(self) -> bool:
        return self.is_host_platform(Platform.LINUX)

    def is_host_macos(self) -> bool:
        return self.is_host_platform(Platform.MACOS)

    @requires_phase(ProjectPhase.CONFIGURE)
    def dir(self) -> str:
        return self.layout.root_dir

    @requires_phase(ProjectPhase.CONFIGURE)
    def fibs_dir(self) -> str:
        return self.layout.fibs_dir()

    @requires_phase(ProjectPhase.CONFIGURE)
    def sdk_dir(self) -> str:
        return self.layout.sdk_dir()

    @requires_phase(ProjectPhase.CONFIGURE)
    def imports_dir(self) -> str:
        return self.layout.imports_dir()

    def _config_name(self, config_name: Optional[str]) -> str:
        if config_name is None:
            return self.active_config().name
        return config_name

    @requires_phase(ProjectPhase.CONFIGURE)
    def config_dir(self, config_name: Optional[str] = None) -> str:
        return self.layout.config_dir(self._config_name(config_name))

    @requires_phase(ProjectPhase.CONFIGURE)
    def build_dir(self, config_name: Optional[str] = None) -> str:
        return self.layout.build_dir(self._config_name(config_name))

    @requires_phase(ProjectPhase.CONFIGURE)
    def dist_dir(self, config_name: Optional[str] = None) -> str:
        return self.layout.dist_dir(self._config_name(config_name))

    # -- configure phase: resolved fragments --------------------------------

    @requires_phase(ProjectPhase.CONFIGURE)
    def arena(self, kind: str) -> Arena:
        return self._arenas[kind]

    @requires_phase(ProjectPhase.CONFIGURE)
    def items(self, kind: str) -> List[Any]:
        return list(self._arenas[kind])

    @requires_phase(ProjectPhase.CONFIGURE)
    def find(self, kind: str, name: Optional[str]) -> Optional[Any]:
        return self._arenas[kind].find(name)

    def get(self, kind: str, name: str) -> Any:
        """Like ``find`` but raises UnresolvedReferenceError for unknown names."""
        item = self.find(kind, name)
        if item is None:
            raise UnresolvedReferenceError(kind, name)
        return item

    def settings(self) -> List[Setting]:
        return self.items("setting")

    def configs(self) -> List[Config]:
        return self.items("config")

    def imports(self) -> List[Import]:
        return self.items("import")

    def commands(self) -> List[Command]:
        return self.items("command")

    def tools(self) -> List[Tool]:
        return self.items("tool")

    def jobs(self) -> List[JobTemplate]:
        return self.items("job")

    def runners(self) -> List[Runner]:
        return self.items("runner")

    def openers(self) -> List[Opener]:
        return self.items("opener")

    def adapters(self) -> List[Adapter]:
        return self.items("adapter")

    def cmake_variables(self) -> List[CmakeVariable]:
        return self.items("cmake_variable")

    def cmake_code(self) -> List[CmakeCode]:
        return self.items("cmake_code")

    def target_attributes(self) -> List[TargetAttributes]:
        return self.items("target_attributes")

    def setting(self, name: str) -> Setting:
        return self.get("setting", name)

    def config(self, name: str) -> Config:
        return self.get("config", name)

    def command(self, name: str) -> Command:
        return self.get("command", name)

    def tool(self, name: str) -> Tool:
        return self.get("tool", name)

    def job(self, name: str) -> JobTemplate:
        return self.get("job", name)

    def find_config(self, name: Optional[str]) -> Optional[Config]:
        return self.find("config", name)

    def find_import(self, name: Optional[str]) -> Optional[Import]:
        return self.find("import", name)

    def find_command(self, name: Optional[str]) -> Optional[Command]:
        return self.find("command", name)

    def import_dir(self, import_name: str) -> str:
        return self.get("import", import_name).import_dir

    def runner_for(self, config: Config) -> Runner:
        return self.arena("runner").get(config.runner)

    def opener_for(self, config: Config) -> Optional[Opener]:
        if config.opener is None:
            return None
        return self.arena("opener").get(config.opener)

    def adapter_for(self, config: Config) -> Adapter:
        return self.arena("adapter").get(config.adapter)

    @requires_phase(ProjectPhase.CONFIGURE)
    def import_graph(self) -> nx.DiGraph:
        return self._import_graph

    def has_import_errors(self) -> bool:
        return any(imp.errors for imp in self.imports())

    # -- build phase ---------------------------------------------------------

    @requires_phase(ProjectPhase.BUILD)
    def active_config(self) -> Config:
        if self._active_config is None:
            raise ConfigurationError("no active config")
        return self.config(self._active_config)

    def platform(self) -> Platform:
        return self.active_config().platform

    def build_mode(self) -> BuildMode:
        return self.active_config().build_mode

    @requires_phase(ProjectPhase.BUILD)
    def compiler(self) -> Compiler:
        return self._compiler

    def is_platform(self, platform: Union[Platform, str]) -> bool:
        return self.platform() == Platform(platform)

    def is_windows(self) -> bool:
        return self.is_platform(Platform.WINDOWS)

    def is_linux(self) -> bool:
        return self.is_platform(Platform.LINUX)

    def is_macos(self) -> bool:
        return self.is_platform(Platform.MACOS)

    def is_ios(self) -> bool:
        return self.is_platform(Platform.IOS)

    def is_android(self) -> bool:
        return self.is_platform(Platform.ANDROID)

    def is_emscripten(self) -> bool:
        return self.is_platform(Platform.EMSCRIPTEN)

    def is_wasi(self) -> bool:
        return self.is_platform(Platform.WASI)

    def is_wasm(self) -> bool:
        return self.is_emscripten() or self.is_wasi()

    def is_compiler(self, compiler: Union[Compiler, str]) -> bool:
        return self.compiler() == Compiler(compiler)

    def is_msvc(self) -> bool:
        return self.is_compiler(Compiler.MSVC)

    def is_gcc(self) -> bool:
        return self.is_compiler(Compiler.GCC)

    def is_clang(self) -> bool:
        return self.compiler() in (Compiler.CLANG, Compiler.APPLECLANG)

    def is_appleclang(self) -> bool:
        return self.is_compiler(Compiler.APPLECLANG)

    def is_debug(self) -> bool:
        return self.build_mode() == BuildMode.DEBUG

    def is_release(self) -> bool:
        return self.build_mode() == BuildMode.RELEASE

    # -- generate phase -----------------------------------------------------

    @requires_phase(ProjectPhase.GENERATE)
    def name(self) -> str:
        return self._name

    @requires_phase(ProjectPhase.GENERATE)
    def targets(self) -> List[Target]:
        return list(self._targets)

    @requires_phase(ProjectPhase.GENERATE)
    def find_target(self, name: Optional[str]) -> Optional[Target]:
        return self._targets.find(name)

    def target(self, name: str) -> Target:
        target = self.find_target(name)
        if target is None:
            raise UnresolvedReferenceError("target", name)
        return target

    @requires_phase(ProjectPhase.GENERATE)
    def cmake_includes(self) -> List[CmakeInclude]:
        return list(self._cmake_includes)

    @requires_phase(ProjectPhase.GENERATE)
    def include_directories(self) -> List[IncludeDirectory]:
        return list(self._include_directories)

    @requires_phase(ProjectPhase.GENERATE)
    def link_directories(self) -> List[LinkDirectory]:
        return list(self._link_directories)

    @requires_phase(ProjectPhase.GENERATE)
    def compile_definitions(self) -> List[CompileDefinition]:
        return list(self._compile_definitions)

    @requires_phase(ProjectPhase.GENERATE)
    def compile_options(self) -> List[CompileOption]:
        return list(self._compile_options)

    @requires_phase(ProjectPhase.GENERATE)
    def link_options(self) -> List[LinkOption]:
        return list(self._link_options)

    def target_source_dir(self, target_name: str) -> str:
        return self.target(target_name).dir

    def target_build_dir(self, target_name: str, config_name: Optional[str] = None) -> str:
        self.target(target_name)
        return self.layout.target_build_dir(self._config_name(config_name), target_name)

    def target_dist_dir(self, target_name: str, config_name: Optional[str] = None) -> str:
        config = self.active_config() if config_name is None else self.config(config_name)
        target = self.target(target_name)
        return self.layout.target_dist_dir(config.name, target.name, config.platform, target.type)

    def target_assets_dir(self, target_name: str, config_name: Optional[str] = None) -> str:
        config = self.active_config() if config_name is None else self.config(config_name)
        target = self.target(target_name)
        return self.layout.target_assets_dir(config.name, target.name, config.platform, target.type)

    @requires_phase(ProjectPhase.GENERATE)
    def find_compile_definition(self, name: str) -> Optional[CompileDefinition]:
        """Look up a compile definition, target definitions before global ones."""
        for target in self._targets:
            for definition in target.compile_definitions.all():
                if definition.name == name:
                    return definition
        for definition in self._compile_definitions:
            if definition.name == name:
                return definition
        return None
