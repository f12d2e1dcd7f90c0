"""The resolution engine: import tree walk, merging and phase transitions.

``ResolutionEngine`` drives a ``ProjectState`` through its phases:

1. ``configure()`` walks the import tree depth-first, runs every module's
   ``configure(c)`` and flattens the declarations into arenas
   (last visited node wins). Config cross references are resolved in a
   second pass.
2. ``activate_config()`` selects the build configuration and asks its
   adapter for the compiler.
3. ``build()`` runs every module's ``build(b)`` and resolves targets and
   flags.
4. ``generate()`` / ``build_targets()`` hand the result to the adapter.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

import networkx as nx

from fibs.builtins import register_builtins
from fibs.config.schema import EngineConfig
from fibs.errors import (
    ConfigurationError,
    DuplicateNameError,
    FibsError,
    ImportCycleError,
    ModuleConfigureError,
    RecoverableError,
)
from fibs.model.descriptors import (
    Adapter,
    CmakeCode,
    CmakeVariable,
    Command,
    ConfigDesc,
    Import,
    JobTemplate,
    Opener,
    Runner,
    Setting,
    TargetAttributes,
    Tool,
    owned,
)
from fibs.model.enums import Compiler, Scope
from fibs.model.module import BUILTIN_MODULE, FibsModule
from fibs.model.resolved import CmakeInclude, Config
from fibs.model.results import AdapterBuildOptions, AdapterConfigureResult, ValidationResult
from fibs.runtime import settings
from fibs.runtime.arena import Arena
from fibs.runtime.builder import Builder, resolve_target
from fibs.runtime.configurer import Configurer
from fibs.runtime.fetcher import ImportFetcher
from fibs.runtime.fragments import (
    expand_compile_definitions,
    expand_compile_options,
    expand_include_directories,
    expand_link_directories,
    expand_link_options,
)
from fibs.runtime.host import default_config_name, host_platform
from fibs.runtime.jobs import run_jobs
from fibs.runtime.lifecycle import ProjectPhase
from fibs.runtime.loader import ModuleLoader, load_root_module
from fibs.runtime.merge import Entry, dedupe, inherit_chain, merge_config_desc, preorder
from fibs.runtime.paths import AliasScope, ProjectLayout, build_alias_map, resolve_path
from fibs.runtime.project import ProjectState
from fibs.runtime.validate import check_targets
from fibs.vcs.git import GitClient, VersionControl

logger = logging.getLogger("fibs.runtime.engine")

# fragment kind -> resolved class, configs and imports are resolved separately
RESOLVED_CLASSES = {
    "cmake_variable": CmakeVariable,
    "command": Command,
    "job": JobTemplate,
    "tool": Tool,
    "runner": Runner,
    "opener": Opener,
    "setting": Setting,
    "adapter": Adapter,
    "cmake_code": CmakeCode,
    "target_attributes": TargetAttributes,
}


@dataclass
class ImportNode:
    """One loaded module in the import tree.

    Attributes:
        module: The loaded module.
        import_dir: Directory the module was loaded from.
        configurer: Declarations of the module's ``configure(c)``.
        import_name: Name of the import that pulled the module in.
        errors: Soft errors raised by the module itself.
        failed: The module's configure raised, it contributes nothing.
        imports: Resolved records of the imports this module declared.
        children: Nodes of the modules loaded for those imports.
    """

    module: FibsModule
    import_dir: str
    configurer: Configurer
    import_name: Optional[str] = None
    errors: List[RecoverableError] = field(default_factory=list)
    failed: bool = False
    imports: List[Import] = field(default_factory=list)
    children: List["ImportNode"] = field(default_factory=list)


class ResolutionEngine:
    """Resolves a project directory into a phased ProjectState.

    Args:
        root_dir: Project directory.
        root_module: Root module, loaded from ``root_dir`` when None.
        config: Engine options.
        vcs: Version control used for import fetching.
        fetcher: Import fetcher, built from ``vcs`` when None.
        loader: Module loader for import directories.
    """

    def __init__(
        self,
        root_dir: str,
        root_module: Optional[FibsModule] = None,
        config: Optional[EngineConfig] = None,
        vcs: Optional[VersionControl] = None,
        fetcher: Optional[ImportFetcher] = None,
        loader: Optional[ModuleLoader] = None,
    ) -> None:
        self.config = config or EngineConfig.default()
        self.layout = ProjectLayout(os.path.abspath(root_dir), self.config.fibs_dir_name)
        self.project = ProjectState(self.layout)
        self.vcs = vcs or GitClient(timeout=self.config.git_timeout)
        self.fetcher = fetcher or ImportFetcher(
            self.layout, self.vcs, self.config.clone_depth, self.config.fetch_workers
        )
        self.loader = loader or ModuleLoader(self.config.entry_file, self.config.load_workers)
        self.root_module = root_module
        self.builtin_node: Optional[ImportNode] = None
        self.root: Optional[ImportNode] = None
        self.import_graph: nx.DiGraph = nx.DiGraph()

    # -- tree helpers ------------------------------------------------------

    def nodes(self) -> List[ImportNode]:
        """Tree nodes in merge order: builtins, then the import tree in pre-order."""
        out = [self.builtin_node] if self.builtin_node is not None else []
        if self.root is not None:
            out.extend(preorder(self.root, lambda node: node.children))
        return out

    def _contributing(self) -> Iterator[ImportNode]:
        return (node for node in self.nodes() if not node.failed)

    def _entries(self, kind: str) -> List[Entry]:
        entries = []
        for node in self._contributing():
            items = node.imports if kind == "import" else node.configurer.items(kind)
            entries.extend(Entry(item, node.import_dir, node.module.identity) for item in items)
        return dedupe(entries, key=lambda entry: entry.item.name)

    # -- configure phase ---------------------------------------------------

    def configure(self) -> ProjectState:
        """Walk the import tree and resolve every configure-phase fragment.

        Raises:
            ImportCycleError: If an import leads back onto its own chain.
            DuplicateNameError: If a module registers a name twice.
            UnresolvedReferenceError: If a config references an unknown item.
            ConfigurationError: On invalid declarations.
        """
        root_dir = self.layout.root_dir
        if self.root_module is None:
            self.root_module = load_root_module(root_dir, self.config.entry_file)

        builtin_configurer = Configurer(self.layout, root_dir)
        register_builtins(builtin_configurer, self.config)
        self.builtin_node = ImportNode(
            module=FibsModule(dir=root_dir, filename=BUILTIN_MODULE),
            import_dir=root_dir,
            configurer=builtin_configurer,
        )
        self.root = ImportNode(
            module=self.root_module,
            import_dir=root_dir,
            configurer=Configurer(self.layout, root_dir),
        )
        self.import_graph = nx.DiGraph()
        self.import_graph.add_node(root_dir, root=True)

        self._run_configure(self.root, fatal=True)
        self._walk(self.root, [root_dir])

        arenas = {kind: self._resolve_kind(kind) for kind in RESOLVED_CLASSES}
        arenas["import"] = Arena("import", (entry.item for entry in self._entries("import")))
        arenas["config"] = self._resolve_configs(arenas)

        self.project._install_configure(self.root.configurer.project_name, arenas, self.import_graph)
        self.project._advance(ProjectPhase.CONFIGURE)
        settings.load(self.project)
        logger.info(
            "configured %d import(s), %d config(s)", len(arenas["import"]), len(arenas["config"])
        )
        return self.project

    def _run_configure(self, node: ImportNode, fatal: bool = False) -> None:
        if node.module.configure is None:
            return
        try:
            node.module.configure(node.configurer)
        except FibsError:
            raise
        except Exception as exc:
            if fatal:
                raise ConfigurationError(
                    f"configure() in '{node.module.identity}' failed: {exc}"
                ) from exc
            error = ModuleConfigureError(node.module.identity, exc)
            logger.warning("%s", error)
            node.errors.append(error)
            node.failed = True

    def _walk(self, node: ImportNode, chain: List[str]) -> None:
        descs = list(node.configurer.imports)
        fetched = self.fetcher.prefetch(descs)
        for desc in descs:
            result = fetched[desc.name]
            errors: List[RecoverableError] = list(result.errors)
            module_ids: List[str] = []
            import_dir = os.path.abspath(result.dir) if result.valid else ""
            if result.valid:
                if import_dir in chain:
                    raise ImportCycleError([*chain, import_dir])
                self.import_graph.add_edge(node.import_dir, import_dir, name=desc.name)
                loaded = self.loader.load(import_dir, desc.files)
                errors.extend(loaded.errors)
                for module in loaded.modules:
                    child = ImportNode(
                        module=module,
                        import_dir=import_dir,
                        configurer=Configurer(self.layout, import_dir),
                        import_name=desc.name,
                    )
                    node.children.append(child)
                    module_ids.append(module.identity)
                    self._run_configure(child)
                    errors.extend(child.errors)
                    if not child.failed:
                        self._walk(child, [*chain, import_dir])
            node.imports.append(
                owned(
                    Import,
                    desc,
                    node.import_dir,
                    node.module.identity,
                    import_dir=import_dir,
                    valid=result.valid,
                    errors=errors,
                    modules=module_ids,
                )
            )

    def _resolve_kind(self, kind: str) -> Arena:
        cls = RESOLVED_CLASSES[kind]
        items = []
        for entry in self._entries(kind):
            extra: Dict[str, Any] = {"value": entry.item.default} if kind == "setting" else {}
            items.append(owned(cls, entry.item, entry.owner_dir, entry.owner_module, **extra))
        return Arena(kind, items)

    def _localize_config(self, desc: ConfigDesc, owner_dir: str, config_name: str) -> ConfigDesc:
        """Resolve path-valued config fields against the declaring import."""
        aliases = build_alias_map(self.layout, AliasScope.CONFIG, owner_dir, config_name=config_name)
        updates: Dict[str, Any] = {
            "cmake_includes": [resolve_path(aliases, owner_dir, path) for path in desc.cmake_includes],
            "include_directories": [
                inc.model_copy(update={"dirs": [resolve_path(aliases, owner_dir, d) for d in inc.dirs]})
                for inc in desc.include_directories
            ],
        }
        if desc.toolchain_file:
            updates["toolchain_file"] = resolve_path(aliases, owner_dir, desc.toolchain_file)
        return desc.model_copy(update=updates)

    def _resolve_configs(self, arenas: Dict[str, Arena]) -> Arena:
        entries = self._entries("config")
        descs = {entry.item.name: entry.item for entry in entries}
        owners = {entry.item.name: entry for entry in entries}
        configs = Arena("config")
        for entry in entries:
            name = entry.item.name
            merged: Optional[ConfigDesc] = None
            for src in inherit_chain(entry.item, descs, self.config.max_inherit_depth):
                local = self._localize_config(src, owners[src.name].owner_dir, name)
                merged = local if merged is None else merge_config_desc(merged, local)
            if merged is not None:
                merged = merged.model_copy(update={"name": name})
                configs.add(self._make_config(merged, entry, arenas))
        return configs

    def _make_config(self, desc: ConfigDesc, entry: Entry, arenas: Dict[str, Arena]) -> Config:
        referrer = f"config '{desc.name}'"
        if desc.platform is None:
            raise ConfigurationError(f"{referrer} requires 'platform' field")
        if desc.build_mode is None:
            raise ConfigurationError(f"{referrer} requires 'build_mode' field")
        aliases = build_alias_map(self.layout, AliasScope.CONFIG, entry.owner_dir, config_name=desc.name)
        owner = (entry.owner_dir, entry.owner_module)
        return Config(
            name=desc.name,
            platform=desc.platform,
            build_mode=desc.build_mode,
            runner=arenas["runner"].ref(desc.runner or self.config.default_runner, referrer),
            adapter=arenas["adapter"].ref(desc.adapter or self.config.default_adapter, referrer),
            opener=arenas["opener"].ref(desc.opener, referrer) if desc.opener else None,
            inherits=desc.inherits,
            generator=desc.generator,
            arch=desc.arch,
            toolchain_file=desc.toolchain_file,
            cmake_includes=[CmakeInclude(path, *owner) for path in desc.cmake_includes],
            cmake_variables=dict(desc.cmake_variables),
            environment=dict(desc.environment),
            options=dict(desc.options),
            compilers=list(desc.compilers),
            include_directories=expand_include_directories(
                desc.include_directories, aliases, entry.owner_dir, Scope.PRIVATE, *owner
            ),
            compile_definitions=expand_compile_definitions(
                desc.compile_definitions, aliases, Scope.PRIVATE, *owner
            ),
            compile_options=expand_compile_options(desc.compile_options, aliases, Scope.PRIVATE, *owner),
            link_options=expand_link_options(desc.link_options, aliases, Scope.PRIVATE, *owner),
            validator=desc.validator,
            owner_dir=entry.owner_dir,
            owner_module=entry.owner_module,
        )

    # -- config activation -------------------------------------------------

    def activate_config(self, name: Optional[str] = None) -> Config:
        """Select the active config and determine its compiler.

        Args:
            name: Config name, the ``config`` setting when None.

        Raises:
            ConfigurationError: If the config is unknown or fails validation.
        """
        project = self.project
        project.assert_phase_at_least(ProjectPhase.CONFIGURE, "activate_config")
        if name is None:
            name = settings.get(project, "config") or default_config_name(host_platform())
        config = project.find_config(name)
        if config is None:
            raise ConfigurationError(f"unknown config '{name}' (run 'fibs list configs')")
        if config.validator is not None:
            check = ValidationResult.coerce(config.validator(project))
            if not check.valid:
                hints = "\n  ".join(check.hints)
                raise ConfigurationError(f"config '{name}' is not valid:\n  {hints}")

        result = project.adapter_for(config).configure(project, config)
        if isinstance(result, AdapterConfigureResult):
            compiler = result.compiler
        else:
            compiler = Compiler(result) if result is not None else Compiler.UNKNOWN
        project._install_active(name, compiler)
        project._advance(ProjectPhase.BUILD)
        logger.info("active config: %s (compiler: %s)", name, compiler)
        return config

    # -- build phase -------------------------------------------------------

    def build(self) -> ProjectState:
        """Run every module's ``build(b)`` and resolve targets and flags.

        Raises:
            DuplicateNameError: If two modules declare the same target.
            ConfigurationError: If a build function raises.
        """
        project = self.project
        project.assert_phase_at_least(ProjectPhase.BUILD, "build")
        config = project.active_config()
        injectors = project.target_attributes()

        builders: List[Builder] = []
        project_name: Optional[str] = None
        for node in self._contributing():
            if node.module.build is None:
                continue
            builder = Builder(project, node.import_dir, node.module.identity, injectors)
            try:
                node.module.build(builder)
            except FibsError:
                raise
            except Exception as exc:
                raise ConfigurationError(f"build() in '{node.module.identity}' failed: {exc}") from exc
            if node is self.root:
                project_name = builder.project_name
            builders.append(builder)

        owners: Dict[str, str] = {}
        targets = []
        cmake_variables = []
        cmake_includes = []
        include_directories = []
        link_directories = []
        compile_definitions = []
        compile_options = []
        link_options = []
        for builder in builders:
            owner_dir = builder.self_dir()
            owner = (owner_dir, builder.module_identity)
            aliases = build_alias_map(self.layout, AliasScope.CONFIG, owner_dir, config_name=config.name)
            for desc in builder.targets:
                if desc.name in owners:
                    raise DuplicateNameError(
                        "target", desc.name, f"declared in '{owners[desc.name]}' and '{builder.module_identity}'"
                    )
                owners[desc.name] = builder.module_identity
                targets.append(resolve_target(self.layout, config, desc, *owner))
            cmake_variables.extend(owned(CmakeVariable, var, *owner) for var in builder.cmake_variables)
            cmake_includes.extend(
                CmakeInclude(resolve_path(aliases, owner_dir, path), *owner) for path in builder.cmake_includes
            )
            include_directories.extend(
                expand_include_directories(builder.include_directories, aliases, owner_dir, Scope.PRIVATE, *owner)
            )
            link_directories.extend(
                expand_link_directories(builder.link_directories, aliases, owner_dir, Scope.PRIVATE, *owner)
            )
            compile_definitions.extend(
                expand_compile_definitions(builder.compile_definitions, aliases, Scope.PRIVATE, *owner)
            )
            compile_options.extend(expand_compile_options(builder.compile_options, aliases, Scope.PRIVATE, *owner))
            link_options.extend(expand_link_options(builder.link_options, aliases, Scope.PRIVATE, *owner))

        project._install_build(
            project_name,
            targets,
            cmake_variables,
            cmake_includes,
            include_directories,
            link_directories,
            compile_definitions,
            compile_options,
            link_options,
        )
        project._advance(ProjectPhase.GENERATE)
        logger.info("resolved %d target(s)", len(targets))
        return project

    def resolve(self, config_name: Optional[str] = None) -> ProjectState:
        """Run configure, config activation and build in one go."""
        self.configure()
        self.activate_config(config_name)
        return self.build()

    # -- generate phase ----------------------------------------------------

    def generate(self) -> None:
        """Let the active config's adapter (and opener) write their files."""
        project = self.project
        project.assert_phase_at_least(ProjectPhase.GENERATE, "generate")
        config = project.active_config()
        check_targets(project)
        project.adapter_for(config).generate(project, config)
        opener = project.opener_for(config)
        if opener is not None:
            opener.generate(project, config)

    def build_targets(self, target: Optional[str] = None, force_rebuild: bool = False) -> None:
        """Run target jobs, then build through the adapter.

        Raises:
            ConfigurationError: If a target is invalid.
            JobError: If a target job fails.
        """
        project = self.project
        project.assert_phase_at_least(ProjectPhase.GENERATE, "build_targets")
        config = project.active_config()
        check_targets(project, abort_on_error=True)
        selected = [project.target(target)] if target else project.targets()
        for item in selected:
            run_jobs(project, item, config, force=force_rebuild)
        project.adapter_for(config).build(
            project, config, AdapterBuildOptions(target=target, force_rebuild=force_rebuild)
        )
