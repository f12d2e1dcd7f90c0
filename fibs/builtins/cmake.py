"""The cmake adapter.

``generate`` writes ``CMakeLists.txt`` and ``CMakePresets.json`` into the
project directory and runs the cmake configure step, ``build`` runs
``cmake --build`` against the generated presets.

Build-mode and language tags on flag items become generator expressions,
visibility buckets map to the ``INTERFACE``/``PRIVATE``/``PUBLIC``
keywords of the ``target_*`` commands.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Union

from fibs.model.enums import BuildMode, Generator, Language, Platform, TargetType
from fibs.model.resolved import (
    CompileDefinition,
    CompileOption,
    Config,
    IncludeDirectory,
    LinkOption,
    Target,
    TargetBuckets,
)
from fibs.model.results import AdapterBuildOptions, AdapterConfigureResult, RunOptions
from fibs.runtime.host import default_compiler
from fibs.runtime.paths import AliasScope, build_alias_map, resolve_alias
from fibs.utils.process import run_cmd

logger = logging.getLogger("fibs.builtins.cmake")

CMAKE_MINIMUM_VERSION = "3.20"

CMAKE_GENERATORS = {
    Generator.VSTUDIO: "Visual Studio 17 2022",
    Generator.XCODE: "Xcode",
    Generator.NINJA: "Ninja",
    Generator.NINJA_MULTI_CONFIG: "Ninja Multi-Config",
    Generator.MAKE: "Unix Makefiles",
}

_BUILD_TYPES = {BuildMode.DEBUG: "Debug", BuildMode.RELEASE: "Release"}
_LANGUAGES = {Language.C: "C", Language.CXX: "CXX"}


def cmake_build_type(build_mode: BuildMode) -> str:
    return _BUILD_TYPES[build_mode]


def is_multi_config(config: Config) -> bool:
    """Whether the config's generator handles all build types in one tree.

    Without an explicit generator cmake picks Visual Studio on Windows.
    """
    if config.generator is None:
        return config.platform == Platform.WINDOWS
    return config.generator.is_multi_config


def quote(value: str) -> str:
    return '"' + value.replace("\\", "/").replace('"', '\\"') + '"'


def filtered(
    value: str, language: Optional[Language] = None, build_mode: Optional[BuildMode] = None
) -> str:
    """Wrap ``value`` in generator expressions for its language and build mode tags."""
    if language is not None:
        value = f"$<$<COMPILE_LANGUAGE:{_LANGUAGES[language]}>:{value}>"
    if build_mode is not None:
        value = f"$<$<CONFIG:{cmake_build_type(build_mode)}>:{value}>"
    return value


def _definition(item: CompileDefinition) -> str:
    value = f"{item.name}={item.value}" if item.value != "" else item.name
    return quote(filtered(value, item.language, item.build_mode))


def _option(item: Union[CompileOption, LinkOption]) -> str:
    return quote(filtered(item.opt, getattr(item, "language", None), item.build_mode))


def _directory(item: Any) -> str:
    return quote(filtered(item.dir, getattr(item, "language", None), item.build_mode))


def _statement(command: str, items: List[str], prefix: str = "") -> str:
    if not items:
        return ""
    head = f"{command}({prefix} " if prefix else f"{command}("
    return head + " ".join(items) + ")\n"


# -- adapter callbacks -------------------------------------------------------


def configure(project: Any, config: Config) -> AdapterConfigureResult:
    """Pick the compiler for the config, the first declared one or the platform default."""
    compiler = config.compilers[0] if config.compilers else default_compiler(config.platform)
    return AdapterConfigureResult(compiler=compiler)


def generate(project: Any, config: Config) -> None:
    write_files(project, config)
    run_cmd(
        "cmake",
        RunOptions(
            args=["--preset", config.name],
            cwd=project.dir(),
            check=True,
        ),
    )


def build(project: Any, config: Config, options: Optional[AdapterBuildOptions] = None) -> None:
    options = options or AdapterBuildOptions()
    if not os.path.isfile(f"{project.build_dir(config.name)}/CMakeCache.txt"):
        generate(project, config)
    args = ["--build", "--preset", "default", "--parallel"]
    if options.target:
        args.extend(["--target", options.target])
    if options.force_rebuild:
        args.append("--clean-first")
    run_cmd("cmake", RunOptions(args=args, cwd=project.dir(), check=True))


def write_files(project: Any, config: Config) -> None:
    lists_path = f"{project.dir()}/CMakeLists.txt"
    logger.info("writing %s", lists_path)
    with open(lists_path, "w", encoding="utf-8") as fh:
        fh.write(cmake_lists(project, config))
    presets_path = f"{project.dir()}/CMakePresets.json"
    logger.info("writing %s", presets_path)
    with open(presets_path, "w", encoding="utf-8") as fh:
        json.dump(cmake_presets(project, config), fh, indent=2)
        fh.write("\n")


# -- CMakeLists.txt ------------------------------------------------------------


def cmake_lists(project: Any, config: Config) -> str:
    """Render the complete CMakeLists.txt of the project."""
    out = _prolog(project, config)
    out += _globals(project, config)
    targets = project.targets()
    for target in targets:
        out += _target(config, target)
    for target in targets:
        out += _target_links(config, target)
        out += _target_include_directories(target)
        out += _target_items("target_compile_definitions", target.compile_definitions, _definition, target)
        out += _target_items("target_compile_options", target.compile_options, _option, target)
        out += _target_items("target_link_options", target.link_options, _option, target)
        out += _target_properties(target)
    for code in project.cmake_code():
        text = code.func(project, config)
        if text:
            out += f"# {code.name}\n{text.rstrip()}\n"
    return out


def _prolog(project: Any, config: Config) -> str:
    out = f"cmake_minimum_required(VERSION {CMAKE_MINIMUM_VERSION})\n"
    out += f"project({project.name()} C CXX)\n"
    out += "set(CMAKE_RUNTIME_OUTPUT_DIRECTORY_DEBUG ${CMAKE_RUNTIME_OUTPUT_DIRECTORY})\n"
    out += "set(CMAKE_RUNTIME_OUTPUT_DIRECTORY_RELEASE ${CMAKE_RUNTIME_OUTPUT_DIRECTORY})\n"
    if config.platform == Platform.EMSCRIPTEN:
        out += 'set(CMAKE_EXECUTABLE_SUFFIX ".html")\n'
    elif config.platform == Platform.WASI:
        out += 'set(CMAKE_EXECUTABLE_SUFFIX ".wasm")\n'
    return out


def _globals(project: Any, config: Config) -> str:
    out = ""
    for include in [*config.cmake_includes, *project.cmake_includes()]:
        out += f"include({quote(include.path)})\n"
    includes: List[IncludeDirectory] = [*config.include_directories, *project.include_directories()]
    out += _statement("include_directories", [_directory(i) for i in includes if not i.system])
    out += _statement("include_directories", [_directory(i) for i in includes if i.system], "SYSTEM")
    out += _statement("link_directories", [_directory(i) for i in project.link_directories()])
    out += _statement(
        "add_compile_definitions",
        [_definition(d) for d in [*config.compile_definitions, *project.compile_definitions()]],
    )
    out += _statement(
        "add_compile_options", [_option(o) for o in [*config.compile_options, *project.compile_options()]]
    )
    out += _statement(
        "add_link_options", [_option(o) for o in [*config.link_options, *project.link_options()]]
    )
    return out


def _target(config: Config, target: Target) -> str:
    if target.type == TargetType.INTERFACE:
        return f"add_library({target.name} INTERFACE)\n"
    if target.type.is_executable:
        subtype = ""
        if target.type == TargetType.WINDOWED_EXE:
            if config.platform == Platform.WINDOWS:
                subtype = " WIN32"
            elif config.platform in (Platform.MACOS, Platform.IOS):
                subtype = " MACOSX_BUNDLE"
        head = f"add_executable({target.name}{subtype}\n"
    elif target.type == TargetType.DLL:
        head = f"add_library({target.name} SHARED\n"
    else:
        head = f"add_library({target.name} STATIC\n"
    return head + "".join(f"    {quote(src)}\n" for src in target.sources) + ")\n"


def _target_links(config: Config, target: Target) -> str:
    items = [*target.deps, *(quote(lib) for lib in target.libs)]
    if config.platform in (Platform.MACOS, Platform.IOS):
        items.extend(quote(f"-framework {fw}") for fw in target.frameworks)
    if not items:
        return ""
    if target.type in (TargetType.LIB, TargetType.INTERFACE):
        return f"target_link_libraries({target.name} INTERFACE {' '.join(items)})\n"
    return f"target_link_libraries({target.name} {' '.join(items)})\n"


def _target_include_directories(target: Target) -> str:
    out = ""
    for system in (False, True):
        keyword = " SYSTEM" if system else ""
        for scope, items in target.include_directories.items():
            dirs = [_directory(item) for item in items if item.system == system]
            if dirs:
                out += (
                    f"target_include_directories({target.name}{keyword} "
                    f"{scope.value.upper()} {' '.join(dirs)})\n"
                )
    return out


def _target_items(command: str, buckets: TargetBuckets, render: Any, target: Target) -> str:
    out = ""
    for scope, items in buckets.items():
        if items:
            out += f"{command}({target.name} {scope.value.upper()} {' '.join(render(i) for i in items)})\n"
    return out


def _target_properties(target: Target) -> str:
    if not target.props:
        return ""
    pairs = " ".join(f"{key} {quote(value)}" for key, value in target.props.items())
    return f"set_target_properties({target.name} PROPERTIES {pairs})\n"


# -- CMakePresets.json ---------------------------------------------------------


def cache_value(value: Union[bool, str], aliases: Dict[str, str]) -> Any:
    if isinstance(value, bool):
        return {"type": "BOOL", "value": "ON" if value else "OFF"}
    return resolve_alias(aliases, value)


def cache_variables(project: Any, config: Config) -> Dict[str, Any]:
    """Cache variables of the configure preset, config variables win over project ones."""
    res: Dict[str, Any] = {}
    if not is_multi_config(config):
        res["CMAKE_BUILD_TYPE"] = cmake_build_type(config.build_mode)
    if config.platform != Platform.ANDROID:
        res["CMAKE_RUNTIME_OUTPUT_DIRECTORY"] = project.dist_dir(config.name)
    for var in project.cmake_variables():
        aliases = build_alias_map(
            project.layout, AliasScope.CONFIG, var.owner_dir or project.dir(), config_name=config.name
        )
        res[var.name] = cache_value(var.value, aliases)
    aliases = build_alias_map(
        project.layout, AliasScope.CONFIG, config.owner_dir or project.dir(), config_name=config.name
    )
    for key, value in config.cmake_variables.items():
        res[key] = cache_value(value, aliases)
    return res


def configure_preset(project: Any, config: Config) -> Dict[str, Any]:
    preset: Dict[str, Any] = {
        "name": config.name,
        "displayName": config.name,
        "binaryDir": project.build_dir(config.name),
    }
    if config.generator is not None:
        preset["generator"] = CMAKE_GENERATORS[config.generator]
    if config.toolchain_file:
        preset["toolchainFile"] = config.toolchain_file
    preset["cacheVariables"] = cache_variables(project, config)
    if config.environment:
        preset["environment"] = dict(config.environment)
    return preset


def build_presets(config: Config) -> List[Dict[str, Any]]:
    if is_multi_config(config):
        return [
            {"name": "default", "configurePreset": config.name,
             "configuration": cmake_build_type(config.build_mode)},
            {"name": "debug", "configurePreset": config.name, "configuration": "Debug"},
            {"name": "release", "configurePreset": config.name, "configuration": "Release"},
        ]
    return [{"name": "default", "configurePreset": config.name}]


def cmake_presets(project: Any, config: Config) -> Dict[str, Any]:
    return {
        "version": 6,
        "cmakeMinimumRequired": {"major": 3, "minor": 21, "patch": 0},
        "configurePresets": [configure_preset(project, config)],
        "buildPresets": build_presets(config),
    }


ADAPTER = {"name": "cmake", "configure": configure, "generate": generate, "build": build}
