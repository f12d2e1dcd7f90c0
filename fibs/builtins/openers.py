"""IDE openers: VSCode, Visual Studio and Xcode.

An opener's ``generate(project, config)`` runs after the adapter has
written the build files, ``open(project, config)`` starts the IDE.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fibs.model.enums import Platform
from fibs.model.resolved import Config
from fibs.model.results import RunOptions
from fibs.runtime import host
from fibs.utils.fsutil import write_json_atomic
from fibs.utils.process import run_cmd

logger = logging.getLogger("fibs.builtins.openers")

_DEBUGGER_TYPES = {
    Platform.WINDOWS: "cppvsdbg",
    Platform.LINUX: "cppdbg",
    # the MS C/C++ debugger integration is unreliable on macOS
    Platform.MACOS: "lldb",
}


def vscode_dir(project: Any) -> str:
    return f"{project.dir()}/.vscode"


def workspace_path(project: Any) -> str:
    return f"{vscode_dir(project)}/{project.name()}.code-workspace"


def workspace_desc(project: Any, config: Config) -> Dict[str, Any]:
    folders: List[Dict[str, str]] = [{"path": project.dir()}]
    folders.extend({"path": imp.import_dir} for imp in project.imports() if imp.import_dir)
    return {
        "folders": folders,
        "settings": {
            "cmake.statusbar.advanced": {
                "ctest": {"visibility": "hidden"},
                "testPreset": {"visibility": "hidden"},
                "debug": {"visibility": "hidden"},
            },
            "cmake.debugConfig": {"cwd": project.dist_dir(config.name)},
            "cmake.autoSelectActiveFolder": False,
            "cmake.ignoreCMakeListsMissing": True,
            "cmake.configureOnOpen": False,
        },
    }


def launch_desc(project: Any, config: Config) -> Dict[str, Any]:
    host_platform = host.host_platform()
    debugger = _DEBUGGER_TYPES.get(host_platform, "cppdbg")
    launch: Dict[str, Any] = {
        "name": "Debug Current Target",
        "request": "launch",
        "program": "${command:cmake.launchTargetPath}",
        "cwd": project.dist_dir(config.name),
        "args": [],
        "type": debugger,
    }
    if host_platform == Platform.LINUX:
        launch["MIMode"] = "gdb"
    stop_at_entry = dict(launch, name="Debug Current Target (Stop at Entry)")
    if debugger == "lldb":
        stop_at_entry["stopOnEntry"] = True
    else:
        stop_at_entry["stopAtEntry"] = True
    return {"version": "0.2.0", "configurations": [launch, stop_at_entry]}


def vscode_generate(project: Any, config: Config) -> None:
    path = workspace_path(project)
    logger.info("writing %s", path)
    write_json_atomic(path, workspace_desc(project, config))
    path = f"{vscode_dir(project)}/launch.json"
    logger.info("writing %s", path)
    write_json_atomic(path, launch_desc(project, config))


def vscode_open(project: Any, config: Config) -> None:
    run_cmd("code", RunOptions(args=[workspace_path(project)], check=True))


def _no_generate(project: Any, config: Config) -> None:
    pass


def vstudio_open(project: Any, config: Config) -> None:
    path = f"{project.build_dir(config.name)}/{project.name()}.sln"
    run_cmd("cmd", RunOptions(args=["/c", "start", path], cwd=project.dir(), check=True))


def xcode_open(project: Any, config: Config) -> None:
    path = f"{project.build_dir(config.name)}/{project.name()}.xcodeproj"
    run_cmd("xed", RunOptions(args=[path], check=True))


OPENERS = [
    {"name": "vscode", "generate": vscode_generate, "open": vscode_open},
    {"name": "vstudio", "generate": _no_generate, "open": vstudio_open},
    {"name": "xcode", "generate": _no_generate, "open": xcode_open},
]
