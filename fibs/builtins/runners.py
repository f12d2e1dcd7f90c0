"""The native runner, starts an executable target from the dist directory."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from fibs.model.enums import Platform, TargetType
from fibs.model.resolved import Config, Target
from fibs.model.results import RunOptions, RunResult
from fibs.utils.process import run_cmd

logger = logging.getLogger("fibs.builtins.runners")


def executable_path(project: Any, config: Config, target: Target) -> str:
    """Location of the target's executable below the config's dist directory."""
    dist_dir = project.dist_dir(config.name)
    if config.platform == Platform.MACOS and target.type == TargetType.WINDOWED_EXE:
        return f"{dist_dir}/{target.name}.app/Contents/MacOS/{target.name}"
    return f"{dist_dir}/{target.name}"


def run_native(project: Any, config: Config, target: Target, args: Optional[List[str]] = None) -> RunResult:
    path = executable_path(project, config, target)
    return run_cmd(
        path,
        RunOptions(args=list(args or []), cwd=project.dist_dir(config.name), show_cmd=False),
    )


NATIVE_RUNNER = {"name": "native", "run": run_native}
