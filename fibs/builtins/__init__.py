"""Builtin declarations registered ahead of the project's root module.

Builtins form their own node in front of the import tree, so any item the
project or one of its imports declares under the same name replaces them.
"""

from __future__ import annotations

from typing import Any

from fibs.builtins import cmake, jobs, openers, runners, tools
from fibs.builtins.commands import COMMANDS
from fibs.builtins.configs import add_default_configs
from fibs.config.schema import EngineConfig
from fibs.model.results import ValidationResult
from fibs.runtime.configurer import Configurer
from fibs.runtime.host import default_config_name, host_platform

CMAKE_VARIABLES = {
    "CMAKE_C_STANDARD": "99",
    "CMAKE_CXX_STANDARD": "14",
}


def _any_config(project: Any, value: str) -> ValidationResult:
    # unknown config names are reported when the config is activated
    return ValidationResult.ok()


def register_builtins(c: Configurer, engine_config: EngineConfig) -> None:
    """Register every builtin item on ``c``."""
    c.add_setting(
        name="config",
        default=engine_config.default_config or default_config_name(host_platform()),
        validator=_any_config,
    )
    for name, value in CMAKE_VARIABLES.items():
        c.add_cmake_variable(name, value)
    for command in COMMANDS:
        c.add_command(command)
    for tool in tools.TOOLS:
        c.add_tool(tool)
    for job in jobs.JOBS:
        c.add_job(job)
    c.add_runner(runners.NATIVE_RUNNER)
    for opener in openers.OPENERS:
        c.add_opener(opener)
    c.add_adapter(cmake.ADAPTER)
    add_default_configs(c)


__all__ = ["register_builtins", "CMAKE_VARIABLES"]
