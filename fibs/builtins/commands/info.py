"""Informational commands: help, list and diag."""

from __future__ import annotations

import logging
import platform as _platform
from typing import Any, List

from rich.text import Text

from fibs.cli import display
from fibs.cli.context import CommandContext, command_parser
from fibs.errors import ConfigurationError
from fibs.model.enums import TargetType
from fibs.model.results import ValidationResult
from fibs.runtime import host

logger = logging.getLogger("fibs.builtins.commands.info")

LIST_FILTERS = ("settings", "configs", "imports", "runners", "openers", "jobs", "commands", "targets")
DIAG_CHECKS = ("fibs", "tools", "configs", "imports", "project")


def help_cmd(ctx: CommandContext) -> int:
    parser = command_parser("help", "print help for all commands or a specific command")
    parser.add_argument("command", nargs="?")
    args = parser.parse_args(ctx.args)

    project = ctx.project
    if args.command is None:
        ctx.console.print(Text("fibs: project-model build configuration for CMake", style="blue"))
        ctx.console.print()
        rows = [(cmd.name, cmd.help) for cmd in project.commands()]
        ctx.console.print(display.table(None, ["command", "description"], rows))
        return 0
    cmd = project.find_command(args.command)
    if cmd is None:
        raise ConfigurationError(f"unknown command '{args.command}' (run 'fibs help')")
    ctx.console.print(f"fibs {cmd.name}: {cmd.help}")
    return 0


def _target_types(args: Any) -> List[TargetType]:
    types: List[TargetType] = []
    if args.exe:
        types.extend([TargetType.PLAIN_EXE, TargetType.WINDOWED_EXE])
    if args.lib:
        types.append(TargetType.LIB)
    if args.dll:
        types.append(TargetType.DLL)
    if args.interface:
        types.append(TargetType.INTERFACE)
    return types or list(TargetType)


def list_cmd(ctx: CommandContext) -> int:
    parser = command_parser("list", "list settings, configs, imports, targets, ...")
    parser.add_argument("filter", nargs="?", choices=LIST_FILTERS)
    parser.add_argument("--exe", action="store_true", help="only executable targets")
    parser.add_argument("--lib", action="store_true", help="only static library targets")
    parser.add_argument("--dll", action="store_true", help="only shared library targets")
    parser.add_argument("--interface", action="store_true", help="only interface targets")
    args = parser.parse_args(ctx.args)

    project = ctx.project
    console = ctx.console
    which = [args.filter] if args.filter else list(LIST_FILTERS)

    def show(kind: str) -> bool:
        if kind not in which:
            return False
        if len(which) > 1:
            display.section(console, kind)
        return True

    if show("settings"):
        rows = [(s.name, s.value, s.default) for s in project.settings()]
        console.print(display.table(None, ["name", "value", "default"], rows))
    if show("configs"):
        rows = [(c.name, c.platform, c.build_mode, c.generator or "") for c in project.configs()]
        console.print(display.table(None, ["name", "platform", "mode", "generator"], rows))
    if show("imports"):
        rows = []
        for imp in reversed(project.imports()):
            linked = ctx.engine.fetcher.is_linked(imp.name)
            where = Text(f"link => {imp.import_dir}", style="blue") if linked else imp.import_dir
            rows.append((imp.name, where))
        console.print(display.table(None, ["name", "dir"], rows))
    if show("runners"):
        for runner in project.runners():
            console.print(runner.name)
    if show("openers"):
        for opener in project.openers():
            console.print(opener.name)
    if show("jobs"):
        rows = [(job.name, job.help) for job in project.jobs()]
        console.print(display.table(None, ["name", "description"], rows))
    if show("commands"):
        for cmd in project.commands():
            console.print(cmd.name)
    if show("targets"):
        ctx.ensure_generate()
        types = _target_types(args)
        rows = [(t.name, t.type) for t in project.targets() if t.type in types]
        console.print(display.table(None, ["name", "type"], rows))
    return 0


def _diag_fibs(ctx: CommandContext) -> int:
    from fibs import __version__

    rows = [
        ("fibs", __version__),
        ("python", _platform.python_version()),
        ("host platform", host.host_platform()),
        ("host arch", host.host_arch()),
    ]
    ctx.console.print(display.table(None, ["item", "value"], rows))
    return 0


def _diag_tools(ctx: CommandContext) -> int:
    failed = 0
    rows = []
    host_platform = host.host_platform()
    for tool in ctx.project.tools():
        if host_platform not in tool.platforms:
            continue
        found = tool.exists()
        if not found and not tool.optional:
            failed += 1
        hint = "" if found else tool.not_found_msg
        rows.append((tool.name, display.status(found, tool.optional), hint))
    ctx.console.print(display.table(None, ["tool", "status", "note"], rows))
    return 1 if failed else 0


def _diag_configs(ctx: CommandContext) -> int:
    project = ctx.project
    failed = 0
    rows = []
    for config in project.configs():
        res = ValidationResult.ok()
        if config.validator is not None:
            res = ValidationResult.coerce(config.validator(project))
        if not res.valid:
            failed += 1
        label = Text("ok", style="green") if res.valid else Text("; ".join(res.hints), style="red")
        rows.append((config.name, label))
    ctx.console.print(display.table(None, ["config", "status"], rows))
    return 1 if failed else 0


def _diag_imports(ctx: CommandContext) -> int:
    project = ctx.project
    console = ctx.console
    console.print(display.import_tree(project.import_graph(), project.dir()))
    failed = 0
    for imp in project.imports():
        if imp.errors:
            failed += 1
            console.print(Text(f"{imp.name}:", style="red"))
            for line in display.error_lines(imp.errors):
                console.print(line)
    if not failed:
        console.print(Text("no import errors", style="green"))
    return 1 if failed else 0


def _diag_project(ctx: CommandContext) -> int:
    project = ctx.project
    rows = [
        ("dir", project.dir()),
        ("fibs dir", project.fibs_dir()),
        ("imports", len(project.imports())),
        ("configs", len(project.configs())),
        ("phase", project.phase),
    ]
    ctx.console.print(display.table(None, ["item", "value"], rows))
    return 0


_DIAG = {
    "fibs": _diag_fibs,
    "tools": _diag_tools,
    "configs": _diag_configs,
    "imports": _diag_imports,
    "project": _diag_project,
}


def diag_cmd(ctx: CommandContext) -> int:
    parser = command_parser("diag", "run diagnostics and check for errors")
    parser.add_argument("check", nargs="?", choices=DIAG_CHECKS)
    args = parser.parse_args(ctx.args)

    which: List[str] = [args.check] if args.check else list(DIAG_CHECKS)
    exit_code = 0
    for check in which:
        display.section(ctx.console, check)
        exit_code = max(exit_code, _DIAG[check](ctx))
        ctx.console.print()
    return exit_code


COMMANDS = [
    {"name": "help", "help": "print help for all commands or a specific command", "run": help_cmd},
    {"name": "list", "help": "list settings, configs, imports, targets, ...", "run": list_cmd},
    {"name": "diag", "help": "run diagnostics and check for errors", "run": diag_cmd},
]
