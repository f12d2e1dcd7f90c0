"""Commands driving builds and build state: gen, build, run, open, clean, runjobs, reset."""

from __future__ import annotations

import logging
from typing import List

from rich.prompt import Confirm

from fibs.cli.context import CommandContext, command_parser
from fibs.errors import ConfigurationError
from fibs.model.resolved import Config
from fibs.model.results import RunResult
from fibs.runtime.jobs import run_jobs
from fibs.utils.fsutil import dir_exists, remove_tree

logger = logging.getLogger("fibs.builtins.commands.build")


def gen_cmd(ctx: CommandContext) -> int:
    parser = command_parser("gen", "generate build files for the current or a specific config")
    parser.add_argument("config", nargs="?")
    args = parser.parse_args(ctx.args)
    ctx.ensure_generate(args.config)
    ctx.engine.generate()
    return 0


def build_cmd(ctx: CommandContext) -> int:
    parser = command_parser("build", "build all targets or a specific target")
    parser.add_argument("target", nargs="?")
    parser.add_argument("--rebuild", action="store_true", help="clean before building")
    args = parser.parse_args(ctx.args)

    project = ctx.ensure_generate()
    if args.target is not None and project.find_target(args.target) is None:
        raise ConfigurationError(f"unknown build target '{args.target}' (run 'fibs list targets')")
    ctx.engine.build_targets(args.target, force_rebuild=args.rebuild)
    return 0


def run_cmd(ctx: CommandContext) -> int:
    parser = command_parser("run", "run an executable build target")
    parser.add_argument("target")
    parser.add_argument("target_args", nargs="*", help="arguments passed to the target")
    args = parser.parse_args(ctx.args)

    project = ctx.ensure_generate()
    target = project.find_target(args.target)
    if target is None:
        raise ConfigurationError(f"unknown target '{args.target}' (run 'fibs list targets')")
    if not target.type.is_executable:
        raise ConfigurationError(f"target '{args.target}' is not an executable (run 'fibs list targets')")
    config = project.active_config()
    result = project.runner_for(config).run(project, config, target, args.target_args)
    if isinstance(result, RunResult):
        return result.exit_code
    return 0


def open_cmd(ctx: CommandContext) -> int:
    parser = command_parser("open", "open the IDE for the current or a specific config")
    parser.add_argument("config", nargs="?")
    args = parser.parse_args(ctx.args)

    project = ctx.ensure_generate(args.config)
    config = project.active_config()
    opener = project.opener_for(config)
    if opener is None:
        raise ConfigurationError(f"don't know how to open config '{config.name}' (config has no opener)")
    if not dir_exists(project.build_dir(config.name)):
        ctx.engine.generate()
    opener.open(project, config)
    return 0


def clean_cmd(ctx: CommandContext) -> int:
    parser = command_parser("clean", "delete build output of the current, all or specific configs")
    parser.add_argument("configs", nargs="*")
    parser.add_argument("--all", action="store_true", help="clean every config")
    args = parser.parse_args(ctx.args)

    project = ctx.project
    configs: List[Config] = []
    if args.all:
        configs = project.configs()
    elif args.configs:
        for name in args.configs:
            config = project.find_config(name)
            if config is None:
                raise ConfigurationError(f"unknown config '{name}' (run 'fibs list configs')")
            configs.append(config)
    else:
        configs = [ctx.ensure_active().active_config()]

    deleted = 0
    for config in configs:
        for path in (project.build_dir(config.name), project.dist_dir(config.name)):
            if remove_tree(path):
                logger.info("deleted %s", path)
                deleted += 1
    if deleted:
        ctx.console.print(f"{deleted} directories deleted")
    else:
        ctx.console.print("nothing to do")
    return 0


def runjobs_cmd(ctx: CommandContext) -> int:
    """Run the dirty jobs of every target, usually invoked by the build itself."""
    parser = command_parser("runjobs", "run custom build jobs for all targets")
    parser.add_argument("--force", action="store_true", help="run jobs even when up to date")
    args = parser.parse_args(ctx.args)

    project = ctx.ensure_generate()
    config = project.active_config()
    ran = sum(run_jobs(project, target, config, force=args.force) for target in project.targets())
    ctx.console.print(f"{ran} job(s) run")
    return 0


def reset_cmd(ctx: CommandContext) -> int:
    parser = command_parser("reset", "wipe the .fibs subdirectory and start from scratch")
    parser.add_argument("-y", "--yes", action="store_true", help="do not ask for confirmation")
    args = parser.parse_args(ctx.args)

    fibs_dir = ctx.project.layout.fibs_dir()
    if not dir_exists(fibs_dir):
        logger.warning("no %s directory to delete", fibs_dir)
        ctx.console.print("nothing to do")
        return 0
    if not args.yes and not Confirm.ask(f"ok to delete directory {fibs_dir}?", console=ctx.console, default=False):
        ctx.console.print("not deleted")
        return 0
    remove_tree(fibs_dir)
    ctx.console.print(f"deleted {fibs_dir}")
    return 0


COMMANDS = [
    {"name": "gen", "help": "generate build files for the current or a specific config", "run": gen_cmd},
    {"name": "build", "help": "build all targets or a specific target", "run": build_cmd},
    {"name": "run", "help": "run an executable build target", "run": run_cmd},
    {"name": "open", "help": "open the IDE for the current or a specific config", "run": open_cmd},
    {"name": "clean", "help": "delete build output of the current, all or specific configs", "run": clean_cmd},
    {"name": "runjobs", "help": "run custom build jobs for all targets", "run": runjobs_cmd},
    {"name": "reset", "help": "wipe the .fibs subdirectory and start from scratch", "run": reset_cmd},
]
