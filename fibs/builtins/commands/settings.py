"""Commands reading and changing persisted settings: config, set, get and unset."""

from __future__ import annotations

import logging

from fibs.cli.context import CommandContext, command_parser
from fibs.errors import ConfigurationError, SettingsError
from fibs.runtime import settings

logger = logging.getLogger("fibs.builtins.commands.settings")


def config_cmd(ctx: CommandContext) -> int:
    """Select a config and generate the build files for it."""
    parser = command_parser("config", "(re-)configure the project, or print the current config")
    parser.add_argument("config", nargs="?", help="config to select, the current one when omitted")
    parser.add_argument("--get", action="store_true", help="print the current config and exit")
    args = parser.parse_args(ctx.args)

    project = ctx.project
    if args.get:
        ctx.console.print(settings.get(project, "config"))
        return 0
    if project.has_import_errors():
        raise ConfigurationError("import errors detected (run 'fibs diag imports')")
    name = args.config or settings.get(project, "config")
    if project.find_config(name) is None:
        raise ConfigurationError(f"config '{name}' not found (run 'fibs list configs')")
    settings.set_value(project, "config", name)
    ctx.ensure_generate(name)
    ctx.engine.generate()
    return 0


def set_cmd(ctx: CommandContext) -> int:
    parser = command_parser("set", "set a settings item (run 'fibs list settings' for valid keys)")
    parser.add_argument("key")
    parser.add_argument("value")
    args = parser.parse_args(ctx.args)
    settings.set_value(ctx.project, args.key, args.value)
    return 0


def get_cmd(ctx: CommandContext) -> int:
    parser = command_parser("get", "print a settings item (run 'fibs list settings' for valid keys)")
    parser.add_argument("key")
    args = parser.parse_args(ctx.args)
    if ctx.project.find("setting", args.key) is None:
        raise SettingsError(f"unknown settings item '{args.key}' (run 'fibs list settings')")
    ctx.console.print(settings.get(ctx.project, args.key))
    return 0


def unset_cmd(ctx: CommandContext) -> int:
    parser = command_parser("unset", "reset a settings item to its default value")
    parser.add_argument("key")
    args = parser.parse_args(ctx.args)
    settings.unset(ctx.project, args.key)
    return 0


COMMANDS = [
    {"name": "config", "help": "(re-)configure the project, or print the current config", "run": config_cmd},
    {"name": "set", "help": "set a settings item to a new value", "run": set_cmd},
    {"name": "get", "help": "print a settings item", "run": get_cmd},
    {"name": "unset", "help": "reset a settings item to its default value", "run": unset_cmd},
]
