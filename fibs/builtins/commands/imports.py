"""Commands managing import working copies: link, unlink and update."""

from __future__ import annotations

import logging
import os
from typing import List

from fibs.cli.context import CommandContext, command_parser
from fibs.errors import ConfigurationError, FibsError
from fibs.model.descriptors import Import

logger = logging.getLogger("fibs.builtins.commands.imports")


def link_cmd(ctx: CommandContext) -> int:
    parser = command_parser("link", "link an import to an existing local directory")
    parser.add_argument("name", help="import name")
    parser.add_argument("dir", help="local directory")
    args = parser.parse_args(ctx.args)
    if ctx.project.find_import(args.name) is None:
        logger.warning("'%s' is not a known import (run 'fibs list imports')", args.name)
    ctx.engine.fetcher.link(args.name, os.path.abspath(args.dir))
    return 0


def unlink_cmd(ctx: CommandContext) -> int:
    parser = command_parser("unlink", "unlink an import from a local directory")
    parser.add_argument("name", help="import name")
    args = parser.parse_args(ctx.args)
    ctx.engine.fetcher.unlink(args.name)
    return 0


def _selected(ctx: CommandContext, names: List[str]) -> List[Import]:
    project = ctx.project
    if not names:
        return list(reversed(project.imports()))
    selected = []
    for name in names:
        imp = project.find_import(name)
        if imp is None:
            raise ConfigurationError(f"import '{name}' not found (run 'fibs list imports')")
        selected.append(imp)
    return selected


def update_cmd(ctx: CommandContext) -> int:
    """Update all or the named imports, ``--clean`` deletes and fetches from scratch."""
    parser = command_parser("update", "update all or specific imports")
    parser.add_argument("imports", nargs="*", help="import names, all imports when omitted")
    parser.add_argument("--clean", action="store_true", help="delete and clone from scratch")
    args = parser.parse_args(ctx.args)

    fetcher = ctx.engine.fetcher
    for imp in _selected(ctx, args.imports):
        if fetcher.is_linked(imp.name):
            logger.warning("skipping '%s': import is a linked directory (run 'fibs list imports')", imp.name)
            continue
        logger.info("updating import '%s'", imp.name)
        if not fetcher.update(imp, clean=args.clean):
            raise FibsError(
                f"updating '{fetcher.cache_dir(imp.url, imp.ref)}' failed "
                "(consider running 'fibs update --clean')"
            )
    return 0


COMMANDS = [
    {"name": "link", "help": "link an import to an existing local directory", "run": link_cmd},
    {"name": "unlink", "help": "unlink an import from a local directory", "run": unlink_cmd},
    {"name": "update", "help": "update all or specific imports, --clean fetches from scratch", "run": update_cmd},
]
