"""Builtin CLI commands, each a ``run(ctx) -> int`` callback."""

from fibs.builtins.commands import build, imports, info, settings

COMMANDS = [*info.COMMANDS, *settings.COMMANDS, *imports.COMMANDS, *build.COMMANDS]

__all__ = ["COMMANDS"]
