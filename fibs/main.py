"""Main CLI entry point for fibs.

Usage:
    fibs [-v] [-C DIR] [--engine-config SOURCE] <command> [args...]

The project in DIR is configured first, then the command is looked up
among the resolved commands (builtins plus whatever the project and its
imports declare) and run.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from fibs.cli.context import CommandContext
from fibs.config.loader import load_engine_config
from fibs.errors import ConfigurationError, FibsError
from fibs.runtime.engine import ResolutionEngine

logger = logging.getLogger("fibs.main")


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )

    logging.basicConfig(
        level=level,
        format="[%(name)s] %(message)s",
        handlers=[handler],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fibs",
        description="fibs - project-model build configuration for CMake",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-C", "--dir", default=".", help="Project directory (default: current directory)")
    parser.add_argument(
        "--engine-config",
        help="Engine options as a TOML/JSON file or an inline TOML/JSON string",
    )
    parser.add_argument("command", nargs="?", default="help", help="Command to run (default: help)")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments of the command")
    return parser


def run(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    """Configure the project and run one command.

    Returns:
        int: Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    console = console or Console()
    setup_logging(args.verbose, console)

    try:
        engine = ResolutionEngine(args.dir, config=load_engine_config(args.engine_config))
        project = engine.configure()
        command = project.find_command(args.command)
        if command is None:
            raise ConfigurationError(f"unknown command '{args.command}' (run 'fibs help')")
        result = command.run(CommandContext(engine, list(args.args), console))
    except FibsError as exc:
        if args.verbose:
            logger.exception("command '%s' failed", args.command)
        console.print(Text("error: ", style="bold red") + Text(str(exc)))
        return 1
    return result if isinstance(result, int) else 0


def main() -> int:
    return run(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
