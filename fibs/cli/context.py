"""Execution context handed to command ``run(ctx)`` callbacks."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from rich.console import Console

from fibs.runtime.lifecycle import ProjectPhase

if TYPE_CHECKING:
    from fibs.runtime.engine import ResolutionEngine
    from fibs.runtime.project import ProjectState


@dataclass
class CommandContext:
    """What a command needs to do its work.

    Attributes:
        engine: Engine that configured the project.
        args: Command line arguments following the command name.
        console: Console for user facing output.
    """

    engine: "ResolutionEngine"
    args: List[str] = field(default_factory=list)
    console: Console = field(default_factory=Console)

    @property
    def project(self) -> "ProjectState":
        return self.engine.project

    def ensure_active(self, config_name: Optional[str] = None) -> "ProjectState":
        """Activate the selected config unless one is active already."""
        if self.project.phase < ProjectPhase.BUILD:
            self.engine.activate_config(config_name)
        return self.project

    def ensure_generate(self, config_name: Optional[str] = None) -> "ProjectState":
        """Advance the project to the generate phase, running the build step if needed."""
        self.ensure_active(config_name)
        if self.project.phase < ProjectPhase.GENERATE:
            self.engine.build()
        return self.project


def command_parser(name: str, description: str = "") -> argparse.ArgumentParser:
    """Argument parser for the arguments of one command."""
    return argparse.ArgumentParser(prog=f"fibs {name}", description=description or None)
