"""Subprocess helpers for running external tools."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from typing import List, Optional

from fibs.errors import FibsError
from fibs.model.results import RunOptions, RunResult

logger = logging.getLogger("fibs.utils.process")


class ToolRunError(FibsError):
    """An external tool could not be started or failed with ``check=True``."""

    pass


def run_cmd(cmd: str, options: Optional[RunOptions] = None) -> RunResult:
    """Run ``cmd`` with ``options.args``.

    Args:
        cmd: Program to run.
        options: Run options, defaults to inheriting stdout/stderr.

    Returns:
        RunResult with the exit code and captured output (if requested).

    Raises:
        ToolRunError: If the program cannot be started, or exits non-zero
            while ``options.check`` is set.
    """
    options = options or RunOptions()
    argv: List[str] = [cmd, *options.args]
    if options.show_cmd:
        where = f" (in {options.cwd})" if options.cwd else ""
        logger.info("run: %s%s", " ".join(argv), where)
    env = None
    if options.env:
        env = dict(os.environ)
        env.update(options.env)
    try:
        proc = subprocess.run(
            argv,
            cwd=options.cwd,
            env=env,
            capture_output=options.capture,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise ToolRunError(f"failed to run '{cmd}': {exc}") from exc
    result = RunResult(
        exit_code=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
    if options.check and result.exit_code != 0:
        raise ToolRunError(f"'{cmd}' exited with code {result.exit_code}")
    return result


def is_windows() -> bool:
    return sys.platform.startswith("win")
