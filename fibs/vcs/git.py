"""Version control access through the git command line.

Failures are reported as boolean results, never as exceptions, so the
import fetcher can treat them as soft errors.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Protocol


logger = logging.getLogger("fibs.vcs.git")

DEFAULT_REF = "HEAD"


class VersionControl(Protocol):
    """Interface the import fetcher uses to obtain working copies."""

    def clone(self, url: str, dir: str, ref: Optional[str] = None, depth: int = 1) -> bool:
        ...

    def update(self, dir: str, ref: Optional[str] = None, force: bool = False) -> bool:
        ...

    def checkout(self, dir: str, ref: str) -> bool:
        ...

    def update_submodules(self, dir: str) -> bool:
        ...


class GitClient:
    """VersionControl implementation running the ``git`` executable.

    Args:
        timeout: Per-command timeout in seconds.
        executable: Name or path of the git binary.
    """

    def __init__(self, timeout: int = 300, executable: str = "git") -> None:
        self.timeout = timeout
        self.executable = executable

    def _git(self, args: List[str], cwd: Optional[str] = None) -> bool:
        cmd = [self.executable, *args]
        logger.debug("git command: %s (cwd=%s)", " ".join(cmd), cwd)
        try:
            subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
            return True
        except subprocess.TimeoutExpired:
            logger.warning("git %s timed out after %ss", args[0], self.timeout)
        except subprocess.CalledProcessError as exc:
            logger.warning("git %s failed: %s", args[0], (exc.stderr or "").strip())
        except OSError as exc:
            logger.warning("Failed to run git: %s", exc)
        return False

    def clone(self, url: str, dir: str, ref: Optional[str] = None, depth: int = 1) -> bool:
        """Shallow-clone ``url`` at ``ref`` into ``dir``.

        The working copy is set up step by step (init, remote, fetch of the
        single ref, detached checkout) so that arbitrary commits can be
        fetched, and pushing is disabled on the remote.

        Returns:
            bool: True if every step succeeded.
        """
        ref = ref or DEFAULT_REF
        Path(dir).mkdir(parents=True, exist_ok=True)
        logger.info("Cloning %s (%s) into %s", url, ref, dir)
        steps = [
            ["init", "-q"],
            ["remote", "add", "origin", url],
            ["remote", "set-url", "--push", "origin", "nopush"],
            ["fetch", f"--depth={depth}", "origin", ref],
            ["-c", "advice.detachedHead=false", "checkout", "FETCH_HEAD"],
        ]
        for step in steps:
            if not self._git(step, cwd=dir):
                return False
        return self.update_submodules(dir)

    def update(self, dir: str, ref: Optional[str] = None, force: bool = False) -> bool:
        ref = ref or DEFAULT_REF
        args = ["fetch", "--depth=1", "origin", ref]
        if force:
            args.append("-f")
        if not self._git(args, cwd=dir):
            return False
        if not self.checkout(dir, "FETCH_HEAD"):
            return False
        return self.update_submodules(dir)

    def checkout(self, dir: str, ref: str) -> bool:
        return self._git(["-c", "advice.detachedHead=false", "checkout", ref], cwd=dir)

    def update_submodules(self, dir: str) -> bool:
        return (
            self._git(["submodule", "init"], cwd=dir)
            and self._git(["submodule", "sync", "--recursive"], cwd=dir)
            and self._git(["submodule", "update", "--recursive", "--depth=1"], cwd=dir)
        )

