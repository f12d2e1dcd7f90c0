"""Shared fixtures: a fake version control and project/engine factories."""

from __future__ import annotations

import os
import shutil
import textwrap
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from fibs.model.module import FibsModule
from fibs.runtime.engine import ResolutionEngine


class FakeVcs:
    """VersionControl double that "clones" by copying local directories.

    Args:
        repos: Maps import URL to the directory holding the repository content.
    """

    def __init__(self, repos: Optional[Dict[str, str]] = None) -> None:
        self.repos = dict(repos or {})
        self.clones: List[Tuple[str, str, Optional[str]]] = []
        self.updates: List[str] = []

    def clone(self, url: str, dir: str, ref: Optional[str] = None, depth: int = 1) -> bool:
        self.clones.append((url, dir, ref))
        os.makedirs(dir, exist_ok=True)
        src = self.repos.get(url)
        if src is None:
            return False
        shutil.copytree(src, dir, dirs_exist_ok=True)
        return True

    def update(self, dir: str, ref: Optional[str] = None, force: bool = False) -> bool:
        self.updates.append(dir)
        return True

    def checkout(self, dir: str, ref: str) -> bool:
        return True

    def update_submodules(self, dir: str) -> bool:
        return True


def write_module(dir: Path, source: str, filename: str = "fibs.py") -> Path:
    """Write a module file into ``dir`` and return the directory."""
    dir.mkdir(parents=True, exist_ok=True)
    (dir / filename).write_text(textwrap.dedent(source), encoding="utf-8")
    return dir


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def repos_dir(tmp_path: Path) -> Path:
    root = tmp_path / "repos"
    root.mkdir()
    return root


@pytest.fixture
def make_engine(project_dir: Path) -> Callable[..., ResolutionEngine]:
    """Factory for engines with an inline root module and a FakeVcs."""

    def factory(
        configure: Optional[Callable[[Any], None]] = None,
        build: Optional[Callable[[Any], None]] = None,
        repos: Optional[Dict[str, Path]] = None,
        **kwargs: Any,
    ) -> ResolutionEngine:
        vcs = FakeVcs({url: str(path) for url, path in (repos or {}).items()})
        module = FibsModule.from_functions(str(project_dir), configure=configure, build=build)
        return ResolutionEngine(str(project_dir), root_module=module, vcs=vcs, **kwargs)

    return factory


@pytest.fixture
def fake_vcs() -> type:
    """The FakeVcs class, for tests building their own instances."""
    return FakeVcs


@pytest.fixture
def module_writer() -> Callable[..., Path]:
    return write_module
