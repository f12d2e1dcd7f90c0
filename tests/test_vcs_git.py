"""Tests for the git client, with subprocess replaced by a recorder."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any, List, Optional

import pytest

from fibs.vcs import git
from fibs.vcs.git import GitClient


class Recorder:
    """Stands in for subprocess.run, failing on the git subcommand named in ``fail_on``."""

    def __init__(self, fail_on: Optional[str] = None, exc: type = subprocess.CalledProcessError) -> None:
        self.calls: List[List[str]] = []
        self.cwds: List[Optional[str]] = []
        self.fail_on = fail_on
        self.exc = exc

    def __call__(self, cmd: List[str], cwd: Optional[str] = None, **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append(cmd[1:])
        self.cwds.append(cwd)
        if self.fail_on is not None and self.fail_on in cmd:
            if self.exc is subprocess.TimeoutExpired:
                raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout", 0))
            raise subprocess.CalledProcessError(1, cmd, stderr="fatal: boom")
        return subprocess.CompletedProcess(cmd, 0, "", "")


@pytest.fixture
def recorder(monkeypatch: pytest.MonkeyPatch) -> Recorder:
    rec = Recorder()
    monkeypatch.setattr(git.subprocess, "run", rec)
    return rec


def test_clone_steps(recorder: Recorder, tmp_path: Path) -> None:
    """A clone is init, remote setup, shallow fetch, checkout, then submodules."""
    target = tmp_path / "lib1"

    assert GitClient().clone("https://example.com/lib1.git", str(target), ref="v1.0", depth=2)

    assert target.is_dir()
    assert recorder.calls == [
        ["init", "-q"],
        ["remote", "add", "origin", "https://example.com/lib1.git"],
        ["remote", "set-url", "--push", "origin", "nopush"],
        ["fetch", "--depth=2", "origin", "v1.0"],
        ["-c", "advice.detachedHead=false", "checkout", "FETCH_HEAD"],
        ["submodule", "init"],
        ["submodule", "sync", "--recursive"],
        ["submodule", "update", "--recursive", "--depth=1"],
    ]
    assert set(recorder.cwds) == {str(target)}


def test_clone_defaults_to_head(recorder: Recorder, tmp_path: Path) -> None:
    GitClient().clone("https://example.com/lib1.git", str(tmp_path / "lib1"))
    assert ["fetch", "--depth=1", "origin", "HEAD"] in recorder.calls


def test_clone_failure_stops(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """A failing step returns False and skips the remaining steps."""
    rec = Recorder(fail_on="fetch")
    monkeypatch.setattr(git.subprocess, "run", rec)

    assert not GitClient().clone("https://example.com/lib1.git", str(tmp_path / "lib1"))
    assert rec.calls[-1][0] == "fetch"
    assert len(rec.calls) == 4


def test_timeout_is_a_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    rec = Recorder(fail_on="fetch", exc=subprocess.TimeoutExpired)
    monkeypatch.setattr(git.subprocess, "run", rec)
    assert not GitClient(timeout=5).update(str(tmp_path))


def test_missing_git_executable(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def no_git(*args: Any, **kwargs: Any) -> None:
        raise FileNotFoundError("git")

    monkeypatch.setattr(git.subprocess, "run", no_git)
    assert not GitClient().checkout(str(tmp_path), "main")


def test_update_force(recorder: Recorder, tmp_path: Path) -> None:
    assert GitClient().update(str(tmp_path), ref="main", force=True)
    assert recorder.calls[0] == ["fetch", "--depth=1", "origin", "main", "-f"]
    assert recorder.calls[1] == ["-c", "advice.detachedHead=false", "checkout", "FETCH_HEAD"]
