"""Tests for target jobs and the builtin copyfiles job."""

import os
from pathlib import Path
from typing import Any, Callable

import pytest

from fibs.builtins.jobs import copyfiles_validate
from fibs.errors import JobError
from fibs.runtime.jobs import Job, is_dirty, run_jobs


def _touch(path: Path, text: str = "x", mtime: float = 1_000_000.0) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    os.utime(path, (mtime, mtime))
    return path


def test_is_dirty(tmp_path: Path) -> None:
    """Outputs are dirty when missing, empty or older than an input."""
    src = _touch(tmp_path / "in.txt", mtime=1_000_000.0)
    out = tmp_path / "out.txt"
    assert is_dirty([str(src)], [str(out)])

    _touch(out, mtime=2_000_000.0)
    assert not is_dirty([str(src)], [str(out)])

    _touch(out, text="", mtime=2_000_000.0)
    assert is_dirty([str(src)], [str(out)])

    _touch(out, mtime=2_000_000.0)
    _touch(src, mtime=3_000_000.0)
    assert is_dirty([str(src)], [str(out)])


def test_is_dirty_missing_input(tmp_path: Path) -> None:
    with pytest.raises(JobError, match="job input not found"):
        is_dirty([str(tmp_path / "nope")], [])


def test_copyfiles_validate() -> None:
    """copyfiles requires a list of file names and knows its optional args."""
    assert copyfiles_validate({"files": ["a.txt"]}).valid
    assert copyfiles_validate({"files": ["a.txt"], "src_dir": "data", "dst_dir": "assets"}).valid

    missing = copyfiles_validate({})
    assert not missing.valid
    assert "expected required arg 'files'" in missing.hints

    wrong = copyfiles_validate({"files": "a.txt", "extra": 1})
    assert "arg 'files' must be of type str[]" in wrong.hints
    assert "unknown arg 'extra'" in wrong.hints


def _copy_project(make_engine: Callable[..., Any], project_dir: Path, args: Any) -> Any:
    _touch(project_dir / "src" / "main.c")
    _touch(project_dir / "src" / "data" / "a.txt", text="hello")

    def build(b: Any) -> None:
        def declare(t: Any) -> None:
            t.set_dir("src")
            t.add_source("main.c")
            t.add_job("copyfiles", args)

        b.add_target("app", "plain-exe", declare)

    return make_engine(build=build).resolve("linux-make-debug")


def test_copyfiles_job_runs_when_dirty(make_engine: Callable[..., Any], project_dir: Path) -> None:
    """Files are copied into the target's asset dir, then considered up to date."""
    project = _copy_project(make_engine, project_dir, {"src_dir": "data", "files": ["a.txt"]})
    target = project.target("app")

    assert run_jobs(project, target) == 1
    copied = Path(project.target_assets_dir("app")) / "a.txt"
    assert copied.read_text(encoding="utf-8") == "hello"

    assert run_jobs(project, target) == 0
    assert run_jobs(project, target, force=True) == 1


def test_copyfiles_custom_destination(make_engine: Callable[..., Any], project_dir: Path) -> None:
    project = _copy_project(
        make_engine, project_dir, {"src_dir": "data", "dst_dir": "@targetbuild/res", "files": ["a.txt"]}
    )
    run_jobs(project, project.target("app"))
    assert (Path(project.target_build_dir("app")) / "res" / "a.txt").is_file()


def test_invalid_job_args(make_engine: Callable[..., Any], project_dir: Path) -> None:
    """Validation failures name the job, the target and the offending args."""
    project = _copy_project(make_engine, project_dir, {"file": ["a.txt"]})
    with pytest.raises(JobError) as exc_info:
        run_jobs(project, project.target("app"))
    message = str(exc_info.value)
    assert "job 'copyfiles' in target 'app' has invalid args" in message
    assert "unknown arg 'file'" in message


def test_unknown_job(make_engine: Callable[..., Any], project_dir: Path) -> None:
    def build(b: Any) -> None:
        b.add_target({"name": "app", "type": "plain-exe", "jobs": [{"job": "nope"}]})

    project = make_engine(build=build).resolve("linux-make-debug")
    with pytest.raises(JobError, match="unknown job 'nope'"):
        run_jobs(project, project.target("app"))


def test_custom_job_template(make_engine: Callable[..., Any], project_dir: Path, tmp_path: Path) -> None:
    """Project job templates build Job instances, failures become JobError."""
    out = tmp_path / "gen.h"

    def gen(inputs: Any, outputs: Any, args: Any) -> bool:
        if args.get("fail"):
            return False
        Path(outputs[0]).write_text("#define X 1\n", encoding="utf-8")
        return True

    def configure(c: Any) -> None:
        c.add_job(
            name="gen",
            validator=lambda args: set(args) <= {"fail"},
            build=lambda project, config, target, args: Job("gen", [], [str(out)], gen, args),
        )

    def build(b: Any) -> None:
        b.add_target("ok", "lib", lambda t: t.add_job("gen"))
        b.add_target("bad", "lib", lambda t: t.add_job("gen", {"fail": True}))

    project = make_engine(configure=configure, build=build).resolve("linux-make-debug")
    assert run_jobs(project, project.target("ok")) == 1
    assert out.is_file()

    out.unlink()
    with pytest.raises(JobError, match="job 'gen' in target 'bad' failed"):
        run_jobs(project, project.target("bad"))
