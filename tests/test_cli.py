"""Tests for the fibs command line entry point and builtin commands."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any, Callable, List, Tuple

import pytest
from rich.console import Console

import fibs.main as main
from fibs.builtins import cmake, runners
from fibs.model.results import RunOptions, RunResult

PROJECT = """
def hello(ctx):
    ctx.console.print("hello from " + ctx.ensure_generate().name())
    return 3

def configure(c):
    c.set_project_name("demo")
    c.add_command(name="hello", help="say hello", run=hello)

def build(b):
    b.add_target({"name": "app", "type": "plain-exe", "sources": ["main.c"]})
    b.add_target({"name": "core", "type": "lib", "sources": ["core.c"]})
"""


@pytest.fixture
def cli_project(project_dir: Path, module_writer: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project with two targets and a custom command."""
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)
    module_writer(project_dir, PROJECT)
    (project_dir / "main.c").write_text("int main(void) { return 0; }\n", encoding="utf-8")
    (project_dir / "core.c").write_text("", encoding="utf-8")
    return project_dir


def _run(project_dir: Path, *argv: str) -> Tuple[int, str]:
    out = io.StringIO()
    console = Console(file=out, width=200)
    exit_code = main.run(["-C", str(project_dir), *argv], console=console)
    return exit_code, out.getvalue()


def test_help_lists_commands(cli_project: Path) -> None:
    """Without a command the help table lists builtin and project commands."""
    exit_code, output = _run(cli_project)

    assert exit_code == 0
    for name in ("help", "list", "config", "get", "build", "run", "runjobs", "reset", "clean", "update", "hello"):
        assert name in output


def test_help_for_one_command(cli_project: Path) -> None:
    exit_code, output = _run(cli_project, "help", "hello")
    assert exit_code == 0
    assert "fibs hello: say hello" in output

    exit_code, output = _run(cli_project, "help", "nope")
    assert exit_code == 1
    assert "error: unknown command 'nope'" in output


def test_unknown_command_fails(cli_project: Path) -> None:
    exit_code, output = _run(cli_project, "frobnicate")
    assert exit_code == 1
    assert "unknown command 'frobnicate'" in output


def test_project_command_exit_code(cli_project: Path) -> None:
    """Commands declared by the project run like builtins."""
    exit_code, output = _run(cli_project, "hello")
    assert exit_code == 3
    assert "hello from demo" in output


def test_list_configs_and_targets(cli_project: Path) -> None:
    exit_code, output = _run(cli_project, "list", "configs")
    assert exit_code == 0
    assert "linux-make-debug" in output and "win-vstudio-release" in output

    exit_code, output = _run(cli_project, "set", "config", "linux-make-debug")
    assert exit_code == 0

    exit_code, output = _run(cli_project, "list", "targets", "--lib")
    assert exit_code == 0
    assert "core" in output
    assert "app" not in output


def test_set_get_unset_config(cli_project: Path) -> None:
    """The selected config persists in the settings file."""
    assert _run(cli_project, "set", "config", "linux-ninja-debug")[0] == 0
    settings_path = cli_project / ".fibs" / "settings.json"
    assert json.loads(settings_path.read_text(encoding="utf-8"))["config"] == "linux-ninja-debug"

    exit_code, output = _run(cli_project, "config", "--get")
    assert exit_code == 0
    assert "linux-ninja-debug" in output

    assert _run(cli_project, "unset", "config")[0] == 0
    assert json.loads(settings_path.read_text(encoding="utf-8"))["config"] != "linux-ninja-debug"

    exit_code, output = _run(cli_project, "set", "nokey", "1")
    assert exit_code == 1
    assert "unknown settings item 'nokey'" in output


def test_config_command_generates(cli_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Selecting a config writes the cmake files for it."""
    calls: List[List[str]] = []
    monkeypatch.setattr(cmake, "run_cmd", lambda cmd, options: calls.append(options.args) or RunResult(0))

    exit_code, _ = _run(cli_project, "config", "linux-make-debug")

    assert exit_code == 0
    assert (cli_project / "CMakeLists.txt").read_text(encoding="utf-8").startswith("cmake_minimum_required")
    assert calls == [["--preset", "linux-make-debug"]]

    exit_code, output = _run(cli_project, "config", "no-such-config")
    assert exit_code == 1
    assert "config 'no-such-config' not found" in output


def test_run_executable_target(cli_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """The native runner starts the executable from the dist dir with the given args."""
    started: List[Tuple[str, RunOptions]] = []

    def fake_run_cmd(cmd: str, options: RunOptions) -> RunResult:
        started.append((cmd, options))
        return RunResult(exit_code=7)

    monkeypatch.setattr(runners, "run_cmd", fake_run_cmd)
    _run(cli_project, "set", "config", "linux-make-debug")

    exit_code, _ = _run(cli_project, "run", "app", "one", "two")

    assert exit_code == 7
    cmd, options = started[0]
    dist = f"{cli_project}/.fibs/dist/linux-make-debug"
    assert cmd == f"{dist}/app"
    assert options.cwd == dist
    assert options.args == ["one", "two"]

    exit_code, output = _run(cli_project, "run", "core")
    assert exit_code == 1
    assert "is not an executable" in output


def test_clean(cli_project: Path) -> None:
    for sub in ("build", "dist"):
        (cli_project / ".fibs" / sub / "linux-make-debug").mkdir(parents=True)

    exit_code, output = _run(cli_project, "clean", "linux-make-debug")
    assert exit_code == 0
    assert "2 directories deleted" in output

    exit_code, output = _run(cli_project, "clean", "--all")
    assert "nothing to do" in output


def test_link_and_unlink(cli_project: Path, tmp_path: Path) -> None:
    local = tmp_path / "local_lib"
    local.mkdir()
    links_path = cli_project / ".fibs" / "links.json"

    assert _run(cli_project, "link", "lib1", str(local))[0] == 0
    assert json.loads(links_path.read_text(encoding="utf-8")) == {"lib1": str(local)}

    assert _run(cli_project, "unlink", "lib1")[0] == 0
    assert json.loads(links_path.read_text(encoding="utf-8")) == {}


def test_diag_project(cli_project: Path) -> None:
    exit_code, output = _run(cli_project, "diag", "project")
    assert exit_code == 0
    assert "=== project:" in output
    assert str(cli_project) in output


def test_broken_root_module(project_dir: Path, module_writer: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
    """A root module that fails to load is reported as a single error line."""
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)
    module_writer(project_dir, "def configure(c:\n")

    exit_code, output = _run(project_dir, "help")

    assert exit_code == 1
    assert output.startswith("error: failed to load")


def test_argument_parser_defaults() -> None:
    args = main.build_parser().parse_args([])
    assert args.command == "help"
    assert args.dir == "."
    assert not args.verbose
    assert args.args == []


def test_setup_logging_levels(monkeypatch: pytest.MonkeyPatch) -> None:
    """Verbose mode switches the root logger to DEBUG."""
    import logging

    captured: dict[str, Any] = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))

    main.setup_logging(verbose=False)
    assert captured["level"] == logging.WARNING
    main.setup_logging(verbose=True)
    assert captured["level"] == logging.DEBUG
    assert captured["force"] is True


def test_get_setting(cli_project: Path) -> None:
    _run(cli_project, "set", "config", "linux-ninja-debug")

    exit_code, output = _run(cli_project, "get", "config")
    assert exit_code == 0
    assert output.strip() == "linux-ninja-debug"

    exit_code, output = _run(cli_project, "get", "nokey")
    assert exit_code == 1
    assert "unknown settings item 'nokey'" in output


def test_wrongly_typed_settings_do_not_block_commands(cli_project: Path) -> None:
    """A settings file with non-string values is repaired instead of failing every command."""
    settings_path = cli_project / ".fibs" / "settings.json"
    settings_path.parent.mkdir(parents=True)
    settings_path.write_text('{"config": true, "unknownKey": 5}', encoding="utf-8")

    assert _run(cli_project, "unset", "config")[0] == 0
    assert set(json.loads(settings_path.read_text(encoding="utf-8"))) == {"config"}


def test_runjobs(project_dir: Path, module_writer: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
    """Jobs of every target run once, then are up to date."""
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)
    module_writer(
        project_dir,
        """
        def build(b):
            b.add_target({
                "name": "app",
                "type": "plain-exe",
                "sources": ["main.c"],
                "jobs": [{"job": "copyfiles", "args": {"src_dir": "data", "files": ["a.txt"]}}],
            })
        """,
    )
    (project_dir / "main.c").write_text("int main(void) { return 0; }\n", encoding="utf-8")
    (project_dir / "data").mkdir()
    (project_dir / "data" / "a.txt").write_text("hello", encoding="utf-8")
    _run(project_dir, "set", "config", "linux-make-debug")

    exit_code, output = _run(project_dir, "runjobs")
    assert exit_code == 0
    assert "1 job(s) run" in output
    copied = project_dir / ".fibs" / "dist" / "linux-make-debug" / "a.txt"
    assert copied.read_text(encoding="utf-8") == "hello"

    assert "0 job(s) run" in _run(project_dir, "runjobs")[1]
    assert "1 job(s) run" in _run(project_dir, "runjobs", "--force")[1]


def test_reset(cli_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """reset asks before wiping the .fibs directory."""
    from rich.prompt import Confirm

    fibs_dir = cli_project / ".fibs"
    _run(cli_project, "set", "config", "linux-make-debug")
    assert fibs_dir.is_dir()

    monkeypatch.setattr(Confirm, "ask", lambda *a, **k: False)
    exit_code, output = _run(cli_project, "reset")
    assert exit_code == 0
    assert "not deleted" in output
    assert fibs_dir.is_dir()

    monkeypatch.setattr(Confirm, "ask", lambda *a, **k: True)
    exit_code, output = _run(cli_project, "reset")
    assert exit_code == 0
    assert not fibs_dir.exists()

    assert "nothing to do" in _run(cli_project, "reset", "--yes")[1]
