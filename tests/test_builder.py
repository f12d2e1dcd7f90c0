"""Tests for the build phase: target declaration and flag resolution."""

from pathlib import Path
from typing import Any, Callable, List, Tuple

import pytest

from fibs.errors import ConfigurationError, DuplicateNameError
from fibs.model.enums import Scope, TargetType
from fibs.runtime.builder import TargetBuilder

U1 = "https://example.com/org/lib1.git"


def _resolve(make_engine: Callable[..., Any], **kwargs: Any) -> Any:
    engine = make_engine(**kwargs)
    return engine.resolve("linux-make-debug")


def test_visibility_buckets_preserved(make_engine: Callable[..., Any]) -> None:
    """Bucketed flags land in the matching bucket and are never merged."""

    def build(b: Any) -> None:
        b.add_target(
            {
                "name": "core",
                "type": "lib",
                "compile_options": {"interface": ["A"], "private": ["B"], "public": ["C"]},
            }
        )

    target = _resolve(make_engine, build=build).target("core")
    opts = target.compile_options
    assert [o.opt for o in opts.interface] == ["A"]
    assert [o.opt for o in opts.private] == ["B"]
    assert [o.opt for o in opts.public] == ["C"]
    assert [o.opt for o in opts.all()] == ["A", "B", "C"]


def test_default_scope_depends_on_target_type(make_engine: Callable[..., Any]) -> None:
    """Unscoped flags are private, except on interface targets."""

    def build(b: Any) -> None:
        b.add_target("hdr", "interface", lambda t: t.add_include_directories(["include"]))
        b.add_target("core", "lib", lambda t: t.add_compile_definitions({"CORE": "1"}))

    project = _resolve(make_engine, build=build)
    assert len(project.target("hdr").include_directories.bucket(Scope.INTERFACE)) == 1
    definition = project.target("core").compile_definitions.private[0]
    assert (definition.name, definition.value, definition.scope) == ("CORE", "1", Scope.PRIVATE)


def test_target_paths(make_engine: Callable[..., Any], project_dir: Path) -> None:
    """Target paths resolve against the declaring import and the target dir."""

    def declare(t: TargetBuilder) -> None:
        t.set_dir("src")
        t.add_sources(["main.c", "@targetbuild/generated.c"])
        t.add_include_directories(["include", "@root/shared"])
        t.add_dependencies(["core"])
        t.add_libraries(["m"])

    def build(b: Any) -> None:
        b.add_target("app", "plain-exe", declare)

    project = _resolve(make_engine, build=build)
    app = project.target("app")
    src = f"{project_dir}/src"

    assert app.dir == src
    assert app.sources == [f"{src}/main.c", f"{project.build_dir()}/app/generated.c"]
    assert [i.dir for i in app.include_directories.private] == [f"{src}/include", f"{project_dir}/shared"]
    assert app.deps == ["core"]
    assert app.libs == ["m"]
    assert project.target_source_dir("app") == src
    assert project.target_dist_dir("app") == project.dist_dir()


def test_target_attribute_injectors(make_engine: Callable[..., Any]) -> None:
    """Injected attributes come first and user props win on conflict."""

    def inject(t: TargetBuilder) -> None:
        t.add_compile_options(["-Wall"])
        t.set_property("FOLDER", "injected")
        t.set_property("EXTRA", "yes")

    def configure(c: Any) -> None:
        c.add_target_attributes("warnings", inject)

    def declare(t: TargetBuilder) -> None:
        t.add_compile_options(["-O2"])
        t.set_property("FOLDER", "user")

    def build(b: Any) -> None:
        b.add_target("core", "lib", declare)

    target = _resolve(make_engine, configure=configure, build=build).target("core")
    assert [o.opt for o in target.compile_options.private] == ["-Wall", "-O2"]
    assert target.props == {"FOLDER": "user", "EXTRA": "yes"}



def test_injectors_run_before_target_callback(make_engine: Callable[..., Any]) -> None:
    """Injectors fill the same TargetBuilder the target callback receives."""
    seen: List[Tuple[str, int]] = []

    def inject(t: TargetBuilder) -> None:
        seen.append(("inject", id(t)))
        t.set_property("FOLDER", "injected")

    def declare(t: TargetBuilder) -> None:
        seen.append(("user", id(t)))
        t.set_property("FOLDER", "user")

    def build(b: Any) -> None:
        b.add_target("core", "lib", declare)
        b.add_target({"name": "hdr", "type": "interface"})

    project = _resolve(
        make_engine, configure=lambda c: c.add_target_attributes("folders", inject), build=build
    )

    assert [step for step, _ in seen[:2]] == ["inject", "user"]
    assert seen[0][1] == seen[1][1]
    assert project.target("core").props == {"FOLDER": "user"}
    assert project.target("hdr").props == {"FOLDER": "injected"}


def test_duplicate_target_in_one_module(make_engine: Callable[..., Any]) -> None:
    def build(b: Any) -> None:
        b.add_target({"name": "core", "type": "lib"})
        b.add_target({"name": "core", "type": "dll"})

    with pytest.raises(DuplicateNameError):
        _resolve(make_engine, build=build)


def test_duplicate_target_across_modules(
    make_engine: Callable[..., Any], repos_dir: Path, module_writer: Callable[..., Path]
) -> None:
    """Target names are unique across the whole import tree."""
    lib1 = module_writer(
        repos_dir / "lib1",
        """
        def build(b):
            b.add_target({"name": "core", "type": "lib"})
        """,
    )

    def configure(c: Any) -> None:
        c.add_import(name="lib1", url=U1)

    def build(b: Any) -> None:
        b.add_target({"name": "core", "type": "lib"})

    with pytest.raises(DuplicateNameError) as exc_info:
        _resolve(make_engine, configure=configure, build=build, repos={U1: lib1})
    assert exc_info.value.kind == "target"


def test_import_targets_resolve_in_import_dir(
    make_engine: Callable[..., Any], repos_dir: Path, module_writer: Callable[..., Path]
) -> None:
    lib1 = module_writer(
        repos_dir / "lib1",
        """
        def build(b):
            b.add_target({"name": "lib1", "type": "lib", "sources": ["lib1.c"]})
        """,
    )
    project = _resolve(make_engine, configure=lambda c: c.add_import(name="lib1", url=U1), repos={U1: lib1})

    target = project.target("lib1")
    assert target.dir == f"{project.imports_dir()}/lib1"
    assert target.sources == [f"{project.imports_dir()}/lib1/lib1.c"]
    assert target.owner_module == f"{project.imports_dir()}/lib1/fibs.py"


def test_invalid_target_declarations(make_engine: Callable[..., Any]) -> None:
    def missing_callback(b: Any) -> None:
        b.add_target("core", "lib")

    with pytest.raises(ConfigurationError, match="requires a type and a callback"):
        _resolve(make_engine, build=missing_callback)

    def bad_type(b: Any) -> None:
        b.add_target({"name": "core", "type": "shared-object"})

    with pytest.raises(ConfigurationError):
        _resolve(make_engine, build=bad_type)


def test_build_function_error_is_fatal(make_engine: Callable[..., Any]) -> None:
    def build(b: Any) -> None:
        raise RuntimeError("build exploded")

    with pytest.raises(ConfigurationError, match="build exploded"):
        _resolve(make_engine, build=build)


def test_global_flags_and_variables(make_engine: Callable[..., Any], project_dir: Path) -> None:
    """Builder-level flags become project-wide items, build variables win."""

    def build(b: Any) -> None:
        assert b.is_linux() and b.is_debug()
        b.add_include_directories(["include"])
        b.add_compile_definitions({"GLOBAL": "1", "SHARED": "global"})
        b.add_compile_options(["-g"])
        b.add_link_options(["-rdynamic"])
        b.add_link_directories(["@self/lib"])
        b.add_cmake_include("@self/cmake/extra.cmake")
        b.add_cmake_variable("CMAKE_CXX_STANDARD", "17")
        b.add_target("core", "lib", lambda t: t.add_compile_definitions({"SHARED": "target"}))

    project = _resolve(make_engine, build=build)

    assert [i.dir for i in project.include_directories()] == [f"{project_dir}/include"]
    assert [o.opt for o in project.compile_options()] == ["-g"]
    assert [o.opt for o in project.link_options()] == ["-rdynamic"]
    assert [d.dir for d in project.link_directories()] == [f"{project_dir}/lib"]
    assert [i.path for i in project.cmake_includes()] == [f"{project_dir}/cmake/extra.cmake"]
    assert project.find("cmake_variable", "CMAKE_CXX_STANDARD").value == "17"
    assert project.find_compile_definition("SHARED").value == "target"
    assert project.find_compile_definition("GLOBAL").value == "1"
    assert project.find_compile_definition("MISSING") is None


def test_target_builder_to_desc() -> None:
    """TargetBuilder collects fields into a validated descriptor."""
    builder = TargetBuilder("tool", "plain-exe")
    builder.add_source("main.c")
    builder.add_job("copyfiles", {"files": ["a.txt"]})
    builder.add_frameworks(["Cocoa"])
    desc = builder.to_desc()

    assert builder.name() == "tool"
    assert desc.type == TargetType.PLAIN_EXE
    assert desc.sources == ["main.c"]
    assert desc.jobs[0].job == "copyfiles"
    assert desc.jobs[0].args == {"files": ["a.txt"]}
    assert desc.frameworks == ["Cocoa"]
