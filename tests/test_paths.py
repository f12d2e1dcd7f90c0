"""Tests for the project layout and alias resolution."""

import pytest

from fibs.errors import UnknownAliasError
from fibs.model.enums import Platform, TargetType
from fibs.runtime.paths import AliasScope, ProjectLayout, build_alias_map, resolve_alias, resolve_path

LAYOUT = ProjectLayout("/proj")


def test_layout_directories() -> None:
    """Every state directory lives below the fibs dir."""
    assert LAYOUT.fibs_dir() == "/proj/.fibs"
    assert LAYOUT.imports_dir() == "/proj/.fibs/imports"
    assert LAYOUT.build_dir("linux-make-debug") == "/proj/.fibs/build/linux-make-debug"
    assert LAYOUT.dist_dir("linux-make-debug") == "/proj/.fibs/dist/linux-make-debug"
    assert LAYOUT.settings_path() == "/proj/.fibs/settings.json"
    assert LAYOUT.links_path() == "/proj/.fibs/links.json"


def test_layout_normalizes_root() -> None:
    """A trailing separator on the root does not leak into derived paths."""
    layout = ProjectLayout("/proj/", ".state")
    assert layout.fibs_dir() == "/proj/.state"
    assert layout.target_build_dir("cfg", "app") == "/proj/.state/build/cfg/app"
    assert layout.target_assets_dir("cfg", "app", Platform.IOS, TargetType.WINDOWED_EXE) == "/proj/.state/dist/cfg/app.app"


def test_windowed_exe_on_macos_lives_in_bundle() -> None:
    """App bundles on macOS move the executable and assets into the bundle."""
    dist = LAYOUT.target_dist_dir("cfg", "app", Platform.MACOS, TargetType.WINDOWED_EXE)
    assets = LAYOUT.target_assets_dir("cfg", "app", Platform.MACOS, TargetType.WINDOWED_EXE)
    assert dist == "/proj/.fibs/dist/cfg/app.app/Contents/MacOS"
    assert assets == "/proj/.fibs/dist/cfg/app.app/Contents/Resources"
    assert LAYOUT.target_dist_dir("cfg", "app", Platform.LINUX, TargetType.WINDOWED_EXE) == "/proj/.fibs/dist/cfg"


def test_alias_map_scopes() -> None:
    """Config and target scopes extend the project scope."""
    project = build_alias_map(LAYOUT, AliasScope.PROJECT, "/proj/lib")
    assert project["@self"] == "/proj/lib"
    assert "@build" not in project

    config = build_alias_map(LAYOUT, AliasScope.CONFIG, "/proj", config_name="c")
    assert config["@build"] == "/proj/.fibs/build/c"
    assert "@targetbuild" not in config

    target = build_alias_map(
        LAYOUT,
        AliasScope.TARGET,
        "/proj",
        config_name="c",
        platform=Platform.LINUX,
        target_name="t",
        target_type=TargetType.PLAIN_EXE,
        target_dir="/proj/src",
    )
    assert target["@targetsources"] == "/proj/src"
    assert target["@targetbuild"] == "/proj/.fibs/build/c/t"


def test_config_scope_requires_config_name() -> None:
    """Config scope without a config name is a programming error."""
    with pytest.raises(ValueError):
        build_alias_map(LAYOUT, AliasScope.CONFIG, "/proj")


def test_resolve_path_last_alias_wins() -> None:
    """The last alias or absolute segment becomes the base of the path."""
    aliases = build_alias_map(LAYOUT, AliasScope.CONFIG, "/proj/lib", config_name="c")
    assert resolve_path(aliases, "@self", "src", "@build", "gen") == "/proj/.fibs/build/c/gen"
    assert resolve_path(aliases, "@self", "/abs/dir", "x.c") == "/abs/dir/x.c"
    assert resolve_path(aliases, "@self", "src/", "main.c") == "/proj/lib/src/main.c"
    assert resolve_path(aliases, "/proj/lib", None, "") == "/proj/lib"
    assert resolve_path(aliases) == ""


def test_resolve_path_alias_with_subpath() -> None:
    """An alias token may carry a trailing sub path."""
    aliases = build_alias_map(LAYOUT, AliasScope.PROJECT, "/proj")
    assert resolve_path(aliases, "/other", "@imports/lib1/include") == "/proj/.fibs/imports/lib1/include"


def test_unknown_alias() -> None:
    """Unknown alias tokens raise, naming the known ones."""
    aliases = build_alias_map(LAYOUT, AliasScope.PROJECT, "/proj")
    with pytest.raises(UnknownAliasError) as exc_info:
        resolve_path(aliases, "@nope/x")
    assert exc_info.value.alias == "@nope"
    assert "@self" in str(exc_info.value)


def test_resolve_alias_leaves_plain_items() -> None:
    """Items without the alias marker pass through unchanged."""
    aliases = build_alias_map(LAYOUT, AliasScope.PROJECT, "/proj")
    assert resolve_alias(aliases, "-Wall") == "-Wall"
    assert resolve_alias(aliases, "@root/x") == "/proj/x"
