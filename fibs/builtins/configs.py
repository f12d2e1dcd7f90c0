"""Default build configurations for the desktop host platforms."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from fibs.runtime.configurer import Configurer

_PLATFORMS: Dict[str, Dict[str, Any]] = {
    "win": {"platform": "windows", "arch": "x86_64"},
    "macos": {"platform": "macos", "compilers": ["appleclang"]},
    "linux": {"platform": "linux", "compilers": ["gcc", "clang"]},
}

_FLAVOURS: Dict[str, Dict[str, Any]] = {
    "vstudio": {"compilers": ["msvc"], "opener": "vstudio"},
    "xcode": {"generator": "xcode", "opener": "xcode"},
    "vscode": {"generator": "ninja", "opener": "vscode"},
    "make": {"generator": "make"},
    "ninja": {"generator": "ninja"},
}

# (platform, flavour) pairs a config exists for
COMBINATIONS: List[Tuple[str, str]] = [
    ("win", "vstudio"),
    ("macos", "make"),
    ("macos", "ninja"),
    ("macos", "xcode"),
    ("macos", "vscode"),
    ("linux", "make"),
    ("linux", "ninja"),
    ("linux", "vscode"),
]

BUILD_MODES = ("release", "debug")


def default_config_descs() -> List[Dict[str, Any]]:
    """Descriptors of every builtin config, named ``<platform>-<flavour>-<mode>``."""
    descs = []
    for platform, flavour in COMBINATIONS:
        for mode in BUILD_MODES:
            descs.append(
                {
                    "name": f"{platform}-{flavour}-{mode}",
                    **_PLATFORMS[platform],
                    **_FLAVOURS[flavour],
                    "build_mode": mode,
                }
            )
    return descs


def add_default_configs(c: Configurer) -> None:
    for desc in default_config_descs():
        c.add_config(desc)
