"""Host platform detection."""

from __future__ import annotations

import platform as _platform
import sys

from fibs.model.enums import Arch, Compiler, Platform


def host_platform() -> Platform:
    if sys.platform == "darwin":
        return Platform.MACOS
    if sys.platform.startswith("win"):
        return Platform.WINDOWS
    return Platform.LINUX


def host_arch() -> Arch:
    machine = _platform.machine().lower()
    if machine in ("x86_64", "amd64"):
        return Arch.X86_64
    if machine in ("arm64", "aarch64"):
        return Arch.ARM64
    return Arch.UNKNOWN


def default_config_name(platform: Platform) -> str:
    """Name of the builtin config used when the user has not selected one."""
    return {
        Platform.WINDOWS: "win-vstudio-release",
        Platform.MACOS: "macos-make-release",
        Platform.IOS: "ios-xcode-release",
        Platform.LINUX: "linux-make-release",
        Platform.ANDROID: "android-make-release",
        Platform.EMSCRIPTEN: "emscripten-make-release",
        Platform.WASI: "wasi-make-release",
    }.get(platform, "linux-make-release")


def default_compiler(platform: Platform) -> Compiler:
    return {
        Platform.WINDOWS: Compiler.MSVC,
        Platform.MACOS: Compiler.APPLECLANG,
        Platform.IOS: Compiler.APPLECLANG,
        Platform.LINUX: Compiler.GCC,
        Platform.ANDROID: Compiler.CLANG,
        Platform.EMSCRIPTEN: Compiler.CLANG,
        Platform.WASI: Compiler.CLANG,
    }.get(platform, Compiler.UNKNOWN)
