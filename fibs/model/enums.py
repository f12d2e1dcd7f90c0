"""Enumerations shared by descriptors and resolved items."""

from enum import Enum


class Platform(str, Enum):
    """Target platform of a build configuration."""

    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    IOS = "ios"
    ANDROID = "android"
    EMSCRIPTEN = "emscripten"
    WASI = "wasi"
    UNKNOWN = "unknown-platform"

    def __str__(self) -> str:
        return self.value


class Arch(str, Enum):
    X86_64 = "x86_64"
    ARM64 = "arm64"
    WASM32 = "wasm32"
    UNKNOWN = "unknown-arch"

    def __str__(self) -> str:
        return self.value


class Compiler(str, Enum):
    MSVC = "msvc"
    GCC = "gcc"
    CLANG = "clang"
    APPLECLANG = "appleclang"
    UNKNOWN = "unknown-compiler"

    def __str__(self) -> str:
        return self.value


class Generator(str, Enum):
    VSTUDIO = "vstudio"
    XCODE = "xcode"
    NINJA = "ninja"
    NINJA_MULTI_CONFIG = "ninja-multi-config"
    MAKE = "make"

    def __str__(self) -> str:
        return self.value

    @property
    def is_multi_config(self) -> bool:
        return self in (Generator.VSTUDIO, Generator.XCODE, Generator.NINJA_MULTI_CONFIG)


class Language(str, Enum):
    C = "c"
    CXX = "cxx"

    def __str__(self) -> str:
        return self.value


class TargetType(str, Enum):
    PLAIN_EXE = "plain-exe"
    WINDOWED_EXE = "windowed-exe"
    LIB = "lib"
    DLL = "dll"
    INTERFACE = "interface"

    def __str__(self) -> str:
        return self.value

    @property
    def is_executable(self) -> bool:
        return self in (TargetType.PLAIN_EXE, TargetType.WINDOWED_EXE)


class BuildMode(str, Enum):
    RELEASE = "release"
    DEBUG = "debug"

    def __str__(self) -> str:
        return self.value


class Scope(str, Enum):
    """Visibility bucket of a target flag fragment."""

    INTERFACE = "interface"
    PRIVATE = "private"
    PUBLIC = "public"

    def __str__(self) -> str:
        return self.value
