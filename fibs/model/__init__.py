"""Data model: enumerations, descriptors and resolved items."""

from fibs.model.descriptors import (
    Adapter,
    AdapterDesc,
    CmakeCode,
    CmakeCodeDesc,
    CmakeVariable,
    CmakeVariableDesc,
    Command,
    CommandDesc,
    CompileDefinitionsDesc,
    CompileOptionsDesc,
    ConfigDesc,
    Import,
    ImportDesc,
    IncludeDirectoriesDesc,
    JobDesc,
    JobTemplate,
    LinkDirectoriesDesc,
    LinkOptionsDesc,
    Opener,
    OpenerDesc,
    Runner,
    RunnerDesc,
    Setting,
    SettingDesc,
    TargetAttributes,
    TargetAttributesDesc,
    TargetDesc,
    TargetJob,
    Tool,
    ToolDesc,
)
from fibs.model.enums import (
    Arch,
    BuildMode,
    Compiler,
    Generator,
    Language,
    Platform,
    Scope,
    TargetType,
)
from fibs.model.module import FibsModule
from fibs.model.resolved import (
    ArenaRef,
    CmakeInclude,
    CompileDefinition,
    CompileOption,
    Config,
    IncludeDirectory,
    LinkDirectory,
    LinkOption,
    Target,
    TargetBuckets,
)
from fibs.model.results import (
    AdapterBuildOptions,
    AdapterConfigureResult,
    RunOptions,
    RunResult,
    ValidationResult,
)

__all__ = [
    "Adapter",
    "AdapterBuildOptions",
    "AdapterConfigureResult",
    "AdapterDesc",
    "ArenaRef",
    "Arch",
    "BuildMode",
    "CmakeCode",
    "CmakeCodeDesc",
    "CmakeInclude",
    "CmakeVariable",
    "CmakeVariableDesc",
    "Command",
    "CommandDesc",
    "CompileDefinition",
    "CompileDefinitionsDesc",
    "CompileOption",
    "CompileOptionsDesc",
    "Compiler",
    "Config",
    "ConfigDesc",
    "FibsModule",
    "Generator",
    "Import",
    "ImportDesc",
    "IncludeDirectoriesDesc",
    "IncludeDirectory",
    "JobDesc",
    "JobTemplate",
    "Language",
    "LinkDirectoriesDesc",
    "LinkDirectory",
    "LinkOption",
    "LinkOptionsDesc",
    "Opener",
    "OpenerDesc",
    "Platform",
    "RunOptions",
    "RunResult",
    "Runner",
    "RunnerDesc",
    "Scope",
    "Setting",
    "SettingDesc",
    "Target",
    "TargetAttributes",
    "TargetAttributesDesc",
    "TargetBuckets",
    "TargetDesc",
    "TargetJob",
    "TargetType",
    "Tool",
    "ToolDesc",
    "ValidationResult",
]
