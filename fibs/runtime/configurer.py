"""Configure-phase registration surface handed to ``configure(c)``."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from fibs.errors import ConfigurationError, DuplicateNameError
from fibs.model.descriptors import (
    AdapterDesc,
    CmakeCodeDesc,
    CmakeVariableDesc,
    CommandDesc,
    ConfigDesc,
    ImportDesc,
    JobDesc,
    OpenerDesc,
    RunnerDesc,
    SettingDesc,
    TargetAttributesDesc,
    ToolDesc,
)
from fibs.model.enums import Arch, Platform
from fibs.runtime import host
from fibs.runtime.paths import ProjectLayout

logger = logging.getLogger("fibs.runtime.configurer")

# fragment kind -> Configurer attribute holding the registered descriptors
FRAGMENT_KINDS: Dict[str, str] = {
    "cmake_variable": "cmake_variables",
    "import": "imports",
    "command": "commands",
    "job": "jobs",
    "tool": "tools",
    "runner": "runners",
    "opener": "openers",
    "config": "configs",
    "setting": "settings",
    "adapter": "adapters",
    "cmake_code": "cmake_code",
    "target_attributes": "target_attributes",
}


def coerce_desc(kind: str, desc_cls: type, desc: Any, fields: Dict[str, Any]) -> Any:
    """Turn a descriptor, a mapping or keyword fields into a ``desc_cls``.

    Raises:
        ConfigurationError: If the input does not validate.
    """
    if isinstance(desc, desc_cls) and not fields:
        return desc
    if isinstance(desc, BaseModel):
        data = {**dict(desc), **fields}
    elif isinstance(desc, Mapping):
        data = {**desc, **fields}
    elif desc is None:
        data = dict(fields)
    else:
        raise ConfigurationError(f"cannot register {kind} from {type(desc).__name__}")
    try:
        return desc_cls.model_validate(data)
    except ValidationError as exc:
        name = data.get("name", "?")
        raise ConfigurationError(f"invalid {kind} '{name}': {exc}") from exc


class Configurer:
    """Collects declarations of one module during the configure phase.

    Names must be unique per fragment kind within one Configurer, across
    Configurers the resolution engine applies last-write-wins. Items are
    stored exactly as registered.

    Args:
        layout: Project layout, backs the directory queries.
        self_dir: Directory of the import this Configurer belongs to.
    """

    def __init__(self, layout: ProjectLayout, self_dir: str) -> None:
        self.layout = layout
        self._self_dir = self_dir
        self.project_name: Optional[str] = None
        self.cmake_variables: List[CmakeVariableDesc] = []
        self.imports: List[ImportDesc] = []
        self.commands: List[CommandDesc] = []
        self.jobs: List[JobDesc] = []
        self.tools: List[ToolDesc] = []
        self.runners: List[RunnerDesc] = []
        self.openers: List[OpenerDesc] = []
        self.configs: List[ConfigDesc] = []
        self.settings: List[SettingDesc] = []
        self.adapters: List[AdapterDesc] = []
        self.cmake_code: List[CmakeCodeDesc] = []
        self.target_attributes: List[TargetAttributesDesc] = []

    def items(self, kind: str) -> List[Any]:
        return getattr(self, FRAGMENT_KINDS[kind])

    def _add(self, kind: str, desc_cls: type, desc: Any, fields: Dict[str, Any]) -> Any:
        item = coerce_desc(kind, desc_cls, desc, fields)
        items = self.items(kind)
        if any(existing.name == item.name for existing in items):
            raise DuplicateNameError(kind, item.name, self._self_dir)
        items.append(item)
        logger.debug("registered %s '%s' (%s)", kind, item.name, self._self_dir)
        return item

    # -- registration ------------------------------------------------------

    def set_project_name(self, name: str) -> None:
        """Set the project name, only honoured for the root module."""
        self.project_name = name

    def add_cmake_variable(
        self, name: Union[str, CmakeVariableDesc, Mapping], value: Union[bool, str, None] = None
    ) -> CmakeVariableDesc:
        if isinstance(name, str):
            return self._add("cmake_variable", CmakeVariableDesc, None, {"name": name, "value": value})
        return self._add("cmake_variable", CmakeVariableDesc, name, {})

    def add_import(self, desc: Union[ImportDesc, Mapping, None] = None, **fields: Any) -> ImportDesc:
        return self._add("import", ImportDesc, desc, fields)

    def add_command(self, desc: Union[CommandDesc, Mapping, None] = None, **fields: Any) -> CommandDesc:
        return self._add("command", CommandDesc, desc, fields)

    def add_job(self, desc: Union[JobDesc, Mapping, None] = None, **fields: Any) -> JobDesc:
        return self._add("job", JobDesc, desc, fields)

    def add_tool(self, desc: Union[ToolDesc, Mapping, None] = None, **fields: Any) -> ToolDesc:
        return self._add("tool", ToolDesc, desc, fields)

    def add_runner(self, desc: Union[RunnerDesc, Mapping, None] = None, **fields: Any) -> RunnerDesc:
        return self._add("runner", RunnerDesc, desc, fields)

    def add_opener(self, desc: Union[OpenerDesc, Mapping, None] = None, **fields: Any) -> OpenerDesc:
        return self._add("opener", OpenerDesc, desc, fields)

    def add_config(self, desc: Union[ConfigDesc, Mapping, None] = None, **fields: Any) -> ConfigDesc:
        return self._add("config", ConfigDesc, desc, fields)

    def add_setting(self, desc: Union[SettingDesc, Mapping, None] = None, **fields: Any) -> SettingDesc:
        return self._add("setting", SettingDesc, desc, fields)

    def add_adapter(self, desc: Union[AdapterDesc, Mapping, None] = None, **fields: Any) -> AdapterDesc:
        return self._add("adapter", AdapterDesc, desc, fields)

    def add_cmake_code(
        self,
        desc: Union[CmakeCodeDesc, Mapping, str, None] = None,
        func: Optional[Callable[..., str]] = None,
        **fields: Any,
    ) -> CmakeCodeDesc:
        """Register a CMake code injector, as a descriptor or ``(name, func)``."""
        if isinstance(desc, str):
            return self._add("cmake_code", CmakeCodeDesc, None, {"name": desc, "func": func, **fields})
        return self._add("cmake_code", CmakeCodeDesc, desc, fields)

    def add_target_attributes(
        self,
        desc: Union[TargetAttributesDesc, Mapping, str, None] = None,
        func: Optional[Callable[..., Any]] = None,
        **fields: Any,
    ) -> TargetAttributesDesc:
        """Register a target attribute injector, as a descriptor or ``(name, func)``."""
        if isinstance(desc, str):
            return self._add(
                "target_attributes", TargetAttributesDesc, None, {"name": desc, "func": func, **fields}
            )
        return self._add("target_attributes", TargetAttributesDesc, desc, fields)

    # -- read-only info ----------------------------------------------------

    def host_platform(self) -> Platform:
        return host.host_platform()

    def host_arch(self) -> Arch:
        return host.host_arch()

    def is_host_platform(self, platform: Union[Platform, str]) -> bool:
        return self.host_platform() == Platform(platform)

    def is_host_windows(self) -> bool:
        return self.is_host_platform(Platform.WINDOWS)

    def is_host_linux(self) -> bool:
        return self.is_host_platform(Platform.LINUX)

    def is_host_macos(self) -> bool:
        return self.is_host_platform(Platform.MACOS)

    def project_dir(self) -> str:
        return self.layout.root_dir

    def self_dir(self) -> str:
        return self._self_dir

    def fibs_dir(self) -> str:
        return self.layout.fibs_dir()

    def sdk_dir(self) -> str:
        return self.layout.sdk_dir()

    def imports_dir(self) -> str:
        return self.layout.imports_dir()

    def config_dir(self, config_name: str) -> str:
        return self.layout.config_dir(config_name)

    def build_dir(self, config_name: str) -> str:
        return self.layout.build_dir(config_name)

    def dist_dir(self, config_name: str) -> str:
        return self.layout.dist_dir(config_name)
