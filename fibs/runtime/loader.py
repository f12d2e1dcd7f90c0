"""Loading and structural validation of project description files."""

from __future__ import annotations

import hashlib
import importlib.util
import inspect
import logging
import os
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fibs.errors import ConfigurationError, ModuleLoadError, ModuleValidationError, RecoverableError
from fibs.model.module import FibsModule

logger = logging.getLogger("fibs.runtime.loader")

MODULE_FUNCTIONS = ("configure", "build")


@dataclass
class LoadResult:
    """Modules loaded from one directory plus the soft errors encountered.

    Attributes:
        modules: Successfully loaded and validated modules, in file order.
        errors: ModuleLoadError / ModuleValidationError entries.
    """

    modules: List[FibsModule] = field(default_factory=list)
    errors: List[RecoverableError] = field(default_factory=list)


def check_module_function(name: str, value: Any) -> Optional[str]:
    """Return why ``value`` is not usable as module function ``name``, or None."""
    if value is None:
        return None
    if not callable(value):
        return f"'{name}' is not callable"
    try:
        inspect.signature(value).bind(object())
    except TypeError:
        return f"'{name}' must accept exactly one positional argument"
    except ValueError:
        # builtins without signature information
        return None
    return None


def _module_name(path: str) -> str:
    digest = hashlib.sha1(path.encode("utf-8")).hexdigest()[:12]
    stem = os.path.splitext(os.path.basename(path))[0]
    return f"_fibs_{stem}_{digest}"


def _exec_file(path: str) -> Any:
    spec = importlib.util.spec_from_file_location(_module_name(path), path)
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot create import spec for '{path}'")
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(spec.name, None)
        raise
    return module


class ModuleLoader:
    """Loads ``fibs.py`` style modules from import directories.

    Files of one directory are loaded concurrently, identical requests are
    served from a per-loader cache.

    Args:
        entry_file: Conventional module file name.
        workers: Maximum number of files loaded concurrently.
    """

    def __init__(self, entry_file: str = "fibs.py", workers: int = 4) -> None:
        self.entry_file = entry_file
        self.workers = max(1, workers)
        self._cache: Dict[Tuple[str, Tuple[str, ...]], LoadResult] = {}
        self._lock = threading.Lock()

    def default_files(self, dir: str) -> List[str]:
        if os.path.isfile(os.path.join(dir, self.entry_file)):
            return [self.entry_file]
        return []

    def load(self, dir: str, files: Optional[Sequence[str]] = None) -> LoadResult:
        """Load and validate module files from ``dir``.

        Args:
            dir: Directory the files are relative to.
            files: File names to load, the entry file (if present) when None.

        Returns:
            LoadResult: Loaded modules and soft errors, never raises for
            broken files.
        """
        file_list = list(files) if files is not None else self.default_files(dir)
        key = (dir, tuple(file_list))
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        if len(file_list) <= 1:
            outcomes = [self.load_file(dir, filename) for filename in file_list]
        else:
            with ThreadPoolExecutor(max_workers=min(self.workers, len(file_list))) as pool:
                outcomes = list(pool.map(lambda f: self.load_file(dir, f), file_list))

        result = LoadResult()
        for module, error in outcomes:
            if module is not None:
                result.modules.append(module)
            if error is not None:
                logger.warning("%s", error)
                result.errors.append(error)

        with self._lock:
            self._cache[key] = result
        return result

    def load_file(
        self, dir: str, filename: str
    ) -> Tuple[Optional[FibsModule], Optional[RecoverableError]]:
        path = os.path.join(dir, filename)
        logger.debug("loading %s", path)
        try:
            namespace = _exec_file(path)
        except Exception as exc:
            return None, ModuleLoadError(path, exc)

        functions = {}
        for name in MODULE_FUNCTIONS:
            value = getattr(namespace, name, None)
            reason = check_module_function(name, value)
            if reason is not None:
                return None, ModuleValidationError(path, reason)
            functions[name] = value
        return FibsModule(dir=dir, filename=filename, **functions), None


def load_root_module(root_dir: str, entry_file: str = "fibs.py") -> FibsModule:
    """Load the project's own module.

    Unlike imports, a broken root module is fatal. A missing entry file
    yields an empty module so builtin commands keep working.

    Raises:
        ConfigurationError: If the entry file fails to load or validate.
    """
    if not os.path.isfile(os.path.join(root_dir, entry_file)):
        logger.info("no %s found in %s", entry_file, root_dir)
        return FibsModule(dir=root_dir, filename=entry_file)
    module, error = ModuleLoader(entry_file, workers=1).load_file(root_dir, entry_file)
    if error is not None:
        raise ConfigurationError(str(error)) from getattr(error, "cause", None)
    return module
