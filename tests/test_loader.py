"""Tests for module loading and structural validation."""

from pathlib import Path
from typing import Callable

import pytest

from fibs.errors import ConfigurationError, ModuleLoadError, ModuleValidationError
from fibs.runtime.loader import ModuleLoader, check_module_function, load_root_module


def test_load_valid_module(tmp_path: Path, module_writer: Callable[..., Path]) -> None:
    """A module with configure and build functions loads with both callables."""
    module_writer(
        tmp_path,
        """
        def configure(c):
            c.set_project_name("demo")

        def build(b):
            pass
        """,
    )
    result = ModuleLoader().load(str(tmp_path))

    assert result.errors == []
    assert len(result.modules) == 1
    module = result.modules[0]
    assert module.identity == f"{tmp_path}/fibs.py"
    assert callable(module.configure) and callable(module.build)


def test_missing_entry_file_loads_nothing(tmp_path: Path) -> None:
    """Directories without an entry file contribute no modules and no errors."""
    result = ModuleLoader().load(str(tmp_path))
    assert result.modules == [] and result.errors == []


def test_broken_module_is_soft_error(tmp_path: Path, module_writer: Callable[..., Path]) -> None:
    """Syntax errors surface as ModuleLoadError entries, not exceptions."""
    module_writer(tmp_path, "def configure(c)\n    pass\n")
    result = ModuleLoader().load(str(tmp_path))

    assert result.modules == []
    assert isinstance(result.errors[0], ModuleLoadError)
    assert isinstance(result.errors[0].cause, SyntaxError)


def test_bad_signature_is_validation_error(tmp_path: Path, module_writer: Callable[..., Path]) -> None:
    """Module functions must take exactly one positional argument."""
    module_writer(tmp_path, "def configure(c, extra):\n    pass\n")
    result = ModuleLoader().load(str(tmp_path))

    assert result.modules == []
    assert isinstance(result.errors[0], ModuleValidationError)
    assert "exactly one positional argument" in result.errors[0].reason


def test_explicit_files_in_order(tmp_path: Path, module_writer: Callable[..., Path]) -> None:
    """Explicit file lists load every file in the declared order."""
    module_writer(tmp_path, "def configure(c):\n    pass\n", filename="a.py")
    module_writer(tmp_path, "def build(b):\n    pass\n", filename="b.py")
    result = ModuleLoader(workers=2).load(str(tmp_path), ["b.py", "a.py"])

    assert [m.filename for m in result.modules] == ["b.py", "a.py"]
    assert result.modules[0].configure is None


def test_load_is_cached(tmp_path: Path, module_writer: Callable[..., Path]) -> None:
    """Repeated loads of the same directory return the cached result."""
    module_writer(tmp_path, "")
    loader = ModuleLoader()
    assert loader.load(str(tmp_path)) is loader.load(str(tmp_path))


def test_check_module_function() -> None:
    """Only callables accepting one positional argument pass."""
    assert check_module_function("configure", None) is None
    assert check_module_function("configure", lambda c: None) is None
    assert check_module_function("configure", 42) == "'configure' is not callable"
    assert check_module_function("build", lambda: None) is not None


def test_root_module(tmp_path: Path, module_writer: Callable[..., Path]) -> None:
    """A missing root module is empty, a broken one is fatal."""
    empty = load_root_module(str(tmp_path))
    assert empty.configure is None and empty.build is None

    module_writer(tmp_path, "raise RuntimeError('boom')\n")
    with pytest.raises(ConfigurationError, match="boom"):
        load_root_module(str(tmp_path))
