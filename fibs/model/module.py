"""Loaded project description units."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

BUILTIN_MODULE = "<builtin>"


@dataclass(frozen=True)
class FibsModule:
    """A loaded ``fibs.py`` file.

    Attributes:
        dir: Directory the module was loaded from.
        filename: File name inside ``dir``.
        configure: Optional ``configure(configurer)`` callback.
        build: Optional ``build(builder)`` callback.
    """

    dir: str
    filename: str
    configure: Optional[Callable[[Any], None]] = None
    build: Optional[Callable[[Any], None]] = None

    @property
    def identity(self) -> str:
        if self.filename.startswith("<"):
            return self.filename
        return f"{self.dir}/{self.filename}"

    @classmethod
    def from_functions(
        cls,
        dir: str,
        configure: Optional[Callable[[Any], None]] = None,
        build: Optional[Callable[[Any], None]] = None,
        filename: str = "<inline>",
    ) -> "FibsModule":
        """Create a module from plain callables, used for programmatic projects."""
        return cls(dir=dir, filename=filename, configure=configure, build=build)
