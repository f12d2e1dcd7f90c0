"""Small value objects passed across the collaborator interfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fibs.model.enums import Compiler


@dataclass
class ValidationResult:
    """Outcome of a validator callback.

    Attributes:
        valid: Whether the validated value is acceptable.
        hints: Human readable reasons when ``valid`` is False.
    """

    valid: bool = True
    hints: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True, [])

    @classmethod
    def fail(cls, *hints: str) -> "ValidationResult":
        return cls(False, list(hints))

    @classmethod
    def coerce(cls, value: Any) -> "ValidationResult":
        """Accept the shapes user validators commonly return.

        ``ValidationResult`` is passed through, a bool becomes a result
        without hints and a ``(valid, hint)`` tuple carries the hint along.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls(value, [])
        if isinstance(value, tuple) and len(value) == 2:
            valid, hints = value
            if isinstance(hints, str):
                hints = [hints] if hints else []
            return cls(bool(valid), list(hints))
        raise TypeError(f"validator returned unsupported value: {value!r}")

    def add(self, hint: str) -> None:
        self.valid = False
        self.hints.append(hint)

    def extend(self, other: "ValidationResult") -> None:
        if not other.valid:
            self.valid = False
        self.hints.extend(other.hints)


@dataclass
class AdapterConfigureResult:
    compiler: Compiler


@dataclass
class AdapterBuildOptions:
    target: Optional[str] = None
    force_rebuild: bool = False


@dataclass
class RunOptions:
    """Options for running a command line tool.

    Attributes:
        args: Command line arguments.
        cwd: Working directory, the current one when None.
        capture: Capture stdout/stderr instead of inheriting them.
        show_cmd: Log the command line before running it.
        check: Raise when the tool exits with a non-zero code.
        env: Extra environment variables.
    """

    args: List[str] = field(default_factory=list)
    cwd: Optional[str] = None
    capture: bool = False
    show_cmd: bool = True
    check: bool = False
    env: Dict[str, str] = field(default_factory=dict)


@dataclass
class RunResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""
