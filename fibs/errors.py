"""Exception hierarchy for fibs.

Two families exist:

* ``FibsError`` and its subclasses are fatal. They abort the current run
  immediately and are turned into a single ``error:`` line by the CLI.
* ``RecoverableError`` and its subclasses are soft failures. They are
  recorded on the affected import and surfaced through diagnostics, the
  tree walk continues without them.
"""

from __future__ import annotations

from typing import Sequence


class FibsError(Exception):
    """Base class for fatal errors."""

    pass


class PhaseError(FibsError):
    """A project accessor was called before its phase was reached."""

    def __init__(self, accessor: str, required: object, current: object) -> None:
        self.accessor = accessor
        self.required = required
        self.current = current
        super().__init__(
            f"'{accessor}' requires project phase {required!s} or later "
            f"(current phase: {current!s})"
        )


class DuplicateNameError(FibsError):
    """The same name was registered twice where names must be unique."""

    def __init__(self, kind: str, name: str, where: str = "") -> None:
        self.kind = kind
        self.name = name
        suffix = f" ({where})" if where else ""
        super().__init__(f"duplicate {kind}: '{name}'{suffix}")


class UnresolvedReferenceError(FibsError):
    """A named cross-reference (config -> runner, ...) has no target."""

    def __init__(self, kind: str, name: str, referrer: str = "") -> None:
        self.kind = kind
        self.name = name
        prefix = f"{referrer} references " if referrer else ""
        super().__init__(f"{prefix}unknown {kind} '{name}'")


class UnknownAliasError(FibsError):
    """A path contained an alias token not present in the alias map."""

    def __init__(self, alias: str, known: Sequence[str] = ()) -> None:
        self.alias = alias
        hint = f" (known aliases: {', '.join(sorted(known))})" if known else ""
        super().__init__(f"unknown path alias '{alias}'{hint}")


class ImportCycleError(FibsError):
    """An import resolves to a directory already on the active import chain."""

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = list(chain)
        super().__init__("import cycle detected: " + " -> ".join(self.chain))


class ConfigurationError(FibsError):
    """Invalid declarations or project setup."""

    pass


class SettingsError(FibsError):
    """The persisted settings or links file is unreadable or unwritable."""

    pass


class JobError(FibsError):
    """A target job failed validation or execution."""

    pass


class RecoverableError(Exception):
    """Base class for soft errors recorded per import."""

    pass


class FetchError(RecoverableError):
    """An import could not be fetched or its linked directory is missing."""

    pass


class ModuleLoadError(RecoverableError):
    """A module file failed to load."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"failed to load '{path}': {cause}")


class ModuleValidationError(RecoverableError):
    """A module file loaded but does not have the expected shape."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"invalid module '{path}': {reason}")


class ModuleConfigureError(RecoverableError):
    """An imported module's configure function raised."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"configure() in '{path}' failed: {cause}")


__all__ = [
    "FibsError",
    "PhaseError",
    "DuplicateNameError",
    "UnresolvedReferenceError",
    "UnknownAliasError",
    "ImportCycleError",
    "ConfigurationError",
    "SettingsError",
    "JobError",
    "RecoverableError",
    "FetchError",
    "ModuleLoadError",
    "ModuleValidationError",
    "ModuleConfigureError",
]
