"""Project phase definitions.

Every resolution walks the same phases in order:
Initial -> Configure -> Build -> Generate.
"""

from enum import IntEnum


class ProjectPhase(IntEnum):
    """Phases of a project resolution.

    Each phase marks which project data is valid:
    - INITIAL: only host information and directories
    - CONFIGURE: imports, commands, tools, configs, settings, ...
    - BUILD: an active config and the compiler it uses
    - GENERATE: targets and flags, ready for the adapter
    """

    INITIAL = 0
    CONFIGURE = 1
    BUILD = 2
    GENERATE = 3

    def __str__(self) -> str:
        """Return human-readable phase name.

        Returns:
            str: Phase name in title case.
        """
        return self.name.title()
