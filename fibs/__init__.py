"""fibs - project-model build configuration for CMake.

Projects describe targets, build configs and git imports in a ``fibs.py``
file with optional ``configure(c)`` and ``build(b)`` functions. The
``ResolutionEngine`` resolves the import tree into a phased
``ProjectState``, which the cmake adapter turns into build files.
"""

__version__ = "0.1.0"

from fibs.config import EngineConfig, load_engine_config
from fibs.errors import FibsError, RecoverableError
from fibs.model.module import FibsModule
from fibs.runtime.builder import Builder, TargetBuilder
from fibs.runtime.configurer import Configurer
from fibs.runtime.engine import ResolutionEngine
from fibs.runtime.lifecycle import ProjectPhase
from fibs.runtime.project import ProjectState

__all__ = [
    "__version__",
    "Builder",
    "Configurer",
    "EngineConfig",
    "FibsError",
    "FibsModule",
    "ProjectPhase",
    "ProjectState",
    "RecoverableError",
    "ResolutionEngine",
    "TargetBuilder",
    "load_engine_config",
]
