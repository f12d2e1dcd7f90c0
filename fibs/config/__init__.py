"""Engine configuration schema and loading."""

from .loader import load_engine_config
from .schema import EngineConfig

__all__ = ["EngineConfig", "load_engine_config"]
