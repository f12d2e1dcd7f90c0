"""Command line tools fibs depends on, checked by ``fibs diag tools``."""

from __future__ import annotations

import shutil
from typing import Any, Callable, Dict, List


def _which(executable: str) -> Callable[[], bool]:
    def exists() -> bool:
        return shutil.which(executable) is not None

    return exists


TOOLS: List[Dict[str, Any]] = [
    {
        "name": "git",
        "optional": False,
        "not_found_msg": "required for fetching imports",
        "exists": _which("git"),
    },
    {
        "name": "cmake",
        "optional": False,
        "not_found_msg": "required for building projects",
        "exists": _which("cmake"),
    },
    {
        "name": "ninja",
        "optional": True,
        "not_found_msg": "required for ninja and vscode configs",
        "exists": _which("ninja"),
    },
    {
        "name": "make",
        "platforms": ["macos", "linux"],
        "optional": True,
        "not_found_msg": "required for make configs",
        "exists": _which("make"),
    },
]
