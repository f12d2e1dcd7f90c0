"""Input validation for import URLs and job arguments."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, Tuple
from urllib.parse import urlparse

from fibs.model.results import ValidationResult

logger = logging.getLogger("fibs.utils.validation")

# Allowed URL schemes for imports
ALLOWED_SCHEMES = {"http", "https", "git", "ssh", "file"}

_SCP_LIKE = re.compile(r"^[A-Za-z0-9_.-]+@[A-Za-z0-9_.-]+:[^\s]+$")
_SUSPICIOUS_CHARS = (";", "|", "&", "$", "`", "\n", "\r")


def validate_git_url(url: str) -> bool:
    """Validate an import URL before it is handed to git.

    Checks:
    1. Not empty and does not start with '-' (argument injection).
    2. No shell metacharacters.
    3. Scheme is allowed, or the URL uses scp-like ``user@host:path`` syntax.

    Args:
        url: URL string to validate.

    Returns:
        bool: True if valid, False otherwise.
    """
    if not url:
        return False

    if url.startswith("-"):
        logger.warning("URL starts with '-': %s", url)
        return False

    for char in _SUSPICIOUS_CHARS:
        if char in url:
            logger.warning("Suspicious character %r in URL: %s", char, url)
            return False

    parsed = urlparse(url)
    if not parsed.scheme:
        if _SCP_LIKE.match(url):
            return True
        logger.warning("URL has no scheme: %s", url)
        return False

    if parsed.scheme not in ALLOWED_SCHEMES:
        logger.warning("URL scheme not allowed: %s", parsed.scheme)
        return False

    return True


_ARG_TYPES: Dict[str, Tuple[type, bool]] = {
    "str": (str, False),
    "int": (int, False),
    "float": (float, False),
    "bool": (bool, False),
    "str[]": (str, True),
    "int[]": (int, True),
    "float[]": (float, True),
    "bool[]": (bool, True),
}


def _matches(value: Any, expected: type) -> bool:
    # bool is an int subclass but never a valid number argument
    if isinstance(value, bool):
        return expected is bool
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


def validate_args(args: Mapping[str, Any], expected: Mapping[str, Tuple[str, bool]]) -> ValidationResult:
    """Check job arguments against a table of expected types.

    Args:
        args: Arguments to check.
        expected: Maps argument name to ``(type_name, optional)``, where
            type_name is one of ``str``, ``int``, ``float``, ``bool`` or
            the same with a ``[]`` suffix for lists.

    Returns:
        ValidationResult listing missing, unknown and mistyped arguments.
    """
    res = ValidationResult.ok()
    for key, (_type_name, optional) in expected.items():
        if not optional and key not in args:
            res.add(f"expected required arg '{key}'")
    for key, value in args.items():
        if key not in expected:
            res.add(f"unknown arg '{key}'")
            continue
        type_name = expected[key][0]
        py_type, is_list = _ARG_TYPES[type_name]
        if is_list:
            ok = isinstance(value, list) and all(_matches(item, py_type) for item in value)
        else:
            ok = _matches(value, py_type)
        if not ok:
            res.add(f"arg '{key}' must be of type {type_name}")
    return res
