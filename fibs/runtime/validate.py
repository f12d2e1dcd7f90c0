"""Consistency checks on resolved targets."""

from __future__ import annotations

import logging
import os
from typing import Any, List

from fibs.errors import ConfigurationError
from fibs.model.enums import TargetType
from fibs.model.resolved import Target, TargetBuckets
from fibs.model.results import ValidationResult
from fibs.runtime.jobs import validate_target_job

logger = logging.getLogger("fibs.runtime.validate")

_BUCKET_FIELDS = {
    "include_directories": "include directories",
    "compile_definitions": "compile definitions",
    "compile_options": "compile options",
    "link_options": "link options",
}


def validate_target(project: Any, target: Target) -> ValidationResult:
    """Validate a resolved target against the rest of the project.

    Checks:
    1. Interface targets have no sources and only interface-scoped flags.
    2. Jobs reference known job templates with valid args.
    3. Dependencies exist and are not executables.
    4. Library names do not collide with target names.
    5. Source directory, source files and include directories exist.

    Args:
        project: Project in the generate phase.
        target: Target to check.

    Returns:
        ValidationResult with one hint per problem.
    """
    res = ValidationResult.ok()

    if target.type == TargetType.INTERFACE:
        if target.sources:
            res.add("target type 'interface' cannot have source files attached")
        for field_name, label in _BUCKET_FIELDS.items():
            buckets: TargetBuckets = getattr(target, field_name)
            if buckets.private or buckets.public:
                res.add(f"interface targets must only define interface {label}")

    for target_job in target.jobs:
        res.extend(validate_target_job(project, target, target_job))

    for dep in target.deps:
        dep_target = project.find_target(dep)
        if dep_target is None:
            res.add(f"dependency target not found: {dep}")
        elif dep_target.type.is_executable:
            res.add(f"dependency target is an executable: {dep}")

    for lib in target.libs:
        if project.find_target(lib) is not None:
            res.add(f"library name collides with target: {lib}")

    if not os.path.isdir(target.dir):
        res.add(f"src dir not found: {target.dir}")
    else:
        for src in target.sources:
            if not os.path.isfile(src):
                res.add(f"src file not found: {src}")

    missing: List[str] = []
    for include in target.include_directories.all():
        if not os.path.isdir(include.dir) and include.dir not in missing:
            missing.append(include.dir)
    for path in missing:
        res.add(f"include directory not found: {path}")
    return res


def check_targets(project: Any, abort_on_error: bool = False) -> bool:
    """Validate every target, logging problems.

    Returns:
        bool: True if all targets are valid.

    Raises:
        ConfigurationError: If ``abort_on_error`` is set and a target is invalid.
    """
    all_valid = True
    for target in project.targets():
        res = validate_target(project, target)
        if res.valid:
            continue
        all_valid = False
        msg = "\n  ".join([f"target '{target.name}' not valid:", *res.hints])
        if abort_on_error:
            raise ConfigurationError(msg)
        logger.warning("%s", msg)
    return all_valid
