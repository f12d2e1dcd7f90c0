"""Builtin job templates."""

from __future__ import annotations

import logging
import os
import shutil
from typing import Any, Dict, List

from fibs.model.resolved import Config, Target
from fibs.model.results import ValidationResult
from fibs.runtime.jobs import Job
from fibs.runtime.paths import AliasScope, build_alias_map, resolve_path
from fibs.utils.validation import validate_args

logger = logging.getLogger("fibs.builtins.jobs")

COPYFILES_ARGS = {
    "src_dir": ("str", True),
    "dst_dir": ("str", True),
    "files": ("str[]", False),
}


def copyfiles_validate(args: Dict[str, Any]) -> ValidationResult:
    return validate_args(args, COPYFILES_ARGS)


def copy_files(inputs: List[str], outputs: List[str], args: Dict[str, Any]) -> None:
    for src, dst in zip(inputs, outputs):
        os.makedirs(os.path.dirname(dst), exist_ok=True)
        logger.debug("copy %s => %s", src, dst)
        shutil.copyfile(src, dst)


def copyfiles_build(project: Any, config: Config, target: Target, args: Dict[str, Any]) -> Job:
    """Copy files from the target's source directory into the dist directory.

    Args:
        args: ``files`` relative to ``src_dir`` (default: the target
            directory), copied to ``dst_dir`` (default: ``@targetassets``).
    """
    aliases = build_alias_map(
        project.layout,
        AliasScope.TARGET,
        target.owner_dir or target.dir,
        config_name=config.name,
        platform=config.platform,
        target_name=target.name,
        target_type=target.type,
        target_dir=target.dir,
    )
    src_dir = resolve_path(aliases, target.dir, args.get("src_dir"))
    dst_dir = resolve_path(aliases, "@targetassets", args.get("dst_dir"))
    files = args["files"]
    return Job(
        name="copyfiles",
        inputs=[f"{src_dir}/{name}" for name in files],
        outputs=[f"{dst_dir}/{name}" for name in files],
        func=copy_files,
        args=dict(args),
    )


JOBS = [
    {
        "name": "copyfiles",
        "help": "copy files into the target's asset directory (args: files, src_dir?, dst_dir?)",
        "validator": copyfiles_validate,
        "build": copyfiles_build,
    },
]
