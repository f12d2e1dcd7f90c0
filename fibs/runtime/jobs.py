"""Target jobs: file generation steps that run before a target is built."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from fibs.errors import JobError
from fibs.model.descriptors import TargetJob
from fibs.model.resolved import Config, Target
from fibs.model.results import ValidationResult

logger = logging.getLogger("fibs.runtime.jobs")


@dataclass
class Job:
    """A concrete job instance built from a job template.

    Attributes:
        name: Name of the job template.
        inputs: Files the job reads.
        outputs: Files the job writes.
        args: Validated job arguments.
        func: ``func(inputs, outputs, args)`` doing the work.
        add_outputs_to_sources: Whether outputs are compiled into the target.
    """

    name: str
    inputs: List[str]
    outputs: List[str]
    func: Callable[[List[str], List[str], Dict[str, Any]], Any]
    args: Dict[str, Any] = field(default_factory=dict)
    add_outputs_to_sources: bool = False


def is_dirty(inputs: Sequence[str], outputs: Sequence[str]) -> bool:
    """Check whether ``outputs`` need to be regenerated.

    Outputs are dirty if any of them is missing or empty, or if any input
    is newer than the newest output.

    Raises:
        JobError: If an input file does not exist.
    """
    input_mtimes = []
    for path in inputs:
        try:
            input_mtimes.append(os.stat(path).st_mtime)
        except OSError as exc:
            raise JobError(f"job input not found: {path}") from exc

    newest = 0.0
    for path in outputs:
        try:
            stat = os.stat(path)
        except OSError:
            return True
        if stat.st_size == 0:
            return True
        newest = max(newest, stat.st_mtime)
    return any(mtime > newest for mtime in input_mtimes)


def validate_target_job(project: Any, target: Target, target_job: TargetJob) -> ValidationResult:
    """Check that a target job references a known template with valid args."""
    template = project.find("job", target_job.job)
    if template is None:
        return ValidationResult.fail(
            f"unknown job '{target_job.job}' in target '{target.name}' (run 'fibs list jobs')"
        )
    check = ValidationResult.coerce(template.validator(target_job.args))
    if check.valid:
        return check
    res = ValidationResult.fail(f"job '{target_job.job}' in target '{target.name}' has invalid args:")
    res.hints.extend(f"  - {hint}" for hint in check.hints)
    res.hints.append("in:")
    res.hints.extend(f"  {line}" for line in json.dumps(target_job.args, indent=2, default=str).splitlines())
    return res


def resolve_target_jobs(project: Any, config: Config, target: Target) -> List[Job]:
    """Validate the target's jobs and build concrete Job instances.

    Raises:
        JobError: If a job fails validation or its template returns garbage.
    """
    jobs = []
    for target_job in target.jobs:
        res = validate_target_job(project, target, target_job)
        if not res.valid:
            raise JobError("\n".join(res.hints))
        template = project.job(target_job.job)
        job = template.build(project, config, target, dict(target_job.args))
        if not isinstance(job, Job):
            raise JobError(f"job template '{template.name}' did not return a Job")
        jobs.append(job)
    return jobs


def run_jobs(project: Any, target: Target, config: Optional[Config] = None, force: bool = False) -> int:
    """Run the dirty jobs of ``target``.

    Returns:
        int: Number of jobs that actually ran.

    Raises:
        JobError: If a job fails.
    """
    config = config or project.active_config()
    ran = 0
    for job in resolve_target_jobs(project, config, target):
        if not force and not is_dirty(job.inputs, job.outputs):
            logger.debug("job '%s' in target '%s' is up to date", job.name, target.name)
            continue
        logger.info("running job '%s' in target '%s'", job.name, target.name)
        try:
            result = job.func(job.inputs, job.outputs, job.args)
        except Exception as exc:
            raise JobError(f"job '{job.name}' in target '{target.name}' failed: {exc}") from exc
        if result is False:
            raise JobError(f"job '{job.name}' in target '{target.name}' failed")
        ran += 1
    return ran
