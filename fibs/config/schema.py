"""Engine configuration schema using Pydantic for validation.

These options tune how fibs runs (worker counts, git timeouts, file names),
they are unrelated to the build configurations a project declares.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class EngineConfig(BaseModel):
    """Options of the resolution engine.

    Attributes:
        entry_file: Conventional module file name loaded from each import.
        fibs_dir_name: State directory below the project root.
        fetch_workers: Maximum concurrent import fetches.
        load_workers: Maximum concurrent module loads inside one import.
        clone_depth: History depth for import clones.
        git_timeout: Per git command timeout in seconds.
        default_runner: Runner used by configs that name none.
        default_adapter: Adapter used by configs that name none.
        max_inherit_depth: Longest allowed config inheritance chain.
    """

    entry_file: str = "fibs.py"
    fibs_dir_name: str = ".fibs"
    fetch_workers: int = Field(default=4, ge=1, le=64)
    load_workers: int = Field(default=4, ge=1, le=64)
    clone_depth: int = Field(default=1, ge=1)
    git_timeout: int = Field(default=300, ge=1, le=3600)
    default_runner: str = "native"
    default_adapter: str = "cmake"
    max_inherit_depth: int = Field(default=8, ge=1, le=64)
    default_config: Optional[str] = None

    model_config = {"extra": "allow"}

    @field_validator("entry_file", "fibs_dir_name")
    @classmethod
    def validate_plain_name(cls, v: str) -> str:
        """File and directory names must not contain path separators."""
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"'{v}' must be a plain file or directory name")
        return v

    @classmethod
    def default(cls) -> "EngineConfig":
        return cls()
