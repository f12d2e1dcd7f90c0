"""Version control collaborators."""

from fibs.vcs.git import DEFAULT_REF, GitClient, VersionControl

__all__ = ["DEFAULT_REF", "GitClient", "VersionControl"]
