"""Import fetching: link overrides, cache directories and shallow clones."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Sequence

from fibs.errors import ConfigurationError, FetchError, RecoverableError, SettingsError
from fibs.model.descriptors import ImportDesc
from fibs.runtime.paths import ProjectLayout
from fibs.utils.fsutil import dir_exists, read_string_table, remove_tree, write_json_atomic
from fibs.utils.validation import validate_git_url
from fibs.vcs.git import DEFAULT_REF, VersionControl

logger = logging.getLogger("fibs.runtime.fetcher")


@dataclass
class FetchResult:
    """Outcome of ``ImportFetcher.ensure``.

    Attributes:
        valid: Whether ``dir`` holds a usable working copy.
        dir: Linked directory or cache directory of the import.
        errors: Soft errors explaining an invalid result.
        linked: Whether ``dir`` came from the link table.
    """

    valid: bool
    dir: str
    errors: List[RecoverableError] = field(default_factory=list)
    linked: bool = False


def import_cache_dir(imports_dir: str, url: str, ref: Optional[str]) -> str:
    """Cache directory of an import: the repository name plus ``@ref``.

    The default ref is not embedded, so ``HEAD`` and no ref share a
    directory while other refs of the same repository coexist.
    """
    tail = url.rstrip("/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]
    name = PurePosixPath(tail).stem or tail
    if ref and ref != DEFAULT_REF:
        name = f"{name}@{ref.replace('/', '_')}"
    return (Path(imports_dir) / name).as_posix()


class LinkTable:
    """The persisted ``links.json`` mapping import name to local directory."""

    def __init__(self, path: str) -> None:
        self.path = path

    def load(self) -> Dict[str, str]:
        try:
            return read_string_table(self.path)
        except (ValueError, OSError) as exc:
            raise SettingsError(f"failed to load '{self.path}': {exc}") from exc

    def save(self, links: Dict[str, str]) -> None:
        try:
            write_json_atomic(self.path, links)
        except OSError as exc:
            raise SettingsError(f"failed to write '{self.path}': {exc}") from exc

    def get(self, name: str) -> Optional[str]:
        return self.load().get(name)


class ImportFetcher:
    """Ensures local working copies of imports exist.

    Args:
        layout: Project layout, provides the imports dir and links file.
        vcs: Version control used for clones and updates.
        clone_depth: History depth of clones.
        workers: Maximum concurrent fetches in ``prefetch``.
    """

    def __init__(
        self,
        layout: ProjectLayout,
        vcs: VersionControl,
        clone_depth: int = 1,
        workers: int = 4,
    ) -> None:
        self.layout = layout
        self.vcs = vcs
        self.clone_depth = clone_depth
        self.workers = workers
        self.links = LinkTable(layout.links_path())

    def cache_dir(self, url: str, ref: Optional[str]) -> str:
        return import_cache_dir(self.layout.imports_dir(), url, ref)

    def ensure(self, desc: ImportDesc, links: Optional[Dict[str, str]] = None) -> FetchResult:
        """Make sure a working copy of ``desc`` exists.

        Args:
            desc: The import to fetch.
            links: Preloaded link table, loaded from disk when None.

        Returns:
            FetchResult, invalid results carry a FetchError.
        """
        if links is None:
            links = self.links.load()
        linked_dir = links.get(desc.name)
        if linked_dir is not None:
            if dir_exists(linked_dir):
                return FetchResult(True, linked_dir, linked=True)
            msg = f"import '{desc.name}' is linked to missing directory '{linked_dir}'"
            logger.warning(msg)
            return FetchResult(False, linked_dir, [FetchError(msg)], linked=True)

        repo_dir = self.cache_dir(desc.url, desc.ref)
        if dir_exists(repo_dir):
            return FetchResult(True, repo_dir)
        return self._clone(desc, repo_dir)

    def _clone(self, desc: ImportDesc, repo_dir: str) -> FetchResult:
        if not validate_git_url(desc.url):
            msg = f"import '{desc.name}' has an invalid URL: {desc.url}"
            logger.warning(msg)
            return FetchResult(False, repo_dir, [FetchError(msg)])
        if not self.vcs.clone(desc.url, repo_dir, desc.ref, self.clone_depth):
            # a half-initialized directory would look fetched on the next run
            remove_tree(repo_dir)
            msg = f"failed to clone '{desc.url}' into '{repo_dir}'"
            logger.warning(msg)
            return FetchResult(False, repo_dir, [FetchError(msg)])
        return FetchResult(True, repo_dir)

    def prefetch(self, descs: Sequence[ImportDesc]) -> Dict[str, FetchResult]:
        """Fetch sibling imports concurrently.

        Imports sharing a cache directory are fetched once. The result maps
        import name to FetchResult, callers merge in declared order.
        """
        if not descs:
            return {}
        links = self.links.load()
        by_key: Dict[str, ImportDesc] = {}
        key_of: Dict[str, str] = {}
        for desc in descs:
            key = links.get(desc.name) or self.cache_dir(desc.url, desc.ref)
            key_of[desc.name] = key
            by_key.setdefault(key, desc)

        if len(by_key) == 1 or self.workers <= 1:
            fetched = {key: self.ensure(desc, links) for key, desc in by_key.items()}
        else:
            with ThreadPoolExecutor(max_workers=min(self.workers, len(by_key))) as pool:
                futures = {
                    key: pool.submit(self.ensure, desc, links) for key, desc in by_key.items()
                }
                fetched = {key: future.result() for key, future in futures.items()}
        return {desc.name: fetched[key_of[desc.name]] for desc in descs}

    def link(self, name: str, dir: str) -> Optional[str]:
        """Link import ``name`` to an existing local directory.

        Returns:
            The previously linked directory, if any.
        """
        if not dir_exists(dir):
            raise ConfigurationError(f"directory '{dir}' does not exist")
        links = self.links.load()
        previous = links.get(name)
        links[name] = os.path.abspath(dir)
        self.links.save(links)
        logger.info("linked import '%s' to '%s'", name, links[name])
        return previous

    def unlink(self, name: str) -> Optional[str]:
        """Remove the link of import ``name``, returning the old directory."""
        links = self.links.load()
        previous = links.pop(name, None)
        self.links.save(links)
        if previous is None:
            logger.info("import '%s' was not linked", name)
        else:
            logger.info("unlinked import '%s' from '%s'", name, previous)
        return previous

    def is_linked(self, name: str) -> bool:
        return self.links.get(name) is not None

    def update(self, desc: ImportDesc, clean: bool = False) -> bool:
        """Update the working copy of an already fetched import.

        Linked imports are left alone. With ``clean`` the cache directory is
        deleted and cloned from scratch.

        Returns:
            bool: True on success.
        """
        if self.is_linked(desc.name):
            logger.warning("skipping '%s': import is a linked directory", desc.name)
            return True
        repo_dir = self.cache_dir(desc.url, desc.ref)
        if clean or not dir_exists(repo_dir):
            if remove_tree(repo_dir):
                logger.info("deleted %s", repo_dir)
            return self._clone(desc, repo_dir).valid
        logger.info("updating %s", repo_dir)
        return self.vcs.update(repo_dir, desc.ref, force=True)
