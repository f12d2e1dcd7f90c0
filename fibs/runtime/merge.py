"""Flatten, deduplicate and merge helpers used by the resolution engine.

The central rule: the import tree is flattened in depth-first pre-order
and deduplicated by name, the last visited item wins but keeps the slot of
the first occurrence.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Sequence, TypeVar

from fibs.errors import ConfigurationError, UnresolvedReferenceError
from fibs.model.descriptors import ConfigDesc, TargetDesc

T = TypeVar("T")
N = TypeVar("N")


class Entry(NamedTuple):
    """A flattened item together with the node that declared it."""

    item: Any
    owner_dir: str
    owner_module: str


def preorder(root: N, children: Callable[[N], Iterable[N]]) -> List[N]:
    """Depth-first pre-order listing of a tree."""
    out: List[N] = []
    stack = [root]
    while stack:
        node = stack.pop()
        out.append(node)
        stack.extend(reversed(list(children(node))))
    return out


def dedupe(items: Iterable[T], key: Callable[[T], str] = lambda item: item.name) -> List[T]:
    """Deduplicate by name, a later item replaces an earlier one in place."""
    out: List[T] = []
    index: Dict[str, int] = {}
    for item in items:
        name = key(item)
        if name in index:
            out[index[name]] = item
        else:
            index[name] = len(out)
            out.append(item)
    return out


def merge_unique(into: Sequence[T], src: Sequence[T]) -> List[T]:
    """Concatenate two lists dropping repeated values, first occurrence wins."""
    out: List[T] = []
    for item in [*into, *src]:
        if item not in out:
            out.append(item)
    return out


# -- config inheritance -----------------------------------------------------

_CONFIG_LISTS = (
    "cmake_includes",
    "include_directories",
    "compile_definitions",
    "compile_options",
    "link_options",
)
_CONFIG_DICTS = ("cmake_variables", "environment", "options")


def merge_config_desc(into: ConfigDesc, src: ConfigDesc) -> ConfigDesc:
    """Merge ``src`` over ``into``.

    Scalars set on ``src`` win, lists are merged without duplicates and
    dicts are merged with ``src`` keys winning. ``compilers`` is replaced
    as a whole when ``src`` sets any. The name of ``into`` is kept.
    """
    data = dict(into)
    for field_name in ConfigDesc.model_fields:
        if field_name == "name":
            continue
        value = getattr(src, field_name)
        if field_name in _CONFIG_LISTS:
            data[field_name] = merge_unique(data[field_name], value)
        elif field_name in _CONFIG_DICTS:
            data[field_name] = {**data[field_name], **value}
        elif field_name == "compilers":
            if value:
                data[field_name] = list(value)
        elif value is not None:
            data[field_name] = value
    return ConfigDesc.model_construct(**data)


def inherit_chain(
    desc: ConfigDesc, descs: Mapping[str, ConfigDesc], max_depth: int = 8
) -> List[ConfigDesc]:
    """Return the inheritance chain of ``desc``, most distant ancestor first.

    Raises:
        UnresolvedReferenceError: If a config inherits from an unknown config.
        ConfigurationError: If the chain reaches ``max_depth`` (likely a cycle).
    """
    chain = [desc]
    current = desc
    while current.inherits is not None:
        if len(chain) >= max_depth:
            raise ConfigurationError(f"circular inheritance in config '{desc.name}'?")
        parent = descs.get(current.inherits)
        if parent is None:
            raise UnresolvedReferenceError("config", current.inherits, f"config '{current.name}'")
        chain.append(parent)
        current = parent
    chain.reverse()
    return chain


# -- target attribute injection --------------------------------------------

_TARGET_LISTS = (
    "sources",
    "deps",
    "libs",
    "frameworks",
    "jobs",
    "include_directories",
    "compile_definitions",
    "compile_options",
    "link_options",
)


def merge_target_desc(injected: TargetDesc, user: TargetDesc) -> TargetDesc:
    """Merge the injector result with the user's own target declaration.

    Lists concatenate with injector items first, ``props`` merges shallowly
    with user keys winning, scalars come from the user when set.
    """
    data = dict(user)
    for field_name in _TARGET_LISTS:
        data[field_name] = [*getattr(injected, field_name), *getattr(user, field_name)]
    data["props"] = {**injected.props, **user.props}
    if user.dir is None:
        data["dir"] = injected.dir
    return TargetDesc.model_construct(**data)
