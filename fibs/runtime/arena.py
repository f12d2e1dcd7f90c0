"""Ordered name-indexed storage for resolved fragments."""

from __future__ import annotations

from typing import Dict, Generic, Iterable, Iterator, List, Optional, TypeVar

from fibs.errors import UnresolvedReferenceError
from fibs.model.resolved import ArenaRef

T = TypeVar("T")


class Arena(Generic[T]):
    """Resolved items of one fragment kind, addressable by name or handle.

    Items keep the order in which they were added. ``ref(name)`` hands out
    an ``ArenaRef`` that stays valid for the lifetime of the arena.
    """

    def __init__(self, kind: str, items: Iterable[T] = ()) -> None:
        self.kind = kind
        self._items: List[T] = []
        self._index: Dict[str, int] = {}
        for item in items:
            self.add(item)

    def add(self, item: T) -> ArenaRef:
        name = getattr(item, "name")
        if name in self._index:
            index = self._index[name]
            self._items[index] = item
        else:
            index = len(self._items)
            self._items.append(item)
            self._index[name] = index
        return ArenaRef(self.kind, index, name)

    def find(self, name: Optional[str]) -> Optional[T]:
        if name is None or name not in self._index:
            return None
        return self._items[self._index[name]]

    def find_ref(self, name: Optional[str]) -> Optional[ArenaRef]:
        if name is None or name not in self._index:
            return None
        return ArenaRef(self.kind, self._index[name], name)

    def ref(self, name: str, referrer: str = "") -> ArenaRef:
        found = self.find_ref(name)
        if found is None:
            raise UnresolvedReferenceError(self.kind, name, referrer)
        return found

    def get(self, ref: ArenaRef) -> T:
        if ref.kind != self.kind:
            raise ValueError(f"{ref.kind} handle used on {self.kind} arena")
        return self._items[ref.index]

    def names(self) -> List[str]:
        return [getattr(item, "name") for item in self._items]

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._index
