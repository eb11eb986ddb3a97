"""Insertion-ordered, duplicate-suppressing collection (no Pants dependencies)."""

from __future__ import annotations

from typing import Generic, Hashable, Iterable, Iterator, TypeVar

T = TypeVar("T", bound=Hashable)


class OrderedSet(Generic[T]):
    """A sequence plus a membership index.

    ``add`` keeps the first occurrence of a value and ignores later ones, so
    iteration order is exactly the order in which values were first seen.
    """

    def __init__(self, items: Iterable[T] = ()):
        self._items: list[T] = []
        self._seen: set[T] = set()
        for item in items:
            self.add(item)

    def add(self, item: T) -> bool:
        """Add ``item``; return True if it was not already present."""
        if item in self._seen:
            return False
        self._seen.add(item)
        self._items.append(item)
        return True

    def __contains__(self, item: object) -> bool:
        return item in self._seen

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"OrderedSet({self._items!r})"

    def to_list(self) -> list[T]:
        return list(self._items)
