"""
Query results over an advisory index.

A Selection is materialized at query time: filtering and sorting happen
once and the result is a fresh tuple, so a Selection stays valid after the
index it came from has been replaced.
"""
from typing import Callable, Iterable, Iterator, Optional, Tuple

from .model import Advisory, AdvisoryDocument, EventKind

Predicate = Callable[[AdvisoryDocument], bool]


class Selection:
    """Immutable ordered sequence of (package name, document) pairs."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Tuple[str, AdvisoryDocument]] = ()):
        self._items: Tuple[Tuple[str, AdvisoryDocument], ...] = tuple(
            sorted(items, key=lambda item: item[0])
        )

    @classmethod
    def of(cls, documents: Iterable[AdvisoryDocument], predicate: Optional[Predicate] = None) -> "Selection":
        return cls(
            (doc.package, doc) for doc in documents
            if predicate is None or predicate(doc)
        )

    def where(self, predicate: Predicate) -> "Selection":
        """Narrow this selection further."""
        return Selection((name, doc) for name, doc in self._items if predicate(doc))

    def names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self._items)

    def documents(self) -> Tuple[AdvisoryDocument, ...]:
        return tuple(doc for _, doc in self._items)

    def advisory_rows(self) -> Iterator[Tuple[str, Advisory]]:
        """Yield (package, advisory) pairs in canonical export order."""
        for name, doc in self._items:
            for advisory in doc.advisories:
                yield name, advisory

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Tuple[str, AdvisoryDocument]]:
        return iter(self._items)

    def __getitem__(self, i):
        return self._items[i]

    def __repr__(self) -> str:
        return f"Selection({list(self.names())!r})"


def by_package(*names: str) -> Predicate:
    wanted = frozenset(names)
    return lambda doc: doc.package in wanted


def has_advisory(vulnerability_id: str) -> Predicate:
    """Match documents carrying the vulnerability as an id or an alias."""
    return lambda doc: doc.find(vulnerability_id) is not None


def latest_status(*kinds: EventKind) -> Predicate:
    """Match documents where any advisory's latest event is one of kinds."""
    wanted = frozenset(kinds)

    def predicate(doc: AdvisoryDocument) -> bool:
        return any(
            adv.latest is not None and adv.latest.kind in wanted
            for adv in doc.advisories
        )

    return predicate
