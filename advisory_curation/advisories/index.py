"""
Immutable, queryable collection of advisory documents.

An AdvisoryIndex is built from a storage adapter in two phases:
1. Parse every document independently (optionally on a worker pool)
2. Run one sequential pass that rejects duplicate package names

Construction either yields a fully valid index or raises; there is no
partially built index. Once built, an index never changes. Imports produce
a new index value (see importer.merge).
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from storage.base import StorageAdapter

from .codec import document_path, dump_document, load_document
from .errors import DuplicatePackageError
from .model import AdvisoryDocument
from .selection import Selection

logger = logging.getLogger(__name__)

Predicate = Callable[[AdvisoryDocument], bool]


class AdvisoryIndex:
    """
    Immutable snapshot of advisory documents keyed by package name.

    Documents are kept in package-name ascending order so every query
    and export is deterministic.
    """

    __slots__ = ("_documents", "_by_name")

    def __init__(self, documents: Sequence[AdvisoryDocument] = ()):
        by_name: Dict[str, AdvisoryDocument] = {}
        for doc in documents:
            if doc.package in by_name:
                raise DuplicatePackageError(doc.package)
            by_name[doc.package] = doc

        self._documents: Tuple[AdvisoryDocument, ...] = tuple(
            by_name[name] for name in sorted(by_name)
        )
        self._by_name = MappingProxyType(by_name)

    @classmethod
    def build(cls, storage: StorageAdapter, max_workers: Optional[int] = None) -> "AdvisoryIndex":
        """
        Load and parse every document exposed by a storage adapter.

        Args:
            storage: Adapter enumerating and reading document paths
            max_workers: Size of the parse worker pool (None lets the
                executor choose; 1 parses sequentially)

        Returns:
            A fully validated AdvisoryIndex

        Raises:
            ParseError: If any document is malformed
            DuplicatePackageError: If two documents name the same package
        """
        paths = list(storage.list_paths())
        logger.info(f"Indexing {len(paths)} advisory documents")

        def parse(path: str) -> AdvisoryDocument:
            return load_document(storage.read(path), path)

        if max_workers == 1 or len(paths) <= 1:
            documents = [parse(p) for p in paths]
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                # map() re-raises the first failure in path order
                documents = list(pool.map(parse, paths))

        return cls._from_located(zip(paths, documents))

    @classmethod
    def from_documents(cls, documents: Iterable[AdvisoryDocument]) -> "AdvisoryIndex":
        return cls(list(documents))

    @classmethod
    def combine(cls, indices: Sequence["AdvisoryIndex"]) -> "AdvisoryIndex":
        """
        Join indices loaded from several repositories.

        Duplicate package names across repositories are rejected rather
        than resolved by a last-wins policy.
        """
        located = []
        for i, index in enumerate(indices):
            for doc in index.documents:
                located.append((f"index[{i}]", doc))
        return cls._from_located(located)

    @classmethod
    def _from_located(cls, located: Iterable[Tuple[str, AdvisoryDocument]]) -> "AdvisoryIndex":
        seen: Dict[str, str] = {}
        documents: List[AdvisoryDocument] = []
        for path, doc in located:
            if doc.package in seen:
                raise DuplicatePackageError(doc.package, [seen[doc.package], path])
            seen[doc.package] = path
            documents.append(doc)
        return cls(documents)

    @property
    def documents(self) -> Tuple[AdvisoryDocument, ...]:
        return self._documents

    @property
    def packages(self) -> Tuple[str, ...]:
        return tuple(doc.package for doc in self._documents)

    def get(self, package: str) -> Optional[AdvisoryDocument]:
        return self._by_name.get(package)

    def select(self, predicate: Optional[Predicate] = None) -> Selection:
        """Return the documents satisfying predicate, package ascending."""
        return Selection.of(self._documents, predicate)

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[AdvisoryDocument]:
        return iter(self._documents)

    def __contains__(self, package: str) -> bool:
        return package in self._by_name

    def __repr__(self) -> str:
        return f"AdvisoryIndex(packages={len(self._documents)})"


def write_index(index: AdvisoryIndex, storage: StorageAdapter, packages: Optional[Iterable[str]] = None) -> int:
    """
    Write documents back to storage as <package>.advisories.yaml.

    Args:
        index: Index to persist
        storage: Writable storage adapter
        packages: Limit the write to these packages (default: all)

    Returns:
        Number of documents written
    """
    names = index.packages if packages is None else sorted(set(packages))
    written = 0
    for name in names:
        doc = index.get(name)
        if doc is None:
            continue
        storage.write(document_path(name), dump_document(doc))
        written += 1
    logger.info(f"Wrote {written} advisory documents")
    return written
