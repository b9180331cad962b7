"""
Import exported advisory bundles and merge them into an existing index.

Merge rules per incoming document:
- Package absent from the existing index: insert the document wholesale
- Package present: merge advisory by advisory (matched on id)
  - New advisories are appended after the existing ones
  - Existing advisories accept only events strictly later than their
    last recorded event; anything else is an attempt to rewrite history
    and raises ImportConflictError

merge() is a pure function: it builds a new index and returns it only when
every document merged cleanly, so a failed merge leaves nothing behind.
IndexHolder provides the single-writer swap for callers that share an
index between threads.
"""
import logging
import threading
from enum import Enum
from typing import Dict, List, Optional, Tuple

import yaml

from .codec import decode_document
from .errors import EventOrderError, ImportConflictError, ParseError, UnsupportedFormatError
from .exporter import FORMAT_YAML
from .index import AdvisoryIndex
from .model import Advisory, AdvisoryDocument

logger = logging.getLogger(__name__)

IMPORT_FORMATS = (FORMAT_YAML,)
BUNDLE_PATH = "<bundle>"


class MergeStrategy(Enum):
    """How incoming events are reconciled with recorded history."""
    # Every incoming event must be newer than the recorded history
    STRICT = "strict"
    # Events already present in the history are skipped, the rest must be newer
    IDEMPOTENT = "idempotent"


def parse_bundle(data: bytes, fmt: str = FORMAT_YAML) -> AdvisoryIndex:
    """
    Parse an exported bundle into a transient AdvisoryIndex.

    Args:
        data: Raw bundle bytes
        fmt: Bundle format; only YAML bundles carry full history

    Raises:
        UnsupportedFormatError: Before parsing, if fmt is not importable
        ParseError: If the bundle or any record in it is malformed
        DuplicatePackageError: If the bundle lists a package twice
    """
    if fmt not in IMPORT_FORMATS:
        raise UnsupportedFormatError(fmt, IMPORT_FORMATS)

    try:
        raw = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise ParseError(BUNDLE_PATH, e) from e

    if raw is None:
        raw = []
    if not isinstance(raw, list):
        raise ParseError(BUNDLE_PATH, ValueError("bundle must be a sequence of documents"))

    located = [
        (f"{BUNDLE_PATH}[{i}]", decode_document(record, f"{BUNDLE_PATH}[{i}]"))
        for i, record in enumerate(raw)
    ]
    logger.debug(f"Parsed bundle with {len(located)} documents")
    return AdvisoryIndex._from_located(located)


def merge(
    existing: AdvisoryIndex,
    incoming: AdvisoryIndex,
    strategy: MergeStrategy = MergeStrategy.STRICT,
) -> AdvisoryIndex:
    """
    Merge incoming documents into existing, returning a new index.

    Raises:
        ImportConflictError: If an incoming event is not strictly after the
            latest recorded event of the same advisory. existing is unchanged.
    """
    merged: Dict[str, AdvisoryDocument] = {doc.package: doc for doc in existing}
    inserted = updated = 0

    for incoming_doc in incoming:
        current = merged.get(incoming_doc.package)
        if current is None:
            merged[incoming_doc.package] = incoming_doc
            inserted += 1
            continue

        result = _merge_document(current, incoming_doc, strategy)
        if result != current:
            merged[incoming_doc.package] = result
            updated += 1

    logger.info(f"Merged bundle: {inserted} packages inserted, {updated} updated")
    return AdvisoryIndex.from_documents(merged.values())


def _merge_document(
    current: AdvisoryDocument,
    incoming: AdvisoryDocument,
    strategy: MergeStrategy,
) -> AdvisoryDocument:
    advisories: List[Advisory] = list(current.advisories)
    positions = {adv.id: i for i, adv in enumerate(advisories)}

    for incoming_adv in incoming.advisories:
        pos = positions.get(incoming_adv.id)
        if pos is None:
            positions[incoming_adv.id] = len(advisories)
            advisories.append(incoming_adv)
            continue
        advisories[pos] = _merge_advisory(current.package, advisories[pos], incoming_adv, strategy)

    return AdvisoryDocument(
        package=current.package,
        advisories=tuple(advisories),
        schema_version=current.schema_version,
    )


def _merge_advisory(
    package: str,
    current: Advisory,
    incoming: Advisory,
    strategy: MergeStrategy,
) -> Advisory:
    events = current.events
    for event in incoming.events:
        if strategy == MergeStrategy.IDEMPOTENT and event in current.events:
            continue
        try:
            events = events.append(event)
        except EventOrderError as e:
            raise ImportConflictError(package, current.id, e.timestamp, e.last_timestamp) from e

    aliases: Tuple[str, ...] = current.aliases + tuple(
        a for a in dict.fromkeys(incoming.aliases) if a not in current.aliases
    )

    if events is current.events and aliases == current.aliases:
        return current
    return Advisory(id=current.id, events=events, aliases=aliases)


class IndexHolder:
    """
    Shared reference to the live index.

    Readers take `current` and work on that snapshot. Writers go through
    apply(), which merges under a lock and swaps the reference in a single
    assignment, so readers see either the old or the new index.
    """

    def __init__(self, index: Optional[AdvisoryIndex] = None):
        self._index = index if index is not None else AdvisoryIndex()
        self._lock = threading.Lock()

    @property
    def current(self) -> AdvisoryIndex:
        return self._index

    def apply(self, incoming: AdvisoryIndex, strategy: MergeStrategy = MergeStrategy.STRICT) -> AdvisoryIndex:
        with self._lock:
            merged = merge(self._index, incoming, strategy)
            self._index = merged
            return merged

    def replace(self, index: AdvisoryIndex) -> None:
        with self._lock:
            self._index = index
