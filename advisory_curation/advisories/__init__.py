"""
Advisory data layer.

Provides the advisory document model, an immutable index over advisory
documents, selections, import/merge of exported bundles and exporters.

Usage:
    from advisories import AdvisoryIndex, export_csv
    from storage import DirectoryStorage

    index = AdvisoryIndex.build(DirectoryStorage("advisories"))
    data = export_csv(index.select())
"""
from .errors import (
    AdvisoryError,
    DuplicatePackageError,
    EventOrderError,
    ImportConflictError,
    ParseError,
    UnsupportedFormatError,
)
from .model import Advisory, AdvisoryDocument, Event, EventKind, EventLog
from .selection import Selection, by_package, has_advisory, latest_status
from .index import AdvisoryIndex, write_index
from .exporter import EXPORT_FORMATS, export_csv, export_selection, export_yaml, validate_format
from .importer import IndexHolder, MergeStrategy, merge, parse_bundle

__all__ = [
    "AdvisoryError",
    "DuplicatePackageError",
    "EventOrderError",
    "ImportConflictError",
    "ParseError",
    "UnsupportedFormatError",
    "Advisory",
    "AdvisoryDocument",
    "Event",
    "EventKind",
    "EventLog",
    "Selection",
    "by_package",
    "has_advisory",
    "latest_status",
    "AdvisoryIndex",
    "write_index",
    "EXPORT_FORMATS",
    "export_csv",
    "export_selection",
    "export_yaml",
    "validate_format",
    "IndexHolder",
    "MergeStrategy",
    "merge",
    "parse_bundle",
]
