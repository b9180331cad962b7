"""
Error kinds raised by the advisory index, importer and exporter.

All errors derive from AdvisoryError so callers at the entry point can
handle the whole family in one place.
"""
from datetime import datetime
from typing import Iterable, Optional, Sequence


class AdvisoryError(Exception):
    """Base class for advisory data errors."""


class EventOrderError(AdvisoryError):
    """An event would rewrite history (not strictly after the last event)."""

    def __init__(self, timestamp: datetime, last_timestamp: datetime):
        self.timestamp = timestamp
        self.last_timestamp = last_timestamp
        super().__init__(
            f"event at {timestamp.isoformat()} is not after "
            f"last recorded event at {last_timestamp.isoformat()}"
        )


class ParseError(AdvisoryError):
    """A document could not be parsed into the advisory model."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"unable to parse advisory document {path!r}: {cause}")


class DuplicatePackageError(AdvisoryError):
    """Two documents claim the same package name."""

    def __init__(self, package: str, paths: Sequence[str] = ()):
        self.package = package
        self.paths = list(paths)
        where = f" (found in {', '.join(self.paths)})" if self.paths else ""
        super().__init__(f"duplicate advisory document for package {package!r}{where}")


class ImportConflictError(AdvisoryError):
    """An imported event conflicts with the recorded history of an advisory."""

    def __init__(
        self,
        package: str,
        vulnerability_id: str,
        timestamp: datetime,
        last_timestamp: Optional[datetime],
    ):
        self.package = package
        self.vulnerability_id = vulnerability_id
        self.timestamp = timestamp
        self.last_timestamp = last_timestamp
        super().__init__(
            f"import conflict for {package}/{vulnerability_id}: event at "
            f"{timestamp.isoformat()} is not after last recorded event at "
            f"{last_timestamp.isoformat() if last_timestamp else 'unknown'}"
        )


class UnsupportedFormatError(AdvisoryError, ValueError):
    """Unknown import/export format selector."""

    def __init__(self, fmt: str, valid: Iterable[str]):
        self.format = fmt
        self.valid = list(valid)
        super().__init__(
            f"unrecognized format: {fmt!r}. Valid formats are: [{', '.join(self.valid)}]"
        )
