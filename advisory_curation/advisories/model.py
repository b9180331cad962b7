"""
Value types for advisory documents.

An AdvisoryDocument holds the advisories for one package. Each Advisory
tracks one vulnerability through an append-only EventLog. Events are a
closed tagged union: an EventKind plus a read-only payload mapping.

Design decisions:
- Frozen dataclasses and tuples everywhere, so a built index can be shared
  between threads without copying
- EventLog exposes append() only; history can grow but never be edited
- Payloads are MappingProxyType views over private dicts
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .errors import EventOrderError

SCHEMA_VERSION = "2.0.2"


class EventKind(Enum):
    """Event types recognized in advisory histories."""
    DETECTION = "detection"
    TRUE_POSITIVE_DETERMINATION = "true-positive-determination"
    FALSE_POSITIVE_DETERMINATION = "false-positive-determination"
    FIXED = "fixed"
    FIX_NOT_PLANNED = "fix-not-planned"
    ANALYSIS_NOT_PLANNED = "analysis-not-planned"
    PENDING_UPSTREAM_FIX = "pending-upstream-fix"


DETECTION_TYPES = frozenset({"manual", "nvdapi", "scan"})

FALSE_POSITIVE_TYPES = frozenset({
    "vulnerability-record-analysis-contested",
    "component-vulnerability-mismatch",
    "vulnerable-code-version-not-used",
    "vulnerable-code-not-included-in-package",
    "vulnerable-code-not-in-execution-path",
    "vulnerable-code-cannot-be-controlled-by-adversary",
    "inline-mitigations-exist",
})

# Status names used in tabular exports, keyed by the latest event kind
STATUS_BY_KIND: Dict[EventKind, str] = {
    EventKind.DETECTION: "under_investigation",
    EventKind.TRUE_POSITIVE_DETERMINATION: "affected",
    EventKind.FALSE_POSITIVE_DETERMINATION: "not_affected",
    EventKind.FIXED: "fixed",
    EventKind.FIX_NOT_PLANNED: "fix_not_planned",
    EventKind.ANALYSIS_NOT_PLANNED: "analysis_not_planned",
    EventKind.PENDING_UPSTREAM_FIX: "pending_upstream_fix",
}


def ensure_utc(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC and normalize aware ones to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """Render a timestamp as RFC 3339 in UTC with a trailing Z."""
    ts = ensure_utc(ts)
    text = ts.strftime("%Y-%m-%dT%H:%M:%S")
    if ts.microsecond:
        text += f".{ts.microsecond:06d}"
    return text + "Z"


@dataclass(frozen=True)
class Event:
    """One recorded step in an advisory's lifecycle."""
    kind: EventKind
    timestamp: datetime
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @property
    def status(self) -> str:
        return STATUS_BY_KIND[self.kind]

    @property
    def justification(self) -> str:
        """Short human-facing reason carried by the event, or ''."""
        if self.kind == EventKind.FALSE_POSITIVE_DETERMINATION:
            return str(self.data.get("type", ""))
        if self.kind in (EventKind.DETECTION, EventKind.FIXED):
            return ""
        return str(self.data.get("note", "") or "")


class EventLog:
    """
    Immutable, strictly time-ordered sequence of events.

    append() returns a new log; the receiver is never modified.
    """

    __slots__ = ("_events",)

    def __init__(self, events=()):
        log: Tuple[Event, ...] = ()
        for event in events:
            _check_order(log, event)
            log = log + (event,)
        self._events = log

    def append(self, event: Event) -> "EventLog":
        _check_order(self._events, event)
        new = EventLog()
        new._events = self._events + (event,)
        return new

    @property
    def latest(self) -> Optional[Event]:
        return self._events[-1] if self._events else None

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, i):
        return self._events[i]

    def __contains__(self, event) -> bool:
        return event in self._events

    def __eq__(self, other) -> bool:
        if not isinstance(other, EventLog):
            return NotImplemented
        return self._events == other._events

    def __repr__(self) -> str:
        return f"EventLog({list(self._events)!r})"


def _check_order(events: Tuple[Event, ...], event: Event):
    if events and event.timestamp <= events[-1].timestamp:
        raise EventOrderError(event.timestamp, events[-1].timestamp)


@dataclass(frozen=True)
class Advisory:
    """Lifecycle record of one vulnerability for one package."""
    id: str
    events: EventLog
    aliases: Tuple[str, ...] = ()

    @property
    def latest(self) -> Optional[Event]:
        return self.events.latest

    def with_event(self, event: Event) -> "Advisory":
        return Advisory(id=self.id, events=self.events.append(event), aliases=self.aliases)


@dataclass(frozen=True)
class AdvisoryDocument:
    """All advisories recorded for a single package."""
    package: str
    advisories: Tuple[Advisory, ...] = ()
    schema_version: str = SCHEMA_VERSION

    def get(self, vulnerability_id: str) -> Optional[Advisory]:
        for advisory in self.advisories:
            if advisory.id == vulnerability_id:
                return advisory
        return None

    def find(self, vulnerability_id: str) -> Optional[Advisory]:
        """Look up an advisory by id or by any of its aliases."""
        for advisory in self.advisories:
            if advisory.id == vulnerability_id or vulnerability_id in advisory.aliases:
                return advisory
        return None
