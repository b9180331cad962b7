"""
Conversion between advisory YAML documents and the advisory model.

decode_document() validates a raw mapping against the document schema and
builds an AdvisoryDocument; encode_document() produces the canonical
mapping (fixed key order, empty optional fields omitted) used both for
write-back and for YAML export.
"""
from datetime import date, datetime
from typing import Any, Dict, List

import yaml

from storage.directory import DOCUMENT_SUFFIX

from .errors import EventOrderError, ParseError
from .model import (
    DETECTION_TYPES,
    FALSE_POSITIVE_TYPES,
    SCHEMA_VERSION,
    Advisory,
    AdvisoryDocument,
    Event,
    EventKind,
    EventLog,
    format_timestamp,
)


class SchemaError(ValueError):
    """Raised internally when a document does not match the schema."""


def load_document(content: bytes, path: str) -> AdvisoryDocument:
    """
    Parse YAML bytes into an AdvisoryDocument.

    Raises:
        ParseError: with the path and the underlying cause on any failure
    """
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ParseError(path, e) from e

    return decode_document(raw, path)


def decode_document(raw: Any, path: str) -> AdvisoryDocument:
    """Build an AdvisoryDocument from an already-loaded mapping."""
    try:
        return _decode(raw)
    except (SchemaError, EventOrderError) as e:
        raise ParseError(path, e) from e


def _decode(raw: Any) -> AdvisoryDocument:
    if not isinstance(raw, dict):
        raise SchemaError("document must be a mapping")

    package = raw.get("package")
    if not isinstance(package, dict) or not _nonempty_str(package.get("name")):
        raise SchemaError("missing package.name")

    raw_advisories = raw.get("advisories") or []
    if not isinstance(raw_advisories, list):
        raise SchemaError("advisories must be a list")

    advisories: List[Advisory] = []
    seen = set()
    for raw_adv in raw_advisories:
        advisory = _decode_advisory(raw_adv)
        if advisory.id in seen:
            raise SchemaError(f"duplicate advisory id {advisory.id!r}")
        seen.add(advisory.id)
        advisories.append(advisory)

    return AdvisoryDocument(
        package=package["name"],
        advisories=tuple(advisories),
        schema_version=str(raw.get("schema-version") or SCHEMA_VERSION),
    )


def _decode_advisory(raw: Any) -> Advisory:
    if not isinstance(raw, dict) or not _nonempty_str(raw.get("id")):
        raise SchemaError("advisory is missing an id")

    advisory_id = raw["id"]
    aliases = raw.get("aliases") or []
    if not isinstance(aliases, list) or not all(_nonempty_str(a) for a in aliases):
        raise SchemaError(f"{advisory_id}: aliases must be a list of strings")

    raw_events = raw.get("events")
    if not isinstance(raw_events, list) or not raw_events:
        raise SchemaError(f"{advisory_id}: at least one event is required")

    events = EventLog(_decode_event(advisory_id, e) for e in raw_events)
    return Advisory(id=advisory_id, events=events, aliases=tuple(aliases))


def _decode_event(advisory_id: str, raw: Any) -> Event:
    if not isinstance(raw, dict):
        raise SchemaError(f"{advisory_id}: event must be a mapping")

    try:
        kind = EventKind(raw.get("type"))
    except ValueError:
        raise SchemaError(f"{advisory_id}: unknown event type {raw.get('type')!r}")

    timestamp = parse_timestamp(raw.get("timestamp"), advisory_id)

    data = raw.get("data") or {}
    if not isinstance(data, dict):
        raise SchemaError(f"{advisory_id}: event data must be a mapping")
    bad_keys = [k for k in data if not isinstance(k, str)]
    if bad_keys:
        raise SchemaError(f"{advisory_id}: event data keys must be strings, got {bad_keys[0]!r}")

    if kind == EventKind.DETECTION and data.get("type") not in DETECTION_TYPES:
        raise SchemaError(f"{advisory_id}: invalid detection type {data.get('type')!r}")
    if kind == EventKind.FALSE_POSITIVE_DETERMINATION and data.get("type") not in FALSE_POSITIVE_TYPES:
        raise SchemaError(f"{advisory_id}: invalid false positive type {data.get('type')!r}")
    if kind == EventKind.FIXED:
        # YAML may load unquoted versions like 1.2 as floats
        fixed_version = data.get("fixed-version")
        if fixed_version is None or str(fixed_version).strip() == "":
            raise SchemaError(f"{advisory_id}: fixed event requires fixed-version")
        data = dict(data, **{"fixed-version": str(fixed_version)})

    return Event(kind=kind, timestamp=timestamp, data=data)


def parse_timestamp(value: Any, context: str = "") -> datetime:
    """Accept datetimes loaded by YAML as well as RFC 3339 strings."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
    raise SchemaError(f"{context}: invalid timestamp {value!r}")


def _nonempty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def encode_event(event: Event) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "timestamp": format_timestamp(event.timestamp),
        "type": event.kind.value,
    }
    if event.data:
        out["data"] = {k: event.data[k] for k in sorted(event.data)}
    return out


def encode_advisory(advisory: Advisory) -> Dict[str, Any]:
    out: Dict[str, Any] = {"id": advisory.id}
    if advisory.aliases:
        out["aliases"] = list(advisory.aliases)
    out["events"] = [encode_event(e) for e in advisory.events]
    return out


def encode_document(document: AdvisoryDocument) -> Dict[str, Any]:
    """Canonical mapping for a document; key order is significant."""
    return {
        "schema-version": document.schema_version,
        "package": {"name": document.package},
        "advisories": [encode_advisory(a) for a in document.advisories],
    }


def dump_document(document: AdvisoryDocument) -> bytes:
    return yaml.safe_dump(
        encode_document(document),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    ).encode("utf-8")


def document_path(package: str) -> str:
    return f"{package}{DOCUMENT_SUFFIX}"
