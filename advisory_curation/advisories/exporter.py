"""
Serialize a Selection to YAML or CSV.

Exports are pure functions of the Selection: nothing is mutated, so the
same Selection can be exported concurrently and repeated exports are
byte-identical.
"""
import csv
import io
from typing import Callable, Dict

import yaml

from .codec import encode_document
from .errors import UnsupportedFormatError
from .model import format_timestamp
from .selection import Selection

FORMAT_YAML = "yaml"
FORMAT_CSV = "csv"
EXPORT_FORMATS = (FORMAT_YAML, FORMAT_CSV)

CSV_HEADER = ["package", "vulnerability_id", "latest_status", "latest_status_at", "justification"]


def validate_format(fmt: str) -> str:
    """Fail fast on an unknown format selector."""
    if fmt not in EXPORT_FORMATS:
        raise UnsupportedFormatError(fmt, EXPORT_FORMATS)
    return fmt


def export_yaml(selection: Selection) -> bytes:
    """One document record per package, package ascending."""
    records = [encode_document(doc) for doc in selection.documents()]
    return yaml.safe_dump(
        records,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    ).encode("utf-8")


def export_csv(selection: Selection) -> bytes:
    """One row per (package, advisory), header always present."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for package, advisory in selection.advisory_rows():
        latest = advisory.latest
        writer.writerow([
            package,
            advisory.id,
            latest.status if latest else "",
            format_timestamp(latest.timestamp) if latest else "",
            latest.justification if latest else "",
        ])

    return buf.getvalue().encode("utf-8")


_EXPORTERS: Dict[str, Callable[[Selection], bytes]] = {
    FORMAT_YAML: export_yaml,
    FORMAT_CSV: export_csv,
}


def export_selection(selection: Selection, fmt: str) -> bytes:
    return _EXPORTERS[validate_format(fmt)](selection)
