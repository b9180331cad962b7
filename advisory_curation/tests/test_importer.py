"""
Tests for bundle import and merge.

Covers round-trip cardinality, the append-only merge rules and the
all-or-nothing guarantee on conflicts.
"""
import threading

import pytest

from advisories import (
    AdvisoryIndex,
    DuplicatePackageError,
    EventKind,
    ImportConflictError,
    IndexHolder,
    MergeStrategy,
    ParseError,
    UnsupportedFormatError,
    export_yaml,
    merge,
    parse_bundle,
)
from storage import DirectoryStorage


def bundle(package, vuln_id, *events, aliases=None):
    """Single-document YAML bundle; events are (timestamp, type, data-yaml) tuples."""
    lines = [f"- package:", f"    name: {package}", "  advisories:", f"    - id: {vuln_id}"]
    if aliases:
        lines.append(f"      aliases: [{', '.join(aliases)}]")
    lines.append("      events:")
    for ts, kind, data in events:
        lines.append(f"        - timestamp: {ts}")
        lines.append(f"          type: {kind}")
        if data:
            lines.append("          data:")
            for key, value in data.items():
                lines.append(f"            {key}: {value}")
    return ("\n".join(lines) + "\n").encode()


@pytest.fixture
def index(repo_storage):
    return AdvisoryIndex.build(repo_storage)


class TestParseBundle:
    """Parsing exported bundles."""

    def test_round_trip_cardinality(self, index):
        imported = parse_bundle(export_yaml(index.select()))

        assert len(imported.select()) == len(index.select())
        assert imported.documents == index.documents

    def test_empty_bundle(self):
        assert len(parse_bundle(b"")) == 0
        assert len(parse_bundle(b"[]\n")) == 0

    def test_csv_is_not_importable(self):
        with pytest.raises(UnsupportedFormatError):
            parse_bundle(b"package,vulnerability_id\n", "csv")

    def test_bundle_must_be_sequence(self):
        with pytest.raises(ParseError):
            parse_bundle(b"package:\n  name: curl\n")

    def test_malformed_record_reports_position(self):
        data = bundle("curl", "CVE-1", ("2024-01-01T00:00:00Z", "detection", {"type": "manual"}))
        data += b"- advisories: []\n"

        with pytest.raises(ParseError) as exc_info:
            parse_bundle(data)

        assert exc_info.value.path == "<bundle>[1]"

    def test_duplicate_packages_in_bundle(self):
        doc = bundle("curl", "CVE-1", ("2024-01-01T00:00:00Z", "detection", {"type": "manual"}))

        with pytest.raises(DuplicatePackageError):
            parse_bundle(doc + doc)


class TestMerge:
    """Merge rules for incoming documents."""

    def test_absent_package_inserted_wholesale(self, index):
        incoming = parse_bundle(bundle(
            "bash", "CVE-2024-0001",
            ("2024-01-01T00:00:00Z", "detection", {"type": "scan"}),
        ))

        merged = merge(index, incoming)

        assert merged.packages == ("bash", "curl", "openssl", "zlib")
        assert merged.get("bash") == incoming.get("bash")

    def test_new_advisory_appended(self, index):
        incoming = parse_bundle(bundle(
            "openssl", "CVE-2024-0002",
            ("2024-01-01T00:00:00Z", "detection", {"type": "nvdapi"}),
        ))

        merged = merge(index, incoming)
        ids = [a.id for a in merged.get("openssl").advisories]

        assert ids == ["CVE-2023-0464", "CVE-2023-0465", "CVE-2024-0002"]

    def test_later_events_appended(self, index):
        incoming = parse_bundle(bundle(
            "zlib", "CVE-2022-37434",
            ("2022-10-14T00:00:00Z", "fixed", {"fixed-version": "1.2.13-r0"}),
            aliases=["GHSA-cfmr-vrgj-vqwv"],
        ))

        merged = merge(index, incoming)
        advisory = merged.get("zlib").get("CVE-2022-37434")

        assert [e.kind for e in advisory.events] == [EventKind.PENDING_UPSTREAM_FIX, EventKind.FIXED]
        assert advisory.aliases == ("GHSA-cfmr-vrgj-vqwv",)

    @pytest.mark.parametrize("timestamp", ["2022-08-10T12:00:00Z", "2022-08-01T00:00:00Z"])
    def test_history_rewrite_conflicts(self, index, timestamp):
        incoming = parse_bundle(bundle(
            "zlib", "CVE-2022-37434",
            (timestamp, "fixed", {"fixed-version": "1.2.13-r0"}),
        ))

        with pytest.raises(ImportConflictError) as exc_info:
            merge(index, incoming)

        assert exc_info.value.package == "zlib"
        assert exc_info.value.vulnerability_id == "CVE-2022-37434"
        assert len(index.select()) == 3
        assert len(index.get("zlib").get("CVE-2022-37434").events) == 1

    def test_conflict_discards_earlier_successes(self, index):
        good = bundle("bash", "CVE-1", ("2024-01-01T00:00:00Z", "detection", {"type": "scan"}))
        bad = bundle("zlib", "CVE-2022-37434", ("2020-01-01T00:00:00Z", "detection", {"type": "scan"}))
        holder = IndexHolder(index)

        with pytest.raises(ImportConflictError):
            holder.apply(parse_bundle(good + bad))

        assert holder.current is index
        assert "bash" not in holder.current

    def test_reimport_conflicts_under_strict(self, index):
        with pytest.raises(ImportConflictError):
            merge(index, parse_bundle(export_yaml(index.select())))

    def test_reimport_is_noop_under_idempotent(self, index):
        merged = merge(index, parse_bundle(export_yaml(index.select())), MergeStrategy.IDEMPOTENT)
        assert merged.documents == index.documents

    def test_idempotent_still_rejects_older_events(self, index):
        incoming = parse_bundle(bundle(
            "curl", "CVE-2023-38545",
            ("2023-10-11T08:00:00Z", "detection", {"type": "nvdapi"}),
            ("2023-10-11T09:00:00Z", "true-positive-determination", {}),
        ))

        with pytest.raises(ImportConflictError):
            merge(index, incoming, MergeStrategy.IDEMPOTENT)


class TestIndexHolder:
    """Single-writer reference swaps."""

    def test_apply_swaps_reference(self, index):
        holder = IndexHolder(index)
        before = holder.current
        incoming = parse_bundle(bundle("bash", "CVE-1", ("2024-01-01T00:00:00Z", "detection", {"type": "scan"})))

        after = holder.apply(incoming)

        assert holder.current is after
        assert len(before) == 3
        assert len(after) == 4

    def test_replace_with_rebuilt_index(self, index, repo_dir):
        holder = IndexHolder()
        (repo_dir / "zlib.advisories.yaml").unlink()

        holder.replace(index)
        assert holder.current is index

        rebuilt = AdvisoryIndex.build(DirectoryStorage(repo_dir))
        holder.replace(rebuilt)

        assert holder.current is rebuilt
        assert holder.current.packages == ("curl", "openssl")
        assert len(index) == 3

    def test_concurrent_appliers_serialize(self):
        holder = IndexHolder()

        def worker(i):
            holder.apply(parse_bundle(bundle(
                f"pkg{i:02d}", "CVE-1", ("2024-01-01T00:00:00Z", "detection", {"type": "scan"}),
            )))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(holder.current) == 20
