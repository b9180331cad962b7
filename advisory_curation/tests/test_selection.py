"""
Tests for selections over the advisory index.
"""
import pytest

from advisories import AdvisoryIndex, EventKind, by_package, has_advisory, latest_status, merge, parse_bundle


@pytest.fixture
def index(repo_storage):
    return AdvisoryIndex.build(repo_storage)


class TestSelect:
    """Filtering and ordering."""

    def test_select_all_is_package_ascending(self, index):
        selection = index.select()
        assert selection.names() == ("curl", "openssl", "zlib")

    def test_select_by_package(self, index):
        selection = index.select(by_package("zlib", "curl"))
        assert selection.names() == ("curl", "zlib")

    def test_select_by_alias(self, index):
        selection = index.select(has_advisory("GHSA-aaaa-bbbb-cccc"))
        assert selection.names() == ("openssl",)

    def test_select_by_latest_status(self, index):
        selection = index.select(latest_status(EventKind.FIX_NOT_PLANNED, EventKind.PENDING_UPSTREAM_FIX))
        assert selection.names() == ("curl", "zlib")

    def test_where_narrows(self, index):
        selection = index.select().where(by_package("openssl"))
        assert len(selection) == 1
        assert selection[0][0] == "openssl"

    def test_no_match(self, index):
        assert len(index.select(has_advisory("CVE-1999-0001"))) == 0

    def test_advisory_rows(self, index):
        rows = [(pkg, adv.id) for pkg, adv in index.select().advisory_rows()]
        assert rows == [
            ("curl", "CVE-2023-38545"),
            ("openssl", "CVE-2023-0464"),
            ("openssl", "CVE-2023-0465"),
            ("zlib", "CVE-2022-37434"),
        ]


class TestSelectionIsolation:
    """A selection does not follow later index changes."""

    def test_selection_survives_merge(self, index):
        selection = index.select()
        bundle = b"""
- package:
    name: bash
  advisories:
    - id: CVE-2024-9999
      events:
        - timestamp: 2024-05-01T00:00:00Z
          type: detection
          data:
            type: scan
"""
        merged = merge(index, parse_bundle(bundle))

        assert len(merged.select()) == 4
        assert len(selection) == 3
        assert len(index.select()) == 3
