"""
Shared pytest fixtures for advisory curation tests.

Provides sample advisory documents on disk, a temporary DuckDB database
and helpers for building scanner matches.
"""
import sys
import tempfile
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storage import Database, DirectoryStorage


OPENSSL_DOC = """\
schema-version: 2.0.2
package:
  name: openssl
advisories:
  - id: CVE-2023-0464
    aliases:
      - GHSA-aaaa-bbbb-cccc
    events:
      - timestamp: 2023-03-22T14:02:00Z
        type: detection
        data:
          type: manual
      - timestamp: 2023-03-23T09:00:00Z
        type: fixed
        data:
          fixed-version: 3.1.0-r3
  - id: CVE-2023-0465
    events:
      - timestamp: 2023-03-24T10:00:00Z
        type: false-positive-determination
        data:
          type: vulnerable-code-not-included-in-package
          note: Only affects the FIPS provider
"""

CURL_DOC = """\
schema-version: 2.0.2
package:
  name: curl
advisories:
  - id: CVE-2023-38545
    events:
      - timestamp: 2023-10-11T08:00:00Z
        type: detection
        data:
          type: nvdapi
      - timestamp: 2023-10-12T08:00:00Z
        type: fix-not-planned
        data:
          note: Upstream branch is end of life
"""

ZLIB_DOC = """\
schema-version: 2.0.2
package:
  name: zlib
advisories:
  - id: CVE-2022-37434
    events:
      - timestamp: 2022-08-10T12:00:00Z
        type: pending-upstream-fix
        data:
          note: Waiting for 1.2.13
"""

SAMPLE_DOCS = {
    "openssl.advisories.yaml": OPENSSL_DOC,
    "curl.advisories.yaml": CURL_DOC,
    "zlib.advisories.yaml": ZLIB_DOC,
}


def write_docs(directory: Path, docs: dict) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for name, content in docs.items():
        (directory / name).write_text(content)
    return directory


@pytest.fixture
def repo_dir(tmp_path):
    """Advisories repository with three well-formed documents."""
    return write_docs(tmp_path / "advisories", SAMPLE_DOCS)


@pytest.fixture
def repo_storage(repo_dir):
    return DirectoryStorage(repo_dir)


@pytest.fixture
def temp_db():
    """
    Temporary DuckDB database with schema initialized.

    Cleanup:
        Closes the connection and removes the file after the test
    """
    # DuckDB creates the file itself; only reserve a unique name
    with tempfile.NamedTemporaryFile(suffix=".duckdb", delete=True) as f:
        db_path = f.name

    db = Database(db_path)
    db.initialize_schema()
    yield db
    db.close()

    Path(db_path).unlink(missing_ok=True)


def go_match(
    *,
    fix_versions=("0.35.0",),
    fix_state="fixed",
    constraint="< 0.35.0",
    cpe_source="nvd-cpe-dictionary",
    package_type="go-module",
    package_name="foo",
    detail_type="cpe-matcher",
):
    """Scanner report entry for a CPE-based match, as JSON-shaped dict."""
    cpe = "cpe:2.3:a:bar:foo:1.0.0:*:*:*:*:*:*:*"
    return {
        "vulnerability": {
            "id": "CVE-2024-0001",
            "fix": {"versions": list(fix_versions), "state": fix_state},
        },
        "artifact": {
            "name": package_name,
            "version": "1.0.0",
            "type": package_type,
            "cpes": [{"cpe": cpe, "source": cpe_source}] if cpe_source is not None else [],
        },
        "matchDetails": [
            {
                "type": detail_type,
                "searchedBy": {"cpes": [cpe]},
                "found": {"versionConstraint": constraint, "cpes": [cpe]},
            }
        ],
    }
