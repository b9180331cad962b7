"""
Storage adapter backed by the advisory_documents DuckDB table.
"""
from datetime import datetime, timezone
from typing import List

from .base import StorageAdapter
from .database import Database


class DatabaseStorage(StorageAdapter):
    """
    Advisory documents stored as rows in DuckDB.

    Paths are the document file names a directory checkout would use,
    e.g. "openssl.advisories.yaml".
    """

    def __init__(self, database: Database):
        """
        Args:
            database: Database with an initialized schema
        """
        self.db = database

    def list_paths(self) -> List[str]:
        conn = self.db.connect()
        rows = conn.execute("SELECT path FROM advisory_documents ORDER BY path").fetchall()
        return [row[0] for row in rows]

    def read(self, path: str) -> bytes:
        conn = self.db.connect()
        row = conn.execute(
            "SELECT content FROM advisory_documents WHERE path = ?", [path]
        ).fetchone()
        if row is None:
            raise FileNotFoundError(f"no advisory document stored at {path!r}")
        return bytes(row[0])

    def write(self, path: str, content: bytes) -> None:
        conn = self.db.connect()
        # Delete + insert keeps the write idempotent for the same path
        conn.execute("DELETE FROM advisory_documents WHERE path = ?", [path])
        conn.execute(
            "INSERT INTO advisory_documents (path, content, updated_at) VALUES (?, ?, ?)",
            [path, content, datetime.now(timezone.utc).replace(tzinfo=None)],
        )

    def __repr__(self) -> str:
        return f"DatabaseStorage({self.db.db_path!r})"
