"""
DuckDB connection and schema management for advisory document storage.

Some deployments keep the advisories repository in a single DuckDB file
instead of a directory tree. This module provides:
- DuckDB connection lifecycle management
- The advisory_documents table (one row per document path)

Design decisions:
- Documents stored as raw YAML bytes, so the index parses them exactly as
  it parses files on disk
- Path is the primary key; writes are upserts
"""
import duckdb
from typing import Optional


class Database:
    """
    Manages DuckDB connection and schema initialization.

    Keeps a single connection open until close() is called.
    """

    def __init__(self, db_path: str = "advisories.duckdb"):
        """
        Initialize database manager.

        Args:
            db_path: Path to DuckDB database file (created if doesn't exist)
        """
        self.db_path = db_path
        self.conn: Optional[duckdb.DuckDBPyConnection] = None

    def connect(self) -> duckdb.DuckDBPyConnection:
        """Get or create database connection."""
        if self.conn is None:
            self.conn = duckdb.connect(self.db_path)
        return self.conn

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def initialize_schema(self):
        """Create the advisory_documents table if it doesn't exist."""
        conn = self.connect()

        conn.execute("""
            CREATE TABLE IF NOT EXISTS advisory_documents (
                path VARCHAR PRIMARY KEY,
                content BLOB NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
