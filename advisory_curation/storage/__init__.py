"""
Storage layer for advisory documents.

Components:
- StorageAdapter: Interface the advisory index reads documents through
- DirectoryStorage: Documents as *.advisories.yaml files in a directory
- Database: DuckDB connection and schema management
- DatabaseStorage: Documents as rows in a DuckDB table

Usage:
    from storage import Database, DatabaseStorage, DirectoryStorage

    storage = DirectoryStorage("advisories")

    db = Database("advisories.duckdb")
    db.initialize_schema()
    storage = DatabaseStorage(db)
"""

from .base import StorageAdapter
from .directory import DirectoryStorage
from .database import Database
from .db_storage import DatabaseStorage

__all__ = [
    "StorageAdapter",
    "DirectoryStorage",
    "Database",
    "DatabaseStorage",
]
