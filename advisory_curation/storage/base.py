"""
Storage adapter interface for advisory documents.

The advisory index never touches files or databases directly; it asks an
adapter to enumerate document paths and read their bytes. Write-back
flows (imports) use write().
"""
from abc import ABC, abstractmethod
from typing import List


class StorageAdapter(ABC):
    """Abstract base class for advisory document storage."""

    @abstractmethod
    def list_paths(self) -> List[str]:
        """
        Enumerate advisory document paths.

        Returns:
            Paths in a stable (sorted) order
        """
        pass

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Return the raw bytes stored at path."""
        pass

    def write(self, path: str, content: bytes) -> None:
        """Store bytes at path. Read-only adapters leave this unimplemented."""
        raise NotImplementedError(f"{type(self).__name__} is read-only")
