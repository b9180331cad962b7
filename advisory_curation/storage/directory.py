"""
Filesystem storage: an advisories repository checked out on disk.

Documents are the *.advisories.yaml files directly under the directory.
Paths are returned relative to the directory, sorted.
"""
from pathlib import Path
from typing import List, Union

from .base import StorageAdapter

DOCUMENT_SUFFIX = ".advisories.yaml"


class DirectoryStorage(StorageAdapter):
    """Advisory documents stored as files in one directory."""

    def __init__(self, root: Union[str, Path], suffix: str = DOCUMENT_SUFFIX):
        self.root = Path(root)
        self.suffix = suffix
        if not self.root.is_dir():
            raise NotADirectoryError(f"advisories repo dir not found: {self.root}")

    def list_paths(self) -> List[str]:
        return sorted(
            p.name for p in self.root.iterdir()
            if p.is_file() and p.name.endswith(self.suffix)
        )

    def read(self, path: str) -> bytes:
        return (self.root / path).read_bytes()

    def write(self, path: str, content: bytes) -> None:
        (self.root / path).write_bytes(content)

    def __repr__(self) -> str:
        return f"DirectoryStorage({str(self.root)!r})"
