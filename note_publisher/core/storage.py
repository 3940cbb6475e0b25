"""Vault storage gateway.

All paths handed to a storage are vault-relative and use forward slashes.
"""

import posixpath
from pathlib import Path
from typing import List, Optional, Protocol

from note_publisher.core.models import NoteRef


class Storage(Protocol):
    """Minimal file-storage interface the publisher depends on."""

    def read(self, path: str) -> str: ...

    def read_binary(self, path: str) -> bytes: ...

    def write(self, path: str, content: str) -> None: ...

    def write_binary(self, path: str, data: bytes) -> None: ...

    def exists(self, path: str) -> bool: ...

    def create_folder(self, path: str) -> None: ...

    def list_files(self) -> List[str]: ...

    def get_file(self, path: str) -> Optional[NoteRef]: ...


class VaultStorage:
    """Storage backed by a vault directory on the local filesystem."""

    def __init__(self, vault_path: Path):
        """Initialize VaultStorage.

        Args:
            vault_path: Path to the vault root
        """
        self.vault_path = Path(vault_path)

    def _abs(self, path: str) -> Path:
        return self.vault_path / path.strip('/')

    def read(self, path: str) -> str:
        return self._abs(path).read_text(encoding='utf-8')

    def read_binary(self, path: str) -> bytes:
        return self._abs(path).read_bytes()

    def write(self, path: str, content: str) -> None:
        """Create or overwrite a text file in place."""
        self._abs(path).write_text(content, encoding='utf-8')

    def write_binary(self, path: str, data: bytes) -> None:
        self._abs(path).write_bytes(data)

    def exists(self, path: str) -> bool:
        return self._abs(path).exists()

    def create_folder(self, path: str) -> None:
        """Create a single folder. Existing folders are left alone."""
        self._abs(path).mkdir(exist_ok=True)

    def list_files(self) -> List[str]:
        """List every file in the vault, sorted, skipping dot-directories."""
        files = []
        for file_path in self.vault_path.rglob('*'):
            rel = file_path.relative_to(self.vault_path)
            if any(part.startswith('.') for part in rel.parts):
                continue
            if file_path.is_file():
                files.append(rel.as_posix())
        return sorted(files)

    def get_file(self, path: str) -> Optional[NoteRef]:
        """Get a reference to an existing file, or None.

        The returned path is normalized, so "./A.md" and "Notes//A.md"
        refer to "A.md" and "Notes/A.md".
        """
        path = path.strip('/')
        if not path:
            return None
        path = posixpath.normpath(path)
        if path in ('.', '..') or path.startswith('../'):
            return None
        if self._abs(path).is_file():
            return NoteRef(path=path)
        return None
