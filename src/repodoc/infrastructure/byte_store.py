"""
Byte store abstraction for extracted project files.

Keys are '/'-joined relative paths. The core never cares whether the bytes
live on a local disk or in an object store; it only needs write, read and a
one-level directory listing.
"""

import asyncio
import logging
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class ByteStoreError(Exception):
    """Base exception for byte store failures."""

    pass


class ByteStoreNotFoundError(ByteStoreError, FileNotFoundError):
    """Raised when a key or directory does not exist."""

    pass


@dataclass(frozen=True)
class StoreEntry:
    """One child of a store directory."""

    name: str
    is_dir: bool


def normalize_key(key: str) -> str:
    """
    Validate and normalize a store key.

    Raises:
        ByteStoreError: If the key contains traversal segments, NUL bytes or
            backslashes.
    """
    if "\x00" in key or "\\" in key:
        raise ByteStoreError(f"Invalid store key: {key!r}")
    parts = [p for p in key.split("/") if p not in ("", ".")]
    if any(p == ".." for p in parts):
        raise ByteStoreError(f"Store key may not contain '..': {key!r}")
    return "/".join(parts)


class ByteStoreInterface(ABC):
    """Abstract interface for byte storage backends."""

    @abstractmethod
    async def write(self, key: str, data: bytes) -> None:
        """Store bytes under key, replacing any previous value."""
        pass

    @abstractmethod
    async def read(self, key: str) -> bytes:
        """
        Read the bytes stored under key.

        Raises:
            ByteStoreNotFoundError: If the key does not exist.
        """
        pass

    @abstractmethod
    async def list_children(self, dir_key: str) -> list[StoreEntry]:
        """
        List the direct children of a directory key, in no particular order.

        Raises:
            ByteStoreNotFoundError: If the directory does not exist.
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return True if key names a stored file or directory."""
        pass

    @abstractmethod
    async def list_prefixes(self) -> list[str]:
        """Return the names of the top-level directories, sorted."""
        pass

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> None:
        """
        Remove every key under prefix. A missing prefix is not an error.

        Raises:
            ByteStoreError: If the prefix is empty or the removal fails.
        """
        pass


class LocalByteStore(ByteStoreInterface):
    """
    Filesystem-backed byte store rooted at a directory.

    Blocking filesystem calls run in worker threads so callers on the event
    loop are never stalled.
    """

    def __init__(self, root: Path | str):
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        """Absolute root directory of the store."""
        return self._root

    def path_for(self, key: str) -> Path:
        """Map a key to its absolute filesystem path."""
        normalized = normalize_key(key)
        return self._root / normalized if normalized else self._root

    async def write(self, key: str, data: bytes) -> None:
        path = self.path_for(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise ByteStoreError(f"Failed to write {key}: {e}") from e

    async def read(self, key: str) -> bytes:
        path = self.path_for(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except (FileNotFoundError, IsADirectoryError) as e:
            raise ByteStoreNotFoundError(f"Key not found: {key}") from e
        except OSError as e:
            raise ByteStoreError(f"Failed to read {key}: {e}") from e

    async def list_children(self, dir_key: str) -> list[StoreEntry]:
        path = self.path_for(dir_key)

        def _list() -> list[StoreEntry]:
            return [
                StoreEntry(name=child.name, is_dir=child.is_dir() and not child.is_symlink())
                for child in path.iterdir()
            ]

        try:
            return await asyncio.to_thread(_list)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise ByteStoreNotFoundError(f"Directory not found: {dir_key}") from e
        except OSError as e:
            raise ByteStoreError(f"Failed to list {dir_key}: {e}") from e

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self.path_for(key).exists)

    async def list_prefixes(self) -> list[str]:
        return sorted(e.name for e in await self.list_children("") if e.is_dir)

    async def delete_prefix(self, prefix: str) -> None:
        path = self.path_for(prefix)
        if path == self._root:
            raise ByteStoreError("Refusing to delete the store root")

        def _delete() -> None:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            elif path.exists() or path.is_symlink():
                path.unlink()

        try:
            await asyncio.to_thread(_delete)
        except OSError as e:
            raise ByteStoreError(f"Failed to delete {prefix}: {e}") from e
