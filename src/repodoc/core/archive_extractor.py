"""
Archive extraction with path-traversal protection.

Entry names inside an uploaded archive are attacker-controlled. Every name is
reduced to a relative, '/'-joined path before it touches the filesystem or the
byte store, and the resolved destination is re-checked against the extraction
root so that no entry can land outside it (zip-slip).
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Iterator

if TYPE_CHECKING:
    from repodoc.infrastructure.byte_store import ByteStoreInterface

logger = logging.getLogger(__name__)

_DRIVE_SEGMENT = re.compile(r"^[A-Za-z]:$")
_COPY_CHUNK_SIZE = 64 * 1024

DEFAULT_MAX_ENTRIES = 20000
DEFAULT_MAX_TOTAL_BYTES = 500 * 1024 * 1024


class ExtractionError(Exception):
    """Raised when an archive is invalid, unsafe, or cannot be written."""

    pass


@dataclass(frozen=True)
class ArchiveEntry:
    """
    A single member of an uploaded archive.

    Attributes:
        name: Name as stored in the archive (untrusted, may contain '/' or '\\').
        is_dir: True for directory entries.
        size: Declared uncompressed size in bytes.
        is_symlink: True if the entry carries a Unix symlink mode.
    """

    name: str
    is_dir: bool
    size: int
    is_symlink: bool = False


def sanitize_entry_name(name: str) -> str | None:
    """
    Reduce an archive entry name to a safe relative path.

    Splits on both separators, drops empty, '.' and '..' segments and a leading
    drive segment such as 'C:'. The result never starts with a separator.

    Args:
        name: Raw entry name from the archive.

    Returns:
        The '/'-joined relative path, or None when nothing usable remains.

    Raises:
        ExtractionError: If the name contains a NUL byte.
    """
    if "\x00" in name:
        raise ExtractionError(f"Null byte in entry name: {name!r}")

    segments = [s for s in re.split(r"[/\\]", name) if s not in ("", ".", "..")]
    if segments and _DRIVE_SEGMENT.match(segments[0]):
        segments = segments[1:]

    if not segments:
        return None
    return "/".join(segments)


def resolve_inside(root: Path, relative_path: str) -> Path:
    """
    Resolve a sanitized relative path against root and verify containment.

    Raises:
        ExtractionError: If the resolved path is not inside root.
    """
    resolved_root = root.resolve()
    target = (resolved_root / relative_path).resolve()
    if target != resolved_root and not target.is_relative_to(resolved_root):
        raise ExtractionError(f"Entry escapes destination directory: {relative_path}")
    return target


def _is_symlink(info: zipfile.ZipInfo) -> bool:
    # Unix mode lives in the high 16 bits of external_attr
    unix_mode = (info.external_attr >> 16) & 0xFFFF
    return (unix_mode & 0o170000) == 0o120000


def _entry_from_info(info: zipfile.ZipInfo) -> ArchiveEntry:
    return ArchiveEntry(
        name=info.filename,
        is_dir=info.is_dir(),
        size=info.file_size,
        is_symlink=_is_symlink(info),
    )


class ArchiveExtractor:
    """
    Extracts zip archives into a directory or a byte store.

    Enforces:
    - Sanitized entry paths (no traversal, no absolute paths)
    - A ceiling on the number of entries
    - A ceiling on total uncompressed bytes, checked while copying
    - Rejection of symlink entries
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_total_bytes: int = DEFAULT_MAX_TOTAL_BYTES,
    ):
        self._max_entries = max_entries
        self._max_total_bytes = max_total_bytes

    def list_entries(self, data: bytes) -> list[ArchiveEntry]:
        """Return the entries of an archive without extracting anything."""
        with self._open(data) as zf:
            return [_entry_from_info(info) for info in zf.infolist()]

    def extract(self, data: bytes, destination_dir: Path | str) -> list[str]:
        """
        Extract an archive into destination_dir.

        Args:
            data: Raw archive bytes.
            destination_dir: Directory to extract into (created if missing).

        Returns:
            Relative '/'-joined paths of the files written, in archive order.

        Raises:
            ExtractionError: If the payload is not a valid archive, violates a
                limit, or an entry cannot be read or written.
        """
        root = Path(destination_dir)
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExtractionError(f"Cannot create destination {root}: {e}") from e

        written: list[str] = []
        budget = _ByteBudget(self._max_total_bytes)

        with self._open(data) as zf:
            for info, relative_path in self._iter_safe_members(zf):
                target = resolve_inside(root, relative_path)
                try:
                    if info.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                        continue
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with zf.open(info) as source, open(target, "wb") as sink:
                        budget.copy(source, sink, relative_path)
                except ExtractionError:
                    raise
                except (OSError, zipfile.BadZipFile, zlib.error, RuntimeError) as e:
                    raise ExtractionError(f"Failed to extract {relative_path}: {e}") from e
                written.append(relative_path)

        logger.info(f"Extracted {len(written)} files into {root}")
        return written

    async def extract_to_store(
        self, data: bytes, store: "ByteStoreInterface", prefix: str
    ) -> list[str]:
        """
        Extract an archive into a byte store under prefix.

        Directory entries are implicit in the store and are skipped.

        Returns:
            Relative '/'-joined paths of the files written, in archive order.

        Raises:
            ExtractionError: As for extract(), or when the store write fails.
        """
        from repodoc.infrastructure.byte_store import ByteStoreError

        written: list[str] = []
        budget = _ByteBudget(self._max_total_bytes)
        prefix = prefix.strip("/")

        with self._open(data) as zf:
            for info, relative_path in self._iter_safe_members(zf):
                if info.is_dir():
                    continue
                buffer = io.BytesIO()
                try:
                    with zf.open(info) as source:
                        budget.copy(source, buffer, relative_path)
                except (OSError, zipfile.BadZipFile, zlib.error, RuntimeError) as e:
                    raise ExtractionError(f"Failed to read {relative_path}: {e}") from e

                key = f"{prefix}/{relative_path}" if prefix else relative_path
                try:
                    await store.write(key, buffer.getvalue())
                except ByteStoreError as e:
                    raise ExtractionError(f"Failed to store {relative_path}: {e}") from e
                written.append(relative_path)

        logger.info(f"Extracted {len(written)} files into store prefix '{prefix}'")
        return written

    def _open(self, data: bytes) -> zipfile.ZipFile:
        try:
            return zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
            raise ExtractionError(f"Payload is not a valid archive: {e}") from e

    def _iter_safe_members(self, zf: zipfile.ZipFile) -> Iterator[tuple[zipfile.ZipInfo, str]]:
        """Validate archive-level limits, then yield (info, sanitized path) pairs."""
        infos = zf.infolist()
        if len(infos) > self._max_entries:
            raise ExtractionError(
                f"Too many entries in archive: {len(infos)} (max: {self._max_entries})"
            )

        declared_total = sum(info.file_size for info in infos)
        if declared_total > self._max_total_bytes:
            raise ExtractionError(
                f"Archive uncompressed size exceeds limit: {declared_total} bytes "
                f"(max: {self._max_total_bytes})"
            )

        for info in infos:
            if _is_symlink(info):
                raise ExtractionError(f"Symlink entries are not allowed: {info.filename}")

            relative_path = sanitize_entry_name(info.filename)
            if relative_path is None:
                logger.warning(f"Skipping archive entry with empty path: {info.filename!r}")
                continue
            if relative_path != info.filename.rstrip("/"):
                logger.debug(f"Sanitized entry name {info.filename!r} -> {relative_path!r}")
            yield info, relative_path


class _ByteBudget:
    """Counts bytes actually decompressed; declared sizes can lie."""

    def __init__(self, limit: int):
        self._limit = limit
        self._used = 0

    def copy(self, source: BinaryIO, sink: BinaryIO, relative_path: str) -> None:
        while True:
            chunk = source.read(_COPY_CHUNK_SIZE)
            if not chunk:
                return
            self._used += len(chunk)
            if self._used > self._limit:
                raise ExtractionError(
                    f"Uncompressed size limit exceeded while extracting {relative_path} "
                    f"(max: {self._limit} bytes)"
                )
            sink.write(chunk)


def extract(data: bytes, destination_dir: Path | str) -> list[str]:
    """Extract with default limits. See ArchiveExtractor.extract."""
    return ArchiveExtractor().extract(data, destination_dir)
