"""
Unit tests for archive extraction.
"""

import asyncio
import io
import stat
import zipfile

import pytest

from repodoc.core.archive_extractor import (
    ArchiveExtractor,
    ExtractionError,
    extract,
    resolve_inside,
    sanitize_entry_name,
)
from repodoc.infrastructure.fakes import InMemoryByteStore


def make_zip(entries: dict[str, bytes], compression=zipfile.ZIP_STORED) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buffer.getvalue()


class TestSanitizeEntryName:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("src/main.py", "src/main.py"),
            ("../../etc/passwd", "etc/passwd"),
            ("/abs/path.txt", "abs/path.txt"),
            ("C:\\Windows\\system.ini", "Windows/system.ini"),
            ("a\\..\\b.txt", "a/b.txt"),
            ("./x/./y", "x/y"),
            ("dir/", "dir"),
            ("..", None),
            ("/", None),
        ],
    )
    def test_sanitize(self, name, expected):
        assert sanitize_entry_name(name) == expected

    def test_nul_byte_rejected(self):
        with pytest.raises(ExtractionError):
            sanitize_entry_name("evil\x00.txt")


class TestExtract:
    def test_writes_files_in_archive_order(self, tmp_path):
        data = make_zip({"b.txt": b"b", "src/a.py": b"print(1)", "README.md": b"# hi"})

        written = extract(data, tmp_path)

        assert written == ["b.txt", "src/a.py", "README.md"]
        assert (tmp_path / "src" / "a.py").read_bytes() == b"print(1)"

    def test_traversal_entries_land_inside(self, tmp_path):
        dest = tmp_path / "out"
        data = make_zip({"../../escape.txt": b"nope", "/etc/hosts": b"nope"})

        written = extract(data, dest)

        assert written == ["escape.txt", "etc/hosts"]
        assert not (tmp_path / "escape.txt").exists()
        assert (dest / "escape.txt").read_bytes() == b"nope"

    def test_directory_entries_are_created(self, tmp_path):
        data = make_zip({"empty/": b"", "empty/nested/": b""})

        written = extract(data, tmp_path)

        assert written == []
        assert (tmp_path / "empty" / "nested").is_dir()

    def test_invalid_payload(self, tmp_path):
        with pytest.raises(ExtractionError, match="not a valid archive"):
            extract(b"definitely not a zip", tmp_path)

    def test_too_many_entries(self, tmp_path):
        data = make_zip({f"f{i}.txt": b"x" for i in range(5)})

        with pytest.raises(ExtractionError, match="Too many entries"):
            ArchiveExtractor(max_entries=4).extract(data, tmp_path)

    def test_uncompressed_size_limit(self, tmp_path):
        data = make_zip({"big.txt": b"0" * 10_000}, compression=zipfile.ZIP_DEFLATED)

        with pytest.raises(ExtractionError, match="size"):
            ArchiveExtractor(max_total_bytes=1_000).extract(data, tmp_path)

    def test_symlink_entry_rejected(self, tmp_path):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            info = zipfile.ZipInfo("link")
            info.external_attr = (stat.S_IFLNK | 0o777) << 16
            zf.writestr(info, "/etc/passwd")

        with pytest.raises(ExtractionError, match="Symlink"):
            extract(buffer.getvalue(), tmp_path)

    def test_list_entries(self):
        data = make_zip({"dir/": b"", "dir/file.txt": b"abc"})

        entries = ArchiveExtractor().list_entries(data)

        assert [(e.name, e.is_dir, e.size) for e in entries] == [
            ("dir/", True, 0),
            ("dir/file.txt", False, 3),
        ]


class TestResolveInside:
    def test_inside(self, tmp_path):
        assert resolve_inside(tmp_path, "a/b") == (tmp_path / "a" / "b").resolve()

    def test_escape_via_symlinked_parent(self, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        root = tmp_path / "root"
        root.mkdir()
        (root / "link").symlink_to(outside)

        with pytest.raises(ExtractionError, match="escapes"):
            resolve_inside(root, "link/file.txt")


class TestExtractToStore:
    def test_keys_prefixed(self):
        store = InMemoryByteStore()
        data = make_zip({"src/": b"", "src/main.py": b"x = 1", "../README.md": b"# r"})

        written = asyncio.run(ArchiveExtractor().extract_to_store(data, store, "extracted_1"))

        assert written == ["src/main.py", "README.md"]
        assert store.keys() == ["extracted_1/README.md", "extracted_1/src/main.py"]
        assert asyncio.run(store.read("extracted_1/src/main.py")) == b"x = 1"
