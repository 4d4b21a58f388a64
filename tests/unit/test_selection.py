"""
Unit tests for path scoring and text detection.
"""

import pytest

from repodoc.core.selection import is_text_like, path_depth, score_path, select_key_files


class TestScorePath:
    def test_depth(self):
        assert path_depth("a") == 0
        assert path_depth("a/b/c.txt") == 2

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("notes", 10),
            # depth 0, no keyword, .txt
            ("notes.txt", 12),
            # keyword "main" and ".rs"
            ("main.rs", 17),
            # "readme" keyword, ".md"
            ("README.md", 17),
            # "app" and "config" keywords, ".json"
            ("app.config.json", 22),
            # depth 2
            ("src/lib/util.py", 10),
        ],
    )
    def test_score(self, path, expected):
        assert score_path(path) == expected

    def test_keywords_are_substrings_of_whole_path(self):
        # "app" appears in the directory name
        assert score_path("apps/x") == 10 - 1 + 5


class TestSelectKeyFiles:
    def test_orders_by_score(self):
        flat = [
            ("src", True),
            ("src/deep/thing.bin", False),
            ("main.rs", False),
            ("notes.txt", False),
        ]

        assert select_key_files(flat, 2) == ["main.rs", "notes.txt"]

    def test_ties_keep_input_order(self):
        flat = [("b.txt", False), ("a.txt", False), ("c.txt", False)]

        assert select_key_files(flat, 3) == ["b.txt", "a.txt", "c.txt"]

    def test_non_positive_count(self):
        assert select_key_files([("main.rs", False)], 0) == []
        assert select_key_files([("main.rs", False)], -1) == []


class TestIsTextLike:
    @pytest.mark.parametrize(
        "path",
        ["src/main.py", "Cargo.toml", "web/app.tsx", ".env", "Dockerfile", "Makefile", "yarn.lock"],
    )
    def test_text_files(self, path):
        assert is_text_like(path)

    @pytest.mark.parametrize("path", ["logo.png", "app.exe", "archive.zip", "noextension"])
    def test_binary_files(self, path):
        assert not is_text_like(path)
