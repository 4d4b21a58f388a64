"""
Property-based tests for file tree construction.

*For any* directory contents, every sibling list orders directories before
files and names ascending within each group.
"""

import asyncio
import tempfile
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from repodoc.core.file_tree import FileNode, build_tree, build_tree_from_store, flatten
from repodoc.infrastructure.fakes import InMemoryByteStore

name_strategy = st.text(alphabet="abcdefXYZ0123_.-", min_size=1, max_size=8).filter(
    lambda n: n not in (".", "..")
)

# Relative file paths, 1-4 segments deep
path_strategy = st.lists(name_strategy, min_size=1, max_size=4).map("/".join)


def _consistent(paths: list[str]) -> list[str]:
    """Drop paths that would need a file and a directory with the same name."""
    files: set[str] = set()
    dirs: set[str] = set()
    kept = []
    for path in paths:
        parts = path.split("/")
        parents = {"/".join(parts[:i]) for i in range(1, len(parts))}
        if path in dirs or path in files or parents & files:
            continue
        kept.append(path)
        files.add(path)
        dirs |= parents
    return kept


paths_strategy = st.lists(path_strategy, min_size=1, max_size=25).map(_consistent)


def assert_ordered(nodes: list[FileNode]) -> None:
    stack = [nodes]
    while stack:
        siblings = stack.pop()
        keys = [(not n.is_dir, n.name) for n in siblings]
        assert keys == sorted(keys)
        first_file = next((i for i, n in enumerate(siblings) if not n.is_dir), len(siblings))
        assert all(n.is_dir for n in siblings[:first_file])
        assert not any(n.is_dir for n in siblings[first_file:])
        stack.extend(n.children for n in siblings if n.is_dir)


@given(paths=paths_strategy)
@settings(max_examples=100, deadline=None)
def test_directory_tree_sibling_order(paths: list[str]):
    """
    *For any* set of files on disk, build_tree returns directories first and
    names ascending within each sibling list.
    """
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        for path in paths:
            target = root / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("x")

        tree = build_tree(root)

    assert_ordered(tree)
    flat_files = {entry.path for entry in flatten(tree) if not entry.is_dir}
    assert flat_files == set(paths)


@given(paths=paths_strategy)
@settings(max_examples=100, deadline=None)
def test_store_tree_matches_paths(paths: list[str]):
    """
    *For any* set of stored keys, the store-backed tree is ordered and its
    files are exactly the stored paths.
    """
    store = InMemoryByteStore()

    async def run_test():
        for path in paths:
            await store.write(f"root/{path}", b"x")
        return await build_tree_from_store(store, "root")

    tree = asyncio.run(run_test())

    assert_ordered(tree)
    flat = flatten(tree)
    assert {e.path for e in flat if not e.is_dir} == set(paths)
    # Pre-order: every directory appears before anything inside it
    seen_dirs: set[str] = set()
    for entry in flat:
        parent = entry.path.rpartition("/")[0]
        assert not parent or parent in seen_dirs
        if entry.is_dir:
            seen_dirs.add(entry.path)
