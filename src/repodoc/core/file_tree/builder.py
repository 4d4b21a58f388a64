"""
Tree construction over a directory or a byte store.

Both builders walk with an explicit stack rather than recursion, so that an
adversarial archive with deeply nested or very wide directories hits a
TreeLimitError instead of exhausting the interpreter stack or memory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from .models import FileNode, FlatEntry, TreeLimitError, sibling_sort_key

if TYPE_CHECKING:
    from repodoc.infrastructure.byte_store import ByteStoreInterface

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64
DEFAULT_MAX_NODES = 50000


class _TreeAssembler:
    """Turns one directory listing into sorted child nodes while enforcing limits."""

    def __init__(self, max_depth: int, max_nodes: int):
        self._max_depth = max_depth
        self._max_nodes = max_nodes
        self._node_count = 0

    def attach(
        self,
        siblings: list[FileNode],
        entries: Iterable[tuple[str, bool]],
        prefix: str,
    ) -> list[FileNode]:
        """
        Append nodes for (name, is_dir) entries to siblings and sort them.

        Returns:
            The directory nodes that still need to be listed.
        """
        for name, is_dir in entries:
            self._node_count += 1
            if self._node_count > self._max_nodes:
                raise TreeLimitError(f"Tree exceeds {self._max_nodes} nodes")

            path = f"{prefix}/{name}" if prefix else name
            if path.count("/") + 1 > self._max_depth:
                raise TreeLimitError(f"Tree exceeds depth {self._max_depth} at {path}")
            siblings.append(FileNode(name=name, path=path, is_dir=is_dir))

        siblings.sort(key=sibling_sort_key)
        return [node for node in siblings if node.is_dir]


def build_tree(
    root_dir: Path | str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_nodes: int = DEFAULT_MAX_NODES,
) -> list[FileNode]:
    """
    Build the ordered node tree for a directory.

    Symlinks are reported as files and never followed.

    Args:
        root_dir: Directory to walk
        max_depth: Maximum number of path segments below root_dir
        max_nodes: Maximum number of nodes in the whole tree

    Returns:
        Top-level sibling nodes

    Raises:
        OSError: If root_dir or any directory below it cannot be listed
        TreeLimitError: If a limit is exceeded
    """
    root = Path(root_dir)
    assembler = _TreeAssembler(max_depth, max_nodes)
    top: list[FileNode] = []
    stack: list[tuple[Path, str, list[FileNode]]] = [(root, "", top)]

    while stack:
        directory, prefix, siblings = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = [
                    (entry.name, entry.is_dir(follow_symlinks=False)) for entry in it
                ]
        except OSError as e:
            logger.error(f"Cannot list directory {directory}: {e}")
            raise

        for node in assembler.attach(siblings, entries, prefix):
            stack.append((directory / node.name, node.path, node.children))

    return top


async def build_tree_from_store(
    store: "ByteStoreInterface",
    root_key: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_nodes: int = DEFAULT_MAX_NODES,
) -> list[FileNode]:
    """
    Build the ordered node tree for a directory key in a byte store.

    Node paths are relative to root_key.

    Raises:
        ByteStoreError: If a directory cannot be listed (NotFound included)
        TreeLimitError: If a limit is exceeded
    """
    root_key = root_key.strip("/")
    assembler = _TreeAssembler(max_depth, max_nodes)
    top: list[FileNode] = []
    stack: list[tuple[str, list[FileNode]]] = [("", top)]

    while stack:
        prefix, siblings = stack.pop()
        dir_key = "/".join(part for part in (root_key, prefix) if part)
        entries = await store.list_children(dir_key)
        for node in assembler.attach(siblings, ((e.name, e.is_dir) for e in entries), prefix):
            stack.append((node.path, node.children))

    return top


def flatten(nodes: list[FileNode]) -> list[FlatEntry]:
    """
    Flatten a tree in pre-order: each directory precedes its contents.

    Args:
        nodes: Top-level sibling nodes

    Returns:
        Ordered (path, is_dir) entries
    """
    flat: list[FlatEntry] = []
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        flat.append(FlatEntry(node.path, node.is_dir))
        if node.is_dir:
            stack.extend(reversed(node.children))
    return flat


def render_structure(flat: list[FlatEntry]) -> str:
    """Render a flattened tree as the directory listing used in prompts."""
    lines = []
    for path, is_dir in flat:
        lines.append(f"[DIR] {path}" if is_dir else f"      {path}")
    return "\n".join(lines) + ("\n" if lines else "")
