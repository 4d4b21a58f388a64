"""
Data models for the file tree module.
"""

from dataclasses import dataclass, field
from typing import NamedTuple


class TreeLimitError(OSError):
    """Raised when a directory walk exceeds its depth or node ceiling."""

    pass


@dataclass
class FileNode:
    """
    A file or directory in an extracted project.

    Attributes:
        name: Final path segment
        path: Path relative to the project root, '/'-joined
        is_dir: True for directories
        children: Ordered children (directories first, then files, each by name);
                  always empty for files
    """

    name: str
    path: str
    is_dir: bool
    children: list["FileNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize the node and its subtree to plain dictionaries."""
        return {
            "name": self.name,
            "path": self.path,
            "is_dir": self.is_dir,
            "children": [child.to_dict() for child in self.children] if self.is_dir else None,
        }


class FlatEntry(NamedTuple):
    """A (path, is_dir) pair produced by flattening a tree."""

    path: str
    is_dir: bool


def sibling_sort_key(node: FileNode) -> tuple[bool, str]:
    """Directories before files, then by name."""
    return (not node.is_dir, node.name)
