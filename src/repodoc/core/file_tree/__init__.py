"""
File tree module for repodoc.

Builds ordered, bounded node trees from a directory or a byte store and
flattens them for selection and prompt rendering.
"""

from .builder import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_NODES,
    build_tree,
    build_tree_from_store,
    flatten,
    render_structure,
)
from .models import FileNode, FlatEntry, TreeLimitError, sibling_sort_key

__all__ = [
    # Builders
    "build_tree",
    "build_tree_from_store",
    "flatten",
    "render_structure",
    # Models
    "FileNode",
    "FlatEntry",
    "TreeLimitError",
    "sibling_sort_key",
    # Constants
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_MAX_NODES",
]
