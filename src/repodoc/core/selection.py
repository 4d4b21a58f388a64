"""
Key file scoring and selection.

Scores favour shallow paths, conventional entry-point and configuration names,
and recognised source/config extensions. Selection is a stable sort, so equal
scores keep their pre-order position and results are reproducible.
"""

from dataclasses import dataclass
from typing import Iterable

from repodoc.core.file_tree import FlatEntry
from repodoc.core.language_registry import LanguageRegistry, get_default_registry

KEY_NAME_KEYWORDS: tuple[str, ...] = ("main", "index", "config", "readme", "app", "setup", "env")

SCORING_EXTENSIONS: tuple[str, ...] = (
    ".rs",
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".json",
    ".toml",
    ".md",
    ".txt",
    ".yaml",
    ".yml",
    ".html",
    ".css",
    ".scss",
    ".mjs",
    ".cjs",
    ".env",
    ".lock",
    ".sql",
    ".py",
)

DEPTH_BASE = 10
KEYWORD_WEIGHT = 5
EXTENSION_WEIGHT = 2


@dataclass(frozen=True)
class ScoredPath:
    """A candidate path and its score."""

    path: str
    score: int


def path_depth(path: str) -> int:
    """Number of '/' separators in a relative path."""
    return path.count("/")


def score_path(path: str) -> int:
    """
    Score a relative file path.

    score = (10 - depth) + 5 * matching keywords + 2 * matching extensions,
    with both matches computed on the lowercased path.
    """
    lower = path.lower()
    keyword_hits = sum(1 for kw in KEY_NAME_KEYWORDS if kw in lower)
    extension_hits = sum(1 for ext in SCORING_EXTENSIONS if lower.endswith(ext))
    return (
        DEPTH_BASE
        - path_depth(path)
        + KEYWORD_WEIGHT * keyword_hits
        + EXTENSION_WEIGHT * extension_hits
    )


def score_paths(flat_list: Iterable[FlatEntry | tuple[str, bool]]) -> list[ScoredPath]:
    """Score every file (directories are skipped), preserving input order."""
    return [ScoredPath(path, score_path(path)) for path, is_dir in flat_list if not is_dir]


def select_key_files(
    flat_list: Iterable[FlatEntry | tuple[str, bool]], max_count: int
) -> list[str]:
    """
    Pick up to max_count highest-scoring files.

    Args:
        flat_list: Pre-order (path, is_dir) entries
        max_count: Maximum number of paths to return

    Returns:
        Paths sorted by descending score; ties keep input order
    """
    if max_count <= 0:
        return []
    ranked = sorted(score_paths(flat_list), key=lambda sp: sp.score, reverse=True)
    return [sp.path for sp in ranked[:max_count]]


def is_text_like(path: str, registry: LanguageRegistry | None = None) -> bool:
    """True iff the path's extension (or exact name) is on the text allow-list."""
    return (registry or get_default_registry()).is_text_like(path)
