"""
Core Layer - Archive extraction, file trees, selection, budgeting and response cleanup.
"""

from repodoc.core.archive_extractor import (
    ArchiveEntry,
    ArchiveExtractor,
    ExtractionError,
    extract,
    resolve_inside,
    sanitize_entry_name,
)
from repodoc.core.budget import (
    COMPACT_FILE_CAP,
    EXTENDED_FILE_CAP,
    BudgetedAssembly,
    ContentBudget,
    assemble,
    truncate_to_bytes,
)
from repodoc.core.config import (
    CacheConfig,
    ExtractionConfig,
    LoggingConfig,
    ProviderConfig,
    RepoDocConfig,
    SelectionConfig,
    StorageConfig,
    TreeConfig,
    configure_logging,
    load_config,
)
from repodoc.core.file_tree import (
    FileNode,
    FlatEntry,
    TreeLimitError,
    build_tree,
    build_tree_from_store,
    flatten,
    render_structure,
)
from repodoc.core.language_registry import LanguageRegistry, get_default_registry
from repodoc.core.manifest import extract_dependencies, setup_instructions_from_readme
from repodoc.core.sanitizer import ResponseSanitizer, SanitizerRules, sanitize_response
from repodoc.core.selection import ScoredPath, is_text_like, score_path, select_key_files

__all__ = [
    # Archive extraction
    "ArchiveEntry",
    "ArchiveExtractor",
    "ExtractionError",
    "extract",
    "resolve_inside",
    "sanitize_entry_name",
    # Budgeting
    "COMPACT_FILE_CAP",
    "EXTENDED_FILE_CAP",
    "BudgetedAssembly",
    "ContentBudget",
    "assemble",
    "truncate_to_bytes",
    # Config
    "RepoDocConfig",
    "ProviderConfig",
    "ExtractionConfig",
    "TreeConfig",
    "SelectionConfig",
    "CacheConfig",
    "StorageConfig",
    "LoggingConfig",
    "load_config",
    "configure_logging",
    # File tree
    "FileNode",
    "FlatEntry",
    "TreeLimitError",
    "build_tree",
    "build_tree_from_store",
    "flatten",
    "render_structure",
    # Languages
    "LanguageRegistry",
    "get_default_registry",
    # Manifests
    "extract_dependencies",
    "setup_instructions_from_readme",
    # Sanitizer
    "ResponseSanitizer",
    "SanitizerRules",
    "sanitize_response",
    # Selection
    "ScoredPath",
    "is_text_like",
    "score_path",
    "select_key_files",
]
