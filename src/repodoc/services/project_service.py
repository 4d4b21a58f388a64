"""
Project service.

Caller-facing operations over uploaded projects: extract an archive into the
byte store, list its tree, read or analyze one file, document the whole
project and answer questions about it.
Projects live under the store prefix "extracted_{project_id}/", so a
persistent store keeps them across restarts.
"""

import logging
import uuid
from typing import Optional

from repodoc.core.archive_extractor import ArchiveExtractor, ExtractionError, sanitize_entry_name
from repodoc.core.budget import truncate_to_bytes
from repodoc.core.file_tree import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_NODES,
    FileNode,
    build_tree_from_store,
)
from repodoc.infrastructure.byte_store import ByteStoreError, ByteStoreInterface
from repodoc.infrastructure.text_client import TextClientInterface

from .analysis_cache import AnalysisCache
from .chat import build_chat_prompt
from .documentation_service import DocumentationSynthesizer
from .models import AnalysisRecord, FinalDocument, ProjectInfo

logger = logging.getLogger(__name__)

PROJECT_PREFIX = "extracted_"


class ProjectNotFoundError(KeyError):
    """Raised when a project id has no extracted tree in the store."""

    def __str__(self) -> str:
        return f"Project not found: {self.args[0]}" if self.args else "Project not found"


def project_key(project_id: str) -> str:
    return f"{PROJECT_PREFIX}{project_id}"


class ProjectService:
    """Uploads, lists, analyzes, documents and answers questions about stored projects."""

    def __init__(
        self,
        store: ByteStoreInterface,
        extractor: ArchiveExtractor,
        cache: AnalysisCache,
        synthesizer: DocumentationSynthesizer,
        client: TextClientInterface,
        analysis_file_cap: int = 10240,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_nodes: int = DEFAULT_MAX_NODES,
    ):
        self._store = store
        self._extractor = extractor
        self._cache = cache
        self._synthesizer = synthesizer
        self._client = client
        self._analysis_file_cap = analysis_file_cap
        self._max_depth = max_depth
        self._max_nodes = max_nodes

    async def upload_and_extract(self, data: bytes, filename: Optional[str] = None) -> ProjectInfo:
        """
        Extract an archive into the store under a fresh project id.

        Raises:
            ExtractionError: If the archive is invalid, unsafe or over the limits;
                anything already written for the project is removed first
        """
        project_id = uuid.uuid4().hex
        prefix = project_key(project_id)
        try:
            files = await self._extractor.extract_to_store(data, self._store, prefix)
        except ExtractionError:
            await self._discard(prefix)
            raise
        logger.info(f"Extracted {len(files)} files for project {project_id}")
        return ProjectInfo(project_id=project_id, original_filename=filename, extracted_files=files)

    async def list_projects(self) -> list[str]:
        """Ids of all projects in the store, sorted."""
        return [
            prefix[len(PROJECT_PREFIX):]
            for prefix in await self._store.list_prefixes()
            if prefix.startswith(PROJECT_PREFIX) and len(prefix) > len(PROJECT_PREFIX)
        ]

    async def list_tree(self, project_id: str) -> list[FileNode]:
        """
        Build the ordered file tree of a project.

        Raises:
            ProjectNotFoundError: If the project does not exist
            ByteStoreError: If a directory cannot be listed
            TreeLimitError: If the tree exceeds the depth or node limit
        """
        await self._require(project_id)
        return await build_tree_from_store(
            self._store, project_key(project_id), self._max_depth, self._max_nodes
        )

    async def read_file(self, project_id: str, path: str) -> bytes:
        """
        Read one file of a project.

        Raises:
            ProjectNotFoundError: If the project does not exist
            ValueError: If the path is empty once sanitized
            ByteStoreNotFoundError: If the file does not exist
        """
        await self._require(project_id)
        relative = sanitize_entry_name(path)
        if not relative:
            raise ValueError(f"Invalid file path: {path!r}")
        return await self._store.read(f"{project_key(project_id)}/{relative}")

    async def analyze_file(self, project_id: str, path: str) -> AnalysisRecord:
        """
        Analyze one file through the analysis cache.

        Raises:
            ProjectNotFoundError: If the project does not exist
            ValueError: If the path is invalid or the file is not UTF-8 text
            ByteStoreNotFoundError: If the file does not exist
            ProviderError: If the provider call fails
        """
        await self._require(project_id)
        relative = sanitize_entry_name(path)
        if not relative:
            raise ValueError(f"Invalid file path: {path!r}")

        data = await self.read_file(project_id, relative)
        try:
            data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValueError(f"File is not valid UTF-8 text: {relative}") from e

        content = truncate_to_bytes(data, self._analysis_file_cap)
        return await self._cache.analyze(relative, content)

    async def get_documentation(
        self, project_id: str, project_name: Optional[str] = None
    ) -> FinalDocument:
        """
        Document a project.

        Raises:
            ProjectNotFoundError: If the project does not exist
            ByteStoreError: If the tree cannot be listed
        """
        tree = await self.list_tree(project_id)

        async def read(path: str) -> bytes:
            return await self.read_file(project_id, path)

        return await self._synthesizer.synthesize(project_name or project_id, tree, read)

    async def ask(
        self,
        project_id: Optional[str],
        question: str,
        path: Optional[str] = None,
        project_name: Optional[str] = None,
    ) -> str:
        """
        Answer a question, with the project and optionally one of its files as context.

        Args:
            project_id: Project the question is about, or None for no context
            question: The user's question
            path: File being looked at; only used together with a project
            project_name: Name shown to the model; defaults to the project id

        Raises:
            ProjectNotFoundError: If the project does not exist
            ValueError: If the question is empty or the path is invalid
            ProviderError: If the provider call fails
        """
        if not question.strip():
            raise ValueError("Question must not be empty")

        file_path = None
        if project_id is not None:
            await self._require(project_id)
            if path is not None:
                file_path = sanitize_entry_name(path)
                if not file_path:
                    raise ValueError(f"Invalid file path: {path!r}")

        name = (project_name or project_id) if project_id is not None else None
        return await self._client.complete(build_chat_prompt(question, name, file_path))

    async def _discard(self, prefix: str) -> None:
        try:
            await self._store.delete_prefix(prefix)
        except ByteStoreError as e:
            logger.warning(f"Could not remove partial extraction {prefix}: {e}")

    async def _require(self, project_id: str) -> None:
        if not project_id.isalnum() or not await self._store.exists(project_key(project_id)):
            raise ProjectNotFoundError(project_id)
