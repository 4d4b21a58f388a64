"""
Documentation synthesis service.

Builds a project-level document in three ordered stages:
1. Structure: one prompt over the rendered directory listing.
2. Per-file: a short summary for each selected key file.
3. Final: one prompt over the structure summary plus the per-file summaries,
   packed under a character budget.

Provider failures never abort a run: each stage falls back to a fixed
placeholder and the failure is logged.
"""

import asyncio
import logging
import posixpath
from typing import Awaitable, Callable, Optional

from repodoc.core.budget import assemble, summary_block, truncate_to_bytes
from repodoc.core.file_tree import FileNode, FlatEntry, flatten, render_structure
from repodoc.core.language_registry import LanguageRegistry, get_default_registry
from repodoc.core.manifest import extract_dependencies, is_manifest, setup_instructions_from_readme
from repodoc.core.selection import select_key_files
from repodoc.infrastructure.byte_store import ByteStoreError
from repodoc.infrastructure.text_client import ProviderError, TextClientInterface

from .models import FileAnalysisDoc, FinalDocument

logger = logging.getLogger(__name__)

ReadFile = Callable[[str], Awaitable[bytes]]

NO_DOCUMENTATION = "No documentation available."
STRUCTURE_HEADING = "# Project Structure Overview\n\n"
SUMMARIES_HEADING = "\n\n# Key File Summaries\n\n"

STRUCTURE_PROMPT = """You are an expert technical writer and software architect. Here is the file and folder structure of a software project:

{structure}

Please give a high-level architectural overview of how the folders and files relate to each other. Focus on helping a junior developer understand how this is structured and why. Include a diagram (ASCII or Mermaid if possible) that visually represents the architecture. Be concise and explicit, and output only the content and diagram."""

FILE_SUMMARY_PROMPT = """Here is the file `{path}` from a software project:

---
{content}
---

Summarize in 1-2 sentences, directly and explicitly, what this file does and how it fits into the project. Output only the summary, without markdown formatting."""

FINAL_PROMPT = """You are an expert technical writer, software architect, and educator. Your job is to generate the best possible documentation for this software project, specifically for junior developers and newcomers.

Below are the project structure overview and summaries of key files. Synthesize these into complete, beginner-friendly documentation that explains the architecture, file relationships, technology stack, developer flow, and learning tips. Use diagrams, Markdown formatting, and a welcoming, educational tone.

{summaries}

Now, generate the final documentation as described above."""


def no_summary_placeholder(path: str) -> str:
    return f"No summary available for {path}"


class DocumentationSynthesizer:
    """
    Composes a FinalDocument from a file tree and a byte reader.

    Args:
        client: Text client for all three stages
        registry: Language registry deciding which files are text
        key_file_count: Number of key files summarized in stage 2
        per_file_cap: Byte cap on the content sent for each key file
        synthesis_char_cap: Character ceiling for the stage 3 summaries
        omitted_preview: Omitted paths named in the stage 3 prompt
        max_concurrency: Stage 2 items prepared in parallel
    """

    def __init__(
        self,
        client: TextClientInterface,
        registry: Optional[LanguageRegistry] = None,
        key_file_count: int = 8,
        per_file_cap: int = 1000,
        synthesis_char_cap: int = 10000,
        omitted_preview: int = 5,
        max_concurrency: int = 4,
    ):
        self._client = client
        self._registry = registry or get_default_registry()
        self._key_file_count = key_file_count
        self._per_file_cap = per_file_cap
        self._synthesis_char_cap = synthesis_char_cap
        self._omitted_preview = omitted_preview
        self._max_concurrency = max(1, max_concurrency)

    async def synthesize(
        self, project_name: str, tree: list[FileNode], read_file: ReadFile
    ) -> FinalDocument:
        """
        Run the three stages and assemble the document.

        Args:
            project_name: Name placed on the document
            tree: Ordered node tree of the project
            read_file: Reads a file's bytes by its tree path

        Returns:
            FinalDocument; provider failures show up as placeholders
        """
        flat = flatten(tree)
        logger.info(f"Synthesizing documentation for {project_name} ({len(flat)} entries)")

        architecture = await self._summarize_structure(flat)

        key_files = self.select_key_files(flat)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        file_analyses = list(
            await asyncio.gather(
                *(self._summarize_file(path, read_file, semaphore) for path in key_files)
            )
        )

        dependencies: list[str] = []
        for doc in file_analyses:
            for dep in doc.dependencies:
                if dep not in dependencies:
                    dependencies.append(dep)

        setup_instructions = await self._setup_instructions(flat, read_file)
        description, omitted = await self._final_document(architecture, file_analyses)

        return FinalDocument(
            project_name=project_name,
            description=description,
            architecture=architecture,
            file_analyses=file_analyses,
            dependencies=dependencies,
            setup_instructions=setup_instructions,
            omitted_files=omitted,
        )

    def select_key_files(self, flat: list[FlatEntry]) -> list[str]:
        """Highest-scoring text files; binary files never reach a prompt."""
        text_files = [
            entry for entry in flat if not entry.is_dir and self._registry.is_text_like(entry.path)
        ]
        return select_key_files(text_files, self._key_file_count)

    async def _summarize_structure(self, flat: list[FlatEntry]) -> str:
        prompt = STRUCTURE_PROMPT.format(structure=render_structure(flat))
        try:
            return await self._client.complete(prompt)
        except ProviderError as e:
            logger.warning(f"Structure summary failed: {e}")
            return ""

    async def _summarize_file(
        self, path: str, read_file: ReadFile, semaphore: asyncio.Semaphore
    ) -> FileAnalysisDoc:
        doc = FileAnalysisDoc(path=path, name=posixpath.basename(path), description="")

        async with semaphore:
            try:
                data = await read_file(path)
            except (ByteStoreError, OSError) as e:
                logger.warning(f"Could not read {path}: {e}")
                doc.description = no_summary_placeholder(path)
                return doc

        if is_manifest(path):
            doc.dependencies = extract_dependencies(path, data.decode("utf-8", errors="replace"))

        prompt = FILE_SUMMARY_PROMPT.format(
            path=path, content=truncate_to_bytes(data, self._per_file_cap)
        )
        try:
            doc.description = await self._client.complete(prompt)
        except ProviderError as e:
            logger.warning(f"Summary failed for {path}: {e}")
            doc.description = no_summary_placeholder(path)
        if not doc.description:
            doc.description = no_summary_placeholder(path)
        return doc

    async def _setup_instructions(self, flat: list[FlatEntry], read_file: ReadFile) -> str:
        readme = next(
            (
                entry.path
                for entry in flat
                if not entry.is_dir and posixpath.basename(entry.path).lower() == "readme.md"
            ),
            None,
        )
        if readme is None:
            return ""
        try:
            content = (await read_file(readme)).decode("utf-8")
        except (ByteStoreError, OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read setup instructions from {readme}: {e}")
            return ""
        return setup_instructions_from_readme(content)

    async def _final_document(
        self, architecture: str, file_analyses: list[FileAnalysisDoc]
    ) -> tuple[str, list[str]]:
        preamble = f"{STRUCTURE_HEADING}{architecture}{SUMMARIES_HEADING}"
        packed = assemble(
            ((doc.path, doc.description) for doc in file_analyses),
            per_file_cap=self._synthesis_char_cap,
            cumulative_cap=self._synthesis_char_cap,
            preamble=preamble,
            omitted_preview=self._omitted_preview,
            block_format=summary_block,
        )
        if packed.omitted:
            logger.warning(f"{len(packed.omitted)} file summaries omitted from the final prompt")

        try:
            description = await self._client.complete(FINAL_PROMPT.format(summaries=packed.text))
        except ProviderError as e:
            logger.warning(f"Final documentation failed: {e}")
            description = NO_DOCUMENTATION
        return description or NO_DOCUMENTATION, packed.omitted
