"""
Unit tests for the documentation synthesizer.
"""

import asyncio
import json
import re

import pytest

from repodoc.core.file_tree import build_tree_from_store
from repodoc.infrastructure.byte_store import ByteStoreNotFoundError
from repodoc.infrastructure.fakes import InMemoryByteStore, StubTextClient
from repodoc.infrastructure.text_client import UnavailableError
from repodoc.services.documentation_service import (
    NO_DOCUMENTATION,
    DocumentationSynthesizer,
    no_summary_placeholder,
)

FILES = {
    "README.md": b"# Demo\n\nIntro.\n\n## Installation\n\nRun `npm install`.\n\n## Usage\n\nnpm start\n",
    "package.json": json.dumps({"dependencies": {"react": "^18"}, "devDependencies": {"vite": "5"}}).encode(),
    "src/main.ts": b"import React from 'react';\n",
    "src/app.config.json": b"{}",
    "assets/logo.png": b"\x89PNG\r\n\x1a\n",
}

_FILE_IN_PROMPT = re.compile(r"Here is the file `([^`]+)`")


def default_responder(prompt: str) -> str:
    if "file and folder structure" in prompt:
        return "A small web app."
    if "generate the final documentation" in prompt:
        return "FINAL DOC"
    return f"Summary of {_FILE_IN_PROMPT.search(prompt).group(1)}"


def build_project(files=FILES):
    store = InMemoryByteStore()

    async def setup():
        for path, data in files.items():
            await store.write(f"p/{path}", data)
        return await build_tree_from_store(store, "p")

    tree = asyncio.run(setup())

    async def read_file(path: str) -> bytes:
        return await store.read(f"p/{path}")

    return store, tree, read_file


class TestSynthesize:
    def test_full_document(self):
        _, tree, read_file = build_project()
        client = StubTextClient(default_responder)

        doc = asyncio.run(DocumentationSynthesizer(client).synthesize("demo", tree, read_file))

        assert doc.project_name == "demo"
        assert doc.architecture == "A small web app."
        assert doc.description == "FINAL DOC"
        paths = [f.path for f in doc.file_analyses]
        assert "assets/logo.png" not in paths
        assert set(paths) == {"README.md", "package.json", "src/main.ts", "src/app.config.json"}
        for analysis in doc.file_analyses:
            assert analysis.description == f"Summary of {analysis.path}"
        assert doc.dependencies == ["react", "vite"]
        assert doc.setup_instructions == "Run `npm install`."
        assert doc.omitted_files == []

    def test_key_files_follow_selection_order(self):
        _, tree, read_file = build_project()

        doc = asyncio.run(
            DocumentationSynthesizer(StubTextClient(default_responder), key_file_count=2).synthesize(
                "demo", tree, read_file
            )
        )

        # app.config.json: depth 1, "app" + "config", .json -> 21
        # README.md: depth 0, "readme", .md -> 17
        assert [f.path for f in doc.file_analyses] == ["src/app.config.json", "README.md"]

    def test_final_prompt_structure(self):
        _, tree, read_file = build_project()
        client = StubTextClient(default_responder)

        asyncio.run(DocumentationSynthesizer(client).synthesize("demo", tree, read_file))

        final_prompt = client.prompts[-1]
        assert "# Project Structure Overview\n\nA small web app.\n\n# Key File Summaries\n\n" in final_prompt
        assert "## `README.md`\nSummary of README.md\n\n" in final_prompt
        # Structure listing rendered with directory markers
        assert "[DIR] src\n" in client.prompts[0]
        assert "      src/main.ts\n" in client.prompts[0]

    def test_per_file_content_truncated(self):
        files = {"main.py": b"a" * 5000}
        _, tree, read_file = build_project(files)
        client = StubTextClient(default_responder)

        asyncio.run(DocumentationSynthesizer(client, per_file_cap=1000).synthesize("x", tree, read_file))

        file_prompt = next(p for p in client.prompts if "Summarize in 1-2 sentences" in p)
        assert "a" * 1000 in file_prompt
        assert "a" * 1001 not in file_prompt

    def test_synthesis_budget_omits_summaries(self):
        _, tree, read_file = build_project()
        client = StubTextClient(default_responder)

        doc = asyncio.run(
            DocumentationSynthesizer(client, synthesis_char_cap=120).synthesize("demo", tree, read_file)
        )

        assert doc.omitted_files
        assert set(doc.omitted_files) < {f.path for f in doc.file_analyses}
        assert "omitted due to size limits" in client.prompts[-1]


class TestDegradation:
    def test_provider_failures_use_placeholders(self):
        _, tree, read_file = build_project()

        def failing(prompt: str) -> str:
            raise UnavailableError("provider down")

        doc = asyncio.run(DocumentationSynthesizer(StubTextClient(failing)).synthesize("demo", tree, read_file))

        assert doc.architecture == ""
        assert doc.description == NO_DOCUMENTATION
        for analysis in doc.file_analyses:
            assert analysis.description == no_summary_placeholder(analysis.path)
        # Manifest parsing does not depend on the provider
        assert doc.dependencies == ["react", "vite"]

    def test_single_file_failure(self):
        _, tree, read_file = build_project()

        def flaky(prompt: str) -> str:
            if "Here is the file `src/main.ts`" in prompt:
                raise UnavailableError("timeout")
            return default_responder(prompt)

        doc = asyncio.run(DocumentationSynthesizer(StubTextClient(flaky)).synthesize("demo", tree, read_file))

        by_path = {f.path: f.description for f in doc.file_analyses}
        assert by_path["src/main.ts"] == "No summary available for src/main.ts"
        assert by_path["README.md"] == "Summary of README.md"
        assert doc.description == "FINAL DOC"

    def test_unreadable_file_gets_placeholder(self):
        _, tree, read_file = build_project()

        async def broken_read(path: str) -> bytes:
            if path == "package.json":
                raise ByteStoreNotFoundError(path)
            return await read_file(path)

        doc = asyncio.run(
            DocumentationSynthesizer(StubTextClient(default_responder)).synthesize("demo", tree, broken_read)
        )

        by_path = {f.path: f for f in doc.file_analyses}
        assert by_path["package.json"].description == no_summary_placeholder("package.json")
        assert doc.dependencies == []

    def test_no_readme(self):
        _, tree, read_file = build_project({"main.rs": b"fn main() {}"})

        doc = asyncio.run(
            DocumentationSynthesizer(StubTextClient(default_responder)).synthesize("x", tree, read_file)
        )

        assert doc.setup_instructions == ""

    def test_readme_without_setup_section_used_whole(self):
        _, tree, read_file = build_project({"docs/readme.md": b"Just text.\n"})

        doc = asyncio.run(
            DocumentationSynthesizer(StubTextClient(default_responder)).synthesize("x", tree, read_file)
        )

        assert doc.setup_instructions == "Just text."


@pytest.mark.asyncio
async def test_empty_project():
    doc = await DocumentationSynthesizer(StubTextClient(default_responder)).synthesize(
        "empty", [], lambda path: None
    )

    assert doc.file_analyses == []
    assert doc.description == "FINAL DOC"
