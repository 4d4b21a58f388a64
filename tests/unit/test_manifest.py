"""
Unit tests for manifest and README parsing.
"""

import json

import pytest

from repodoc.core.manifest import (
    extract_dependencies,
    extract_markdown_section,
    is_manifest,
    setup_instructions_from_readme,
)


class TestExtractDependencies:
    def test_package_json(self):
        content = json.dumps(
            {
                "dependencies": {"react": "^18", "axios": "1"},
                "devDependencies": {"vite": "5", "react": "^18"},
            }
        )

        assert extract_dependencies("web/package.json", content) == ["react", "axios", "vite"]

    def test_cargo_toml(self):
        content = '[package]\nname = "x"\n\n[dependencies]\nserde = "1"\ntokio = { version = "1" }\n'

        assert extract_dependencies("Cargo.toml", content) == ["serde", "tokio"]

    def test_pyproject(self):
        content = '[project]\nname = "x"\ndependencies = ["httpx>=0.27", "pyyaml"]\n'

        assert extract_dependencies("pyproject.toml", content) == ["httpx", "pyyaml"]

    def test_poetry_skips_python(self):
        content = '[tool.poetry.dependencies]\npython = "^3.11"\nrich = "*"\n'

        assert extract_dependencies("pyproject.toml", content) == ["rich"]

    def test_go_mod(self):
        content = (
            "module example.com/x\n\n"
            "require github.com/single/dep v1.0.0\n\n"
            "require (\n\tgithub.com/a/b v1.2.3\n\tgolang.org/x/c v0.1.0 // indirect\n)\n"
        )

        assert extract_dependencies("go.mod", content) == [
            "github.com/single/dep",
            "github.com/a/b",
            "golang.org/x/c",
        ]

    def test_requirements(self):
        content = "# pinned\nrequests==2.31\n-r other.txt\n\nnumpy>=1.0  # math\n"

        assert extract_dependencies("requirements.txt", content) == ["requests", "numpy"]

    @pytest.mark.parametrize(
        "path, content",
        [
            ("package.json", '{"dependencies": {"react"'),
            ("package.json", "[1, 2]"),
            ("Cargo.toml", "[dependencies\nserde ="),
            ("main.py", "import os"),
        ],
    )
    def test_unparsable_or_unknown(self, path, content):
        assert extract_dependencies(path, content) == []

    def test_is_manifest(self):
        assert is_manifest("a/b/Cargo.toml")
        assert is_manifest("package.json")
        assert not is_manifest("src/main.rs")


class TestMarkdownSection:
    README = (
        "# Project\n\nIntro.\n\n"
        "## Installation\n\npip install x\n\n### From source\n\nmake\n\n"
        "## Usage\n\nrun it\n"
    )

    def test_section_includes_subsections(self):
        assert extract_markdown_section(self.README) == "pip install x\n\n### From source\n\nmake"

    def test_no_matching_heading(self):
        assert extract_markdown_section("# Title\n\nbody\n") is None

    def test_custom_headings(self):
        assert extract_markdown_section(self.README, headings=("usage",)) == "run it"

    def test_setup_falls_back_to_whole_readme(self):
        assert setup_instructions_from_readme("  Just text.\n") == "Just text."
        assert setup_instructions_from_readme(self.README).startswith("pip install x")
