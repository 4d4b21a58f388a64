"""
Result models shared by the repodoc services.
"""

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True, eq=False)
class AnalysisRecord:
    """
    Analysis of one (path, content) pair.

    Identity is the content_key digest: two records are equal iff their keys
    match, whatever the other fields hold.
    """

    language: str
    purpose: str
    dependencies: tuple[str, ...]
    timestamp: str
    raw_content: str
    content_key: str

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnalysisRecord):
            return NotImplemented
        return self.content_key == other.content_key

    def __hash__(self) -> int:
        return hash(self.content_key)

    def to_dict(self, include_content: bool = False) -> dict:
        data = {
            "language": self.language,
            "purpose": self.purpose,
            "dependencies": list(self.dependencies),
            "timestamp": self.timestamp,
            "content_key": self.content_key,
        }
        if include_content:
            data["raw_content"] = self.raw_content
        return data


@dataclass
class FileAnalysisDoc:
    """Summary of one key file in the final document."""

    path: str
    name: str
    description: str
    dependencies: list[str] = field(default_factory=list)


@dataclass
class FinalDocument:
    """Project-level documentation assembled by the synthesizer."""

    project_name: str
    description: str
    architecture: str
    file_analyses: list[FileAnalysisDoc] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    setup_instructions: str = ""
    omitted_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    def to_markdown(self) -> str:
        """Render the document as a single Markdown page."""
        lines = [f"# {self.project_name}", "", self.description.strip(), ""]
        if self.architecture:
            lines += ["## Architecture", "", self.architecture.strip(), ""]
        if self.file_analyses:
            lines += ["## Key Files", ""]
            for doc in self.file_analyses:
                lines += [f"### `{doc.path}`", "", doc.description.strip(), ""]
        if self.dependencies:
            lines += ["## Dependencies", ""]
            lines += [f"- {dep}" for dep in self.dependencies]
            lines.append("")
        if self.setup_instructions:
            lines += ["## Setup", "", self.setup_instructions.strip(), ""]
        if self.omitted_files:
            lines += ["## Omitted From Synthesis", ""]
            lines += [f"- `{path}`" for path in self.omitted_files]
            lines.append("")
        return "\n".join(lines)


@dataclass
class ProjectInfo:
    """Result of uploading an archive."""

    project_id: str
    original_filename: str | None
    extracted_files: list[str] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.extracted_files)
