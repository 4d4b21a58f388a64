"""
CLI for repodoc.

Provides a command-line interface for extracting project archives, browsing
their files, generating documentation and asking questions about them.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from repodoc.core.config import configure_logging, load_config
from repodoc.core.file_tree import FileNode
from repodoc.services import ServicesContainer, create_services

# Initialize Rich Console
console = Console()

app = typer.Typer(
    name="repodoc",
    help="RepoDoc - Generate beginner-friendly documentation for project archives",
    add_completion=False,
)

_options: dict[str, Optional[Path]] = {"config": None, "storage": None}


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to a YAML or JSON configuration file"
    ),
    storage: Optional[Path] = typer.Option(
        None, "--storage", "-s", help="Directory holding extracted projects"
    ),
):
    """Load .env, configuration and logging before any command runs."""
    load_dotenv()
    _options["config"] = config
    _options["storage"] = storage


def get_services() -> ServicesContainer:
    """Create services from the --config/--storage options and the environment."""
    cfg = load_config(_options["config"])
    handler = RichHandler(console=console, show_path=False) if console.is_terminal else None
    configure_logging(cfg.logging, handler=handler)
    return create_services(config=cfg, storage_root=_options["storage"])


async def _run(services: ServicesContainer, coro):
    try:
        return await coro
    finally:
        await services.close()


def _add_nodes(branch: Tree, nodes: list[FileNode]) -> None:
    for node in nodes:
        if node.is_dir:
            child = branch.add(f"[bold blue]{node.name}/[/bold blue]")
            _add_nodes(child, node.children)
        else:
            branch.add(node.name)


@app.command()
def extract(
    archive: Path = typer.Argument(..., help="Zip archive of the project"),
):
    """Extract a project archive into the store."""
    if not archive.is_file():
        console.print(f"[bold red]Error:[/bold red] Archive not found: {archive}")
        raise typer.Exit(1)

    try:
        services = get_services()
        data = archive.read_bytes()
        console.print(f"[bold blue]Extracting[/bold blue] {archive}...")
        info = asyncio.run(
            _run(services, services.projects.upload_and_extract(data, filename=archive.name))
        )

        summary = Table.grid(padding=1)
        summary.add_column(style="bold")
        summary.add_column()
        summary.add_row("Project ID:", info.project_id)
        summary.add_row("Archive:", info.original_filename or "-")
        summary.add_row("Files:", str(info.file_count))
        console.print(
            Panel(
                summary,
                title="[bold green]Extraction Complete[/bold green]",
                border_style="green",
                expand=False,
            )
        )

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def projects():
    """List extracted projects."""
    try:
        services = get_services()
        ids = asyncio.run(_run(services, services.projects.list_projects()))

        if not ids:
            console.print("[yellow]No projects found.[/yellow]")
            return

        table = Table(title="Projects")
        table.add_column("Project ID", style="cyan")
        for project_id in ids:
            table.add_row(project_id)
        console.print(table)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def tree(
    project_id: str = typer.Argument(..., help="Project ID returned by extract"),
    as_json: bool = typer.Option(False, "--json", help="Print the tree as JSON"),
):
    """Show the file tree of a project."""
    try:
        services = get_services()
        nodes = asyncio.run(_run(services, services.projects.list_tree(project_id)))

        if as_json:
            console.print_json(json.dumps([node.to_dict() for node in nodes]))
            return

        root = Tree(f"[bold]{project_id}[/bold]")
        _add_nodes(root, nodes)
        console.print(root)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def analyze(
    project_id: str = typer.Argument(..., help="Project ID returned by extract"),
    path: str = typer.Argument(..., help="File path inside the project"),
    as_json: bool = typer.Option(False, "--json", help="Print the analysis as JSON"),
):
    """Analyze a single file of a project."""
    try:
        services = get_services()
        record = asyncio.run(_run(services, services.projects.analyze_file(project_id, path)))

        if as_json:
            console.print_json(json.dumps(record.to_dict()))
            return

        details = Table.grid(padding=1)
        details.add_column(style="bold")
        details.add_column()
        details.add_row("Language:", record.language)
        details.add_row("Dependencies:", ", ".join(record.dependencies) or "-")
        details.add_row("Analyzed:", record.timestamp)
        console.print(Panel(details, title=f"[bold]{path}[/bold]", expand=False))
        console.print(record.purpose)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def show(
    project_id: str = typer.Argument(..., help="Project ID returned by extract"),
    path: str = typer.Argument(..., help="File path inside the project"),
    line_numbers: bool = typer.Option(False, "--line-numbers", "-l", help="Number the lines"),
):
    """Print the contents of a project file."""
    try:
        services = get_services()
        data = asyncio.run(_run(services, services.projects.read_file(project_id, path)))

        try:
            code = data.decode("utf-8")
        except UnicodeDecodeError:
            console.print(f"[yellow]{path} is a binary file ({len(data)} bytes).[/yellow]")
            return

        lexer = Syntax.guess_lexer(path, code)
        console.print(Syntax(code, lexer, line_numbers=line_numbers, word_wrap=True))

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask"),
    project_id: Optional[str] = typer.Option(
        None, "--project", "-p", help="Project the question is about"
    ),
    path: Optional[str] = typer.Option(
        None, "--file", "-f", help="File being looked at (requires --project)"
    ),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Project name"),
):
    """Ask a question, optionally about a project or one of its files."""
    if path and not project_id:
        console.print("[bold red]Error:[/bold red] --file requires --project")
        raise typer.Exit(1)

    try:
        services = get_services()
        answer = asyncio.run(
            _run(
                services,
                services.projects.ask(project_id, question, path=path, project_name=name),
            )
        )
        console.print(Markdown(answer))

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def document(
    project_id: str = typer.Argument(..., help="Project ID returned by extract"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the document to this file"
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of Markdown"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Project name"),
):
    """Generate project documentation."""
    try:
        services = get_services()
        console.print(f"[bold blue]Documenting[/bold blue] {project_id}...")
        doc = asyncio.run(
            _run(services, services.projects.get_documentation(project_id, project_name=name))
        )

        rendered = json.dumps(doc.to_dict(), indent=2) if as_json else doc.to_markdown()
        if output:
            output.write_text(rendered, encoding="utf-8")
            console.print(f"[green]Documentation written to {output}[/green]")
        elif as_json:
            console.print_json(rendered)
        else:
            console.print(Markdown(rendered))

        if doc.omitted_files:
            console.print(
                f"[yellow]{len(doc.omitted_files)} file summaries did not fit "
                f"in the synthesis prompt.[/yellow]"
            )

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def config(
    as_json: bool = typer.Option(False, "--json", help="Print as JSON instead of YAML"),
):
    """Show the effective configuration (API key masked)."""
    try:
        cfg = load_config(_options["config"])
        if cfg.provider.api_key:
            cfg.provider.api_key = "***"
        console.print(cfg.to_json() if as_json else cfg.to_yaml())
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
