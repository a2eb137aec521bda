"""Typer CLI: build, init commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cssforge import __version__

app = typer.Typer(
    name="cssforge",
    help="Compile nested style descriptions into deduplicated CSS.",
    no_args_is_help=True,
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"cssforge v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version.", callback=_version_callback, is_eager=True
    ),
) -> None:
    """cssforge - style descriptions to CSS."""


@app.command()
def init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
    project_dir: Path = typer.Option(Path.cwd(), "--dir", help="Project directory"),
) -> None:
    """Write a default .cssforge/config.json."""
    from cssforge.config import DEFAULT_CONFIG, save_config, validate_config
    from cssforge.utils import deep_merge, load_json

    console.print(Panel("[bold]cssforge init[/bold]", style="blue"))

    config_path = project_dir / ".cssforge" / "config.json"
    if config_path.exists() and not force:
        config = deep_merge(DEFAULT_CONFIG, load_json(config_path))
        console.print("  [yellow]Merged with existing config[/yellow]")
    else:
        config = DEFAULT_CONFIG.copy()
        console.print("  [green]Created default config[/green]")

    errors = validate_config(config)
    if errors:
        for e in errors:
            console.print(f"  [red]Config error: {e}[/red]")
        raise typer.Exit(1)

    save_config(config, project_dir)
    console.print(f"  Config: [cyan]{config_path}[/cyan]")


@app.command()
def build(
    source: Path = typer.Argument(..., help="YAML or JSON style document"),
    out: Path = typer.Option(None, "--out", "-o", help="Stylesheet to write (default: print)"),
    prefix: str = typer.Option(None, "--prefix", help="Identifier prefix"),
    minify_output: bool = typer.Option(False, "--minify", help="Collapse whitespace"),
    project_dir: Path = typer.Option(Path.cwd(), "--dir", help="Project directory"),
) -> None:
    """Compile a style document into a stylesheet."""
    from cssforge.config import load_config, validate_config
    from cssforge.document import build_document, load_document
    from cssforge.manager import StyleManager
    from cssforge.sink import FileSink, MemorySink

    if not source.exists():
        console.print(f"[red]Source not found: {source}[/red]")
        raise typer.Exit(1)

    config = load_config(project_dir)
    if prefix is not None:
        config["identifier_prefix"] = prefix
    if minify_output:
        config["minify"] = True
    errors = validate_config(config)
    if errors:
        for e in errors:
            console.print(f"[red]Config error: {e}[/red]")
        raise typer.Exit(1)

    if out is not None:
        if out.exists():
            out.unlink()
        sink = FileSink(out)
    else:
        sink = MemorySink()

    manager = StyleManager(config, sink=sink)
    document = load_document(source)
    if not document:
        console.print(f"[red]Empty or unreadable document: {source}[/red]")
        raise typer.Exit(1)

    result = build_document(document, manager)
    if not result.ok:
        for e in result.errors:
            console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if isinstance(sink, MemorySink):
        console.print(sink.render(), markup=False, highlight=False, soft_wrap=True)

    table = Table(title="Identifiers")
    table.add_column("Kind", width=10)
    table.add_column("Name")
    table.add_column("Identifier", style="cyan")
    for name, identifier in result.keyframes.items():
        table.add_row("keyframes", name, identifier)
    for name, identifier in result.styles.items():
        table.add_row("style", name, identifier)
    console.print(table)

    info = manager.cache_info()
    console.print(
        f"[bold]Built:[/bold] {info.styles} styles, {info.keyframes} keyframes, "
        f"{info.total_size} bytes"
    )
    if out is not None:
        console.print(f"[green]Stylesheet written to:[/green] {out}")
