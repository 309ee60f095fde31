"""Typer-based CLI for graph2md."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from . import __version__, config
from .config_manager import (
    ENV_VARS,
    RENDER_KEYS,
    ConfigError,
    clear_render_config,
    load_render_config,
    load_settings,
    save_render_config,
)
from .loader import split_input_paths
from .pipeline import OutputDirError, run

logger = logging.getLogger(__name__)

console = Console()

app = typer.Typer(
    help="📚 graph2md — render code-property graphs into per-entity Markdown pages.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Configuration group ──────────────────────────────────────
config_app = typer.Typer(
    help="⚙️  Configuration — repository name, URL and source-link template.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"graph2md v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """graph2md: one Markdown page per file, symbol, domain and directory."""
    pass


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command("generate")
def generate(
    inputs: Optional[List[str]] = typer.Option(
        None, "--input", "-i",
        help="Graph JSON file(s); comma-separated or repeated.",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="Output directory for Markdown files.",
    ),
    repo: Optional[str] = typer.Option(None, "--repo", help="Repository display name."),
    repo_url: Optional[str] = typer.Option(None, "--repo-url", help="Repository URL."),
    source_template: Optional[str] = typer.Option(
        None, "--source-template",
        help="Source link template using {repo_url} and {path}.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """📄 Render every entity of the input graph(s) to Markdown.

    [bold]Examples:[/bold]
      graph2md generate -i graph.json
      graph2md generate -i api.json,web.json -o site/data --repo my-repo
    """
    _setup_logging(verbose)

    paths = split_input_paths(inputs or [])
    if not paths:
        console.print("[red]--input is required[/red] (comma-separated paths to graph JSON files)")
        raise typer.Exit(code=1)

    try:
        settings = load_settings(
            repo_name=repo,
            repo_url=repo_url,
            source_template=source_template,
            output_dir=output,
        )
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Indexing graphs...", total=None)

        def on_phase1_done(site) -> None:
            progress.update(task, total=len(site.slugs), description="Rendering pages...")

        def on_written(_doc) -> None:
            progress.advance(task)

        try:
            stats = run(paths, settings, on_phase1_done=on_phase1_done, on_written=on_written)
        except OutputDirError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1)

    table = Table(title="graph2md", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Graphs loaded", str(stats.graphs_loaded))
    table.add_row("Graphs skipped", str(stats.graphs_skipped))
    table.add_row("Unique nodes", str(stats.nodes))
    table.add_row("Relationships", str(stats.relationships))
    table.add_row("Slugs", str(stats.slugs))
    table.add_row("Pages written", str(stats.written))
    if stats.failed:
        table.add_row("Write failures", f"[red]{stats.failed}[/red]")
    console.print(table)
    console.print(f"Generated {stats.written} entity files in [cyan]{settings.output_dir}[/cyan]")


@config_app.command("show")
def config_show():
    """Show effective render settings."""
    try:
        settings = load_settings()
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    stored = load_render_config()
    table = Table(title=f"Settings ({config.CONFIG_FILE})")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_column("Source", style="dim")
    for key in RENDER_KEYS:
        if os.environ.get(ENV_VARS[key]) is not None:
            source = "env"
        elif key in stored:
            source = "config"
        else:
            source = "default"
        table.add_row(key, str(getattr(settings, key)), source)
    console.print(table)


@config_app.command("set")
def config_set(
    repo: Optional[str] = typer.Option(None, "--repo", help="Repository display name."),
    repo_url: Optional[str] = typer.Option(None, "--repo-url", help="Repository URL."),
    source_template: Optional[str] = typer.Option(None, "--source-template", help="Source link template."),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Default output directory."),
):
    """Persist render settings to the config file."""
    if repo is None and repo_url is None and source_template is None and output is None:
        console.print("[yellow]Nothing to set.[/yellow]")
        raise typer.Exit(code=1)
    try:
        ok = save_render_config(
            repo_name=repo,
            repo_url=repo_url,
            source_template=source_template,
            output_dir=output,
        )
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    if not ok:
        console.print(f"[red]Could not write {config.CONFIG_FILE}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✅ Saved settings to {config.CONFIG_FILE}[/green]")


@config_app.command("reset")
def config_reset():
    """Remove stored render settings."""
    if not clear_render_config():
        console.print(f"[red]Could not write {config.CONFIG_FILE}[/red]")
        raise typer.Exit(code=1)
    console.print("[green]Render settings reset to defaults.[/green]")


if __name__ == "__main__":
    app()
