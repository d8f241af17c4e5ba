"""Highlight command for the notedown CLI."""

from pathlib import Path

import typer
from rich.console import Console

from notedown.cli.utils import loaders
from notedown.rendering.md_highlight import highlight_markdown

app = typer.Typer(help="Annotate raw markdown for a live-edit overlay")
console = Console()


@app.callback(invoke_without_command=True)
def main(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Markdown file"),
):
    """Print the markdown source escaped and wrapped in md-* spans."""
    try:
        text = loaders.read_text(source)
        console.print(highlight_markdown(text), markup=False, highlight=False, soft_wrap=True)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)
