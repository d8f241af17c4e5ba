"""Scope command for the notedown CLI."""

from pathlib import Path

import typer
from rich.console import Console

from notedown.cli.utils import loaders
from notedown.rendering.css_scope import scope_css

app = typer.Typer(help="Scope a stylesheet under a root selector")
console = Console()


@app.callback(invoke_without_command=True)
def main(
    stylesheet: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSS file"),
    root: str = typer.Option(".app-root", "--root", "-r", help="Root selector"),
):
    """Print the stylesheet with every rule constrained to ROOT."""
    try:
        css = loaders.read_text(stylesheet)
        console.print(scope_css(css, root), markup=False, highlight=False, soft_wrap=True)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)
