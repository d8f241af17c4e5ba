"""Extension (plugin) commands for the notedown CLI."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from notedown.cli.utils import loaders
from notedown.rendering.plugins import compile_plugins
from notedown.rendering.templates import TEMPLATES

app = typer.Typer(help="Extension spec commands")
console = Console()


@app.command("check")
def check(
    specs_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Specs JSON or .py source"),
):
    """Compile extension specs and report per-spec status."""
    try:
        specs = loaders.load_specs(specs_path)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)

    if not specs:
        console.print("No extension specs found")
        return

    result = compile_plugins(specs)
    table = Table("ID", "Name", "Enabled", "Status")
    for spec in specs:
        if not spec.enabled:
            status = "[dim]disabled[/dim]"
        elif spec.id in result.errors:
            status = f"[red]{escape(result.errors[spec.id])}[/red]"
        else:
            status = "[green]ok[/green]"
        table.add_row(escape(spec.id), escape(spec.name), "yes" if spec.enabled else "no", status)
    console.print(table)

    if result.stylesheet:
        console.rule("stylesheet")
        console.print(result.stylesheet, markup=False, highlight=False, soft_wrap=True)
    if result.errors:
        raise typer.Exit(1)


@app.command("template")
def template(
    name: str = typer.Argument("basic", help=f"One of: {', '.join(TEMPLATES)}"),
):
    """Print a starter extension source."""
    source = TEMPLATES.get(name)
    if source is None:
        console.print(f"[bold red]Error:[/bold red] Unknown template {name!r}")
        raise typer.Exit(1)
    console.print(source, markup=False, highlight=False, soft_wrap=True)
