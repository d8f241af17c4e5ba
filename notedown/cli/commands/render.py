"""Render command for the notedown CLI."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from notedown.cli.utils import loaders
from notedown.models import ExtensionSpec
from notedown.rendering.exporter import NoteRenderer, note_scope_class, style_element_css
from notedown.rendering.options import RenderConfig

app = typer.Typer(help="Render a note to sanitized HTML")
console = Console()
err_console = Console(stderr=True)


@app.callback(invoke_without_command=True)
def main(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Markdown or note JSON"),
    plugins: List[Path] = typer.Option(
        [], "--plugins", "-p", exists=True, dir_okay=False,
        help="Extension specs (.json list or .py source); repeatable",
    ),
    css: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Custom stylesheet"),
    note_id: Optional[str] = typer.Option(None, "--note-id", help="Note to pick from a library export"),
    page: bool = typer.Option(False, "--page", help="Emit a standalone HTML document"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file"),
):
    """Render a note (markdown text or exported JSON) to HTML."""
    try:
        note = loaders.load_note(source, note_id)
        extra_specs: List[ExtensionSpec] = []
        for path in plugins:
            extra_specs.extend(loaders.load_specs(path))
        updates = {}
        if extra_specs:
            updates["markdown_plugins"] = list(note.markdown_plugins) + extra_specs
        if css is not None:
            updates["custom_css"] = loaders.read_text(css)
        if updates:
            note = note.model_copy(update=updates)

        renderer = NoteRenderer(RenderConfig.from_env())
        if page:
            out = renderer.render_full_page(note)
        else:
            result = renderer.render(note)
            out = result.html
            if result.stylesheet:
                out = f"<style>{style_element_css(result.stylesheet)}</style>\n" + (
                    f'<div class="{note_scope_class(note.id)}">{out}</div>'
                )

        for spec_id, message in renderer.errors.items():
            err_console.print(f"[yellow]Plugin {escape(spec_id)}:[/yellow] {escape(message)}")

        if output:
            output.write_text(out, encoding="utf-8")
            err_console.print(f"Wrote [bold]{output}[/bold]")
        else:
            console.print(out, markup=False, highlight=False, soft_wrap=True)
    except Exception as e:
        err_console.print(f"[bold red]Error:[/bold red] {str(e)}")
        raise typer.Exit(1)
