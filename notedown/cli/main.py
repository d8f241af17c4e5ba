#!/usr/bin/env python
"""Command line interface for notedown."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from notedown.cli.commands import highlight, plugins, render, scope
from notedown.rendering.options import RenderConfig

app = typer.Typer(help="Render, highlight and style markdown notes")
console = Console()

# Add command groups
app.add_typer(render.app, name="render")
app.add_typer(highlight.app, name="highlight")
app.add_typer(scope.app, name="scope")
app.add_typer(plugins.app, name="plugins")


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logs"),
):
    """Markdown note rendering pipeline: extensions, sanitizing, scoped styles."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                show_time=True,
                log_time_format="%H:%M:%S",
            )
        ],
    )
    if verbose or RenderConfig.from_env().debug:
        logging.getLogger("notedown").setLevel(logging.DEBUG)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
