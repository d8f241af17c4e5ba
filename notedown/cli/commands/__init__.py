"""Command modules for the notedown CLI."""

# Import all command modules here for easy access
from notedown.cli.commands import highlight, plugins, render, scope

# Explicitly define what's exported
__all__ = ["highlight", "plugins", "render", "scope"]
