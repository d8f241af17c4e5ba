"""Public API for the notedown rendering pipeline."""

from .domain import AllowListAdditions, CompiledExtension, RenderResult
from .models import ExtensionSpec, Note, NoteLibrary
from .rendering.blocks import join_blocks, split_blocks
from .rendering.css_scope import scope_css
from .rendering.exporter import (
    NoteRenderer,
    note_scope_class,
    note_stylesheet,
    render_note,
    render_note_page,
)
from .rendering.md_highlight import highlight_markdown
from .rendering.options import RenderConfig
from .rendering.plugins import CompileResult, PluginRuntime, compile_plugins
from .rendering.renderer import MarkdownRenderer, render_markdown

__version__ = "0.3.0"

__all__ = [
    "compile_plugins",
    "render_markdown",
    "highlight_markdown",
    "scope_css",
    "render_note",
    "render_note_page",
    "note_scope_class",
    "note_stylesheet",
    "split_blocks",
    "join_blocks",
    "NoteRenderer",
    "MarkdownRenderer",
    "RenderConfig",
    "RenderResult",
    "CompileResult",
    "PluginRuntime",
    "CompiledExtension",
    "AllowListAdditions",
    "ExtensionSpec",
    "Note",
    "NoteLibrary",
]
