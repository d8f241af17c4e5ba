"""
Note-level helpers built on the pipeline: one call from a note (or raw text
plus specs) to sanitized HTML, the aggregate stylesheet and per-spec errors,
plus a standalone page wrapper for export.

These are thin, testable wrappers; they perform no file I/O.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Dict, Iterable, Optional, Tuple, Union

from ..domain import RenderResult
from ..models import ExtensionSpec, Note
from .blocks import normalize_content
from .code_blocks import theme_stylesheet
from .css_scope import scope_css
from .options import DEFAULT_CONFIG, RenderConfig
from .plugins import CompileResult, SpecLike, compile_plugins
from .renderer import render_markdown

LOGGER = logging.getLogger(__name__)

_NOTE_ID_STRIP_RE = re.compile(r"[^\w-]", re.ASCII)


def note_scope_class(note_id: str) -> str:
    """CSS class that roots one note's styles: ``note-scope-<sanitized id>``."""
    return "note-scope-" + _NOTE_ID_STRIP_RE.sub("", str(note_id))


def style_element_css(css_text: Optional[str]) -> str:
    """CSS made safe to embed in a ``<style>`` element.

    Every ``<`` becomes the CSS escape ``\\3c ``, so user stylesheets cannot
    close the element and open markup of their own.
    """
    return (css_text or "").replace("<", "\\3c ")


def note_stylesheet(
    custom_css: Optional[str], plugin_css: Optional[str], root_selector: str
) -> str:
    """The note's custom CSS followed by plugin CSS, scoped under ``root_selector``."""
    combined = "\n\n".join(c for c in (custom_css, plugin_css) if c)
    if not combined.strip():
        return ""
    return scope_css(combined, root_selector)


def _spec_fingerprint(specs: Iterable[SpecLike]) -> Tuple[Tuple[str, bool, str], ...]:
    out = []
    for s in specs:
        if isinstance(s, ExtensionSpec):
            out.append((s.id, s.enabled, s.code))
        else:
            out.append(
                (str(s.get("id")), bool(s.get("enabled", True)), str(s.get("code") or ""))
            )
    return tuple(out)


def render_note(
    note_or_text: Union[Note, str],
    specs: Optional[Iterable[SpecLike]] = None,
    *,
    custom_css: Optional[str] = None,
    scope_selector: Optional[str] = None,
    config: Optional[RenderConfig] = None,
    compiled: Optional[CompileResult] = None,
) -> RenderResult:
    """Compile, render and style a note in one call.

    ``stylesheet`` on the result is the note's scoped stylesheet (custom CSS
    plus plugin CSS) when a scope selector is known, otherwise the raw
    aggregate plugin stylesheet.
    """
    cfg = config or DEFAULT_CONFIG
    if isinstance(note_or_text, Note):
        text = note_or_text.content
        if specs is None:
            specs = note_or_text.markdown_plugins
        if custom_css is None:
            custom_css = note_or_text.custom_css
        if scope_selector is None:
            scope_selector = f".{note_scope_class(note_or_text.id)}"
    else:
        text = note_or_text

    result = compiled or compile_plugins(specs or (), cfg)
    body = render_markdown(normalize_content(text), result.handle, cfg)
    if scope_selector:
        stylesheet = note_stylesheet(custom_css, result.stylesheet, scope_selector)
    else:
        stylesheet = result.stylesheet
    return RenderResult(html=body, stylesheet=stylesheet, errors=result.errors)


def render_note_page(
    title: str,
    html_fragment: str,
    extra_css: str = "",
    root_class: Optional[str] = None,
    config: Optional[RenderConfig] = None,
) -> str:
    """Wrap a rendered fragment in a standalone HTML document.

    ``extra_css`` is expected to be scoped already (see ``note_stylesheet``);
    the code theme is scoped to the page root here.
    """
    cfg = config or DEFAULT_CONFIG
    root = root_class or cfg.page_root_class
    code_css = scope_css(theme_stylesheet(cfg), f".{root}")
    return (
        '<!doctype html><meta charset="utf-8">'
        '<meta name="color-scheme" content="light dark">'
        f"<title>{html.escape(title or '')}</title>"
        "<style>"
        "body{font-family:-apple-system,BlinkMacSystemFont,Segoe UI,Roboto,Helvetica,Arial,sans-serif;line-height:1.5;background:#fff;color:#111;margin:2rem auto;max-width:48rem;padding:0 1rem}"
        "pre{white-space:pre-wrap}"
        "blockquote{margin:.5em 0 .5em 1em;padding-left:.8em;border-left:3px solid #ddd}"
        "img{max-width:100%;height:auto}"
        "table{border-collapse:collapse;margin:.5rem 0}"
        "td,th{border:1px solid #ccc;padding:.25rem .5rem;vertical-align:top}"
        f".{cfg.code_wrapper_class}{{position:relative;margin:.75rem 0}}"
        f".{cfg.code_pre_class}{{padding:.75rem 1rem;border-radius:.5rem;background:#f6f8fa;overflow:auto}}"
        "@media (prefers-color-scheme: dark){"
        "body{background:#111;color:#eee}"
        "a{color:#8ab4f8}"
        "blockquote{border-left-color:#444}"
        "td,th{border-color:#555}"
        f".{cfg.code_pre_class}{{background:#1b1b1b}}"
        "}"
        f"{style_element_css(code_css)}\n{style_element_css(extra_css)}</style>"
        f'<div class="{html.escape(root)}">{html_fragment}</div>'
    )


class NoteRenderer:
    """Renders notes, reusing the compiled handle while the spec set is unchanged."""

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self._cache_key: Optional[Tuple] = None
        self._compiled: Optional[CompileResult] = None

    def compile(self, specs: Iterable[SpecLike]) -> CompileResult:
        specs = list(specs or ())
        key = _spec_fingerprint(specs)
        if self._compiled is None or key != self._cache_key:
            LOGGER.debug("notedown.exporter.recompile specs=%d", len(specs))
            self._compiled = compile_plugins(specs, self.config)
            self._cache_key = key
        return self._compiled

    def render(self, note: Note) -> RenderResult:
        compiled = self.compile(note.markdown_plugins)
        return render_note(note, config=self.config, compiled=compiled)

    def render_text(self, raw_text: str, specs: Iterable[SpecLike] = ()) -> str:
        return render_markdown(raw_text, self.compile(specs).handle, self.config)

    def render_full_page(self, note: Note) -> str:
        """Render ``note`` into a complete HTML document."""
        result = self.render(note)
        return render_note_page(
            note.title,
            result.html,
            extra_css=result.stylesheet,
            root_class=note_scope_class(note.id),
            config=self.config,
        )

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._compiled.errors) if self._compiled else {}
