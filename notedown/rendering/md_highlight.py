"""
Markdown source highlighting for the live-edit overlay.

Not a markdown parser: it marks up a few common constructs so authors can
see the effect of their syntax while typing in a plain text area. The output
is the HTML-escaped source with presentational ``md-*`` spans added. Text is
kept as written, except that the spacing after heading, quote and list
markers is normalized to one space.
"""

from __future__ import annotations

import html
import re
from typing import Callable, List, Optional, Tuple

_FENCE_RE = re.compile(r"^(\s*)(`{3}|~{3})\s*(.*)$")
_HEADING_RE = re.compile(r"^(\s*)(#{1,6})\s+(.+)$")
_QUOTE_RE = re.compile(r"^(\s*)>\s?(.*)$")
_LIST_RE = re.compile(r"^(\s*)([-+*]|\d+\.)\s+(.*)$")

# Inline constructs, matched against already-escaped text.
_CODE_SPAN_RE = re.compile(r"`([^`]*)`")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_UNDERSCORE_RE = re.compile(r"(?<!\w)_([^_]+)_(?!\w)")
_ITALIC_STAR_RE = re.compile(r"(?<![\w*])\*([^*]+)\*(?![\w*])")
_STRIKE_RE = re.compile(r"~~([^~]+)~~")


def escape_html(text: str) -> str:
    return html.escape(text, quote=True)


def _span(cls: str, inner: str) -> str:
    return f'<span class="{cls}">{inner}</span>'


def _sym(marker: str) -> str:
    return _span("md-sym", marker)


def _wrapped(marker: str, cls: str) -> Callable[[re.Match[str]], str]:
    def repl(m: re.Match[str]) -> str:
        return f"{_sym(marker)}{_span(cls, m.group(1))}{_sym(marker)}"

    return repl


class _Slots:
    """Masks regex matches behind opaque placeholders until restore()."""

    def __init__(self, tag: str):
        self._tag = tag
        self._rendered: List[Tuple[str, str]] = []

    def mask(
        self, text: str, pattern: re.Pattern[str], render: Callable[[re.Match[str]], str]
    ) -> str:
        def repl(m: re.Match[str]) -> str:
            key = f"\x00{self._tag}{len(self._rendered)}\x00"
            self._rendered.append((key, render(m)))
            return key

        return pattern.sub(repl, text)

    def restore(self, text: str) -> str:
        for key, rendered in self._rendered:
            text = text.replace(key, rendered)
        return text


def _render_code_span(m: re.Match[str]) -> str:
    return f"{_sym('&#96;')}{_span('md-code', m.group(1))}{_sym('&#96;')}"


def _render_link(m: re.Match[str]) -> str:
    return (
        f"{_sym('[')}{_span('md-link-text', m.group(1))}{_sym(']')}"
        f"{_sym('(')}{_span('md-link-url', m.group(2))}{_sym(')')}"
    )


def highlight_inline(escaped: str) -> str:
    """Highlight inline constructs in an already-escaped line.

    Code spans and links are masked before emphasis runs so markers inside
    them are never read as formatting; they are restored links first, code
    last (a link label may hold a masked code span).
    """
    code = _Slots("C")
    out = code.mask(escaped, _CODE_SPAN_RE, _render_code_span)
    links = _Slots("L")
    out = links.mask(out, _LINK_RE, _render_link)

    out = _BOLD_RE.sub(_wrapped("**", "md-bold"), out)
    out = _ITALIC_UNDERSCORE_RE.sub(_wrapped("_", "md-italic"), out)
    out = _ITALIC_STAR_RE.sub(_wrapped("*", "md-italic"), out)
    out = _STRIKE_RE.sub(_wrapped("~~", "md-strike"), out)

    out = links.restore(out)
    return code.restore(out)


def _marked_line(indent: str, marker: str, cls: str, rest: str) -> str:
    return (
        f"{escape_html(indent)}{_sym(marker)} "
        f"{_span(cls, highlight_inline(escape_html(rest)))}"
    )


def highlight_line(line: str) -> str:
    """Highlight a single line that is known to sit outside a fence."""
    m = _HEADING_RE.match(line)
    if m:
        return _marked_line(m.group(1), escape_html(m.group(2)), "md-heading", m.group(3))
    m = _QUOTE_RE.match(line)
    if m:
        return _marked_line(m.group(1), "&gt;", "md-quote", m.group(2))
    m = _LIST_RE.match(line)
    if m:
        return _marked_line(m.group(1), escape_html(m.group(2)), "md-list", m.group(3))
    return highlight_inline(escape_html(line))


def highlight_markdown(raw_text: str) -> str:
    """Return ``raw_text`` escaped and annotated with ``md-*`` spans."""
    out: List[str] = []
    open_fence: Optional[str] = None
    for line in (raw_text or "").split("\n"):
        m = _FENCE_RE.match(line)
        if m and (open_fence is None or m.group(2) == open_fence):
            indent, marker, lang = m.groups()
            open_fence = marker if open_fence is None else None
            lang_html = f" {_span('md-fence-lang', escape_html(lang))}" if lang else ""
            out.append(f"{escape_html(indent)}{_span('md-fence', marker)}{lang_html}")
            continue
        if open_fence is not None:
            out.append(_span("md-codeblock", escape_html(line)))
            continue
        out.append(highlight_line(line))
    return "\n".join(out)
