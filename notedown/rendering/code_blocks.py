"""
Syntax highlighting for fenced and indented code regions.

Language resolution: the fence info string when Pygments knows it, otherwise
Pygments' auto-detection. Highlighting never raises past this module; any
lexer/formatter failure falls back to the escaped source text.

Each region is wrapped in a container carrying the resolved language as
``data-lang`` so the host can add a copy affordance next to it.
"""

from __future__ import annotations

import html
import logging
from typing import Optional, Tuple

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.lexers.special import TextLexer
from pygments.util import ClassNotFound
from tinyhtml import h, raw

from .options import DEFAULT_CONFIG, RenderConfig

LOGGER = logging.getLogger(__name__)

PLAINTEXT = "plaintext"


def _lexer_language(lexer: Lexer) -> str:
    aliases = getattr(lexer, "aliases", None) or []
    if aliases:
        return aliases[0]
    return (getattr(lexer, "name", "") or PLAINTEXT).lower()


def resolve_lexer(
    code: str, lang: str = "", config: Optional[RenderConfig] = None
) -> Optional[Lexer]:
    """Pick a lexer for ``code``; None means render as plain text."""
    cfg = config or DEFAULT_CONFIG
    if lang:
        try:
            return get_lexer_by_name(lang)
        except ClassNotFound:
            LOGGER.debug("notedown.code.unknown_lang lang=%s", lang)
    if len(code.strip()) < cfg.autodetect_min_chars:
        return None
    try:
        lexer = guess_lexer(code)
    except ClassNotFound:
        return None
    except Exception as e:
        LOGGER.debug("notedown.code.guess_fail %s", e)
        return None
    if isinstance(lexer, TextLexer):
        return None
    return lexer


def highlight_code(
    code: str, lang: str = "", config: Optional[RenderConfig] = None
) -> Tuple[str, str]:
    """Return ``(inner_html, resolved_language)`` for a code region."""
    lexer = resolve_lexer(code, lang, config)
    if lexer is None:
        return html.escape(code), PLAINTEXT
    try:
        body = highlight(code, lexer, HtmlFormatter(nowrap=True))
    except Exception as e:
        LOGGER.debug("notedown.code.highlight_fail lang=%s %s", lang, e)
        return html.escape(code), PLAINTEXT
    return body, _lexer_language(lexer)


def render_code_region(
    code: str, lang: str = "", config: Optional[RenderConfig] = None
) -> str:
    cfg = config or DEFAULT_CONFIG
    body, resolved = highlight_code(code, lang, cfg)
    return h(
        "div", **{"class": cfg.code_wrapper_class, "data-lang": resolved}
    )(
        h("pre", **{"class": cfg.code_pre_class})(
            h("code", **{"class": f"language-{resolved}"})(raw(body))
        )
    ).render()


def theme_stylesheet(config: Optional[RenderConfig] = None) -> str:
    """Pygments token CSS for the configured style, rooted at the code wrapper."""
    cfg = config or DEFAULT_CONFIG
    try:
        formatter = HtmlFormatter(style=cfg.pygments_style)
    except ClassNotFound:
        LOGGER.debug("notedown.code.unknown_style %s", cfg.pygments_style)
        formatter = HtmlFormatter()
    return formatter.get_style_defs(f".{cfg.code_wrapper_class}")
