"""
Pure markdown renderer for note text.

Pipeline per call: plugin preprocessors -> markdown-it parse (with plugin
rules and highlighted code regions) -> allow-list sanitization. No I/O and
no state between calls beyond the handle's compile-time rule table.
"""

from __future__ import annotations

import html
import logging
from functools import lru_cache
from typing import Iterable, Optional

from .options import DEFAULT_CONFIG, RenderConfig
from .plugins import PluginRuntime, SpecLike, compile_plugins
from .sanitizer import sanitize_html

LOGGER = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def base_runtime(config: RenderConfig = DEFAULT_CONFIG) -> PluginRuntime:
    """Plugin-free handle for ``config``; shared, read-only."""
    return compile_plugins((), config).handle


def render_plaintext(text: str) -> str:
    """Last-resort rendering: the escaped source, verbatim."""
    return f"<pre>{html.escape(text or '')}</pre>"


def render_markdown(
    raw_text: str,
    handle: Optional[PluginRuntime] = None,
    config: Optional[RenderConfig] = None,
) -> str:
    """Render ``raw_text`` to sanitized HTML. Never raises."""
    runtime = handle or base_runtime(config or DEFAULT_CONFIG)
    cfg = config or runtime.config
    source = raw_text or ""
    text = runtime.preprocess(source)

    try:
        rendered = runtime.md.render(text)
    except Exception as e:
        LOGGER.warning("notedown.render.parse_fail %s", e)
        try:
            rendered = base_runtime(cfg).md.render(text)
        except Exception as e2:
            LOGGER.warning("notedown.render.base_parse_fail %s", e2)
            return render_plaintext(source)

    try:
        return sanitize_html(rendered, runtime.allow_list, cfg)
    except Exception as e:
        LOGGER.warning("notedown.render.sanitize_fail %s", e)
        return render_plaintext(source)


class MarkdownRenderer:
    """Class-based interface: compile once, render many times."""

    def __init__(
        self,
        specs: Iterable[SpecLike] = (),
        config: Optional[RenderConfig] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        result = compile_plugins(specs, self.config)
        self.handle = result.handle
        self.stylesheet = result.stylesheet
        self.errors = result.errors

    def render(self, raw_text: str) -> str:
        return render_markdown(raw_text, self.handle, self.config)
