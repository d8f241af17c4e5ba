"""Construction of the markdown-it parser used by a runtime handle."""

from __future__ import annotations

from typing import Optional

from markdown_it import MarkdownIt
from markdown_it.common.utils import unescapeAll

from .code_blocks import render_code_region
from .options import DEFAULT_CONFIG, RenderConfig


def _fence_language(info: str) -> str:
    info = unescapeAll(info).strip() if info else ""
    return info.split(maxsplit=1)[0] if info else ""


def create_parser(config: Optional[RenderConfig] = None) -> MarkdownIt:
    """Return a fresh parser with highlighted code-region rendering installed.

    Every call builds a new instance: plugins register rules on the parser
    they are given, so parsers are never shared between runtime handles.
    """
    cfg = config or DEFAULT_CONFIG
    md = MarkdownIt("js-default", cfg.markdown_options())

    def render_fence(self, tokens, idx, options, env):
        token = tokens[idx]
        return render_code_region(token.content, _fence_language(token.info), cfg) + "\n"

    def render_code_block(self, tokens, idx, options, env):
        return render_code_region(tokens[idx].content, "", cfg) + "\n"

    md.add_render_rule("fence", render_fence)
    md.add_render_rule("code_block", render_code_block)
    return md
