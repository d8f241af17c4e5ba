"""Starter extension sources offered when a new plugin is created."""

from __future__ import annotations

from typing import Dict

TEMPLATE_BASIC = r'''# Example: custom markers + simple alignment
#
# 1) !hello! => adds letter spacing
# 2) -> Hello -> => right aligned block
#
# The script MUST end with: return { ... }

def transform(markdown, api):
    # Inline: !text!
    markdown = re.sub(
        r"!([^!\n\[\]]+)!", lambda m: api.inline(m.group(1), "spaced"), markdown
    )
    # Block: -> ... -> (whole line)
    markdown = re.sub(
        r"^->\s*(.*?)\s*->$",
        lambda m: api.block(m.group(1), "right"),
        markdown,
        flags=re.MULTILINE,
    )
    return markdown

return {
    "name": "My extensions",
    "css": """
    .spaced { letter-spacing: .14em; }
    .right  { text-align: right; }
    """,
    "transform": transform,
}
'''

TEMPLATE_MARK = r'''# Advanced example: register a markdown-it rule
# This creates a very small syntax: ==text== becomes <mark>text</mark>
#
# NOTE: this is just a demo. Prefer transform() for quick wins.

def mark_rule(state, silent):
    start = state.pos
    if state.src[start:start + 2] != "==":
        return False
    end = state.src.find("==", start + 2)
    if end == -1:
        return False
    if not silent:
        token = state.push("mark_open", "mark", 1)
        token.markup = "=="
        token = state.push("text", "", 0)
        token.content = state.src[start + 2:end]
        token = state.push("mark_close", "mark", -1)
        token.markup = "=="
    state.pos = end + 2
    return True

def use(md):
    md.inline.ruler.before("emphasis", "mark", mark_rule)

return {
    "name": "Mark",
    "css": "mark { padding: 0 .18em; border-radius: .35em; background: rgba(255,255,255,.12); }",
    "sanitize": {"add_tags": ["mark"]},
    "use": use,
}
'''

TEMPLATES: Dict[str, str] = {
    "basic": TEMPLATE_BASIC,
    "mark": TEMPLATE_MARK,
}
