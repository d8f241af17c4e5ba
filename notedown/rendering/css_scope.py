"""
Scope a stylesheet so it only applies inside a given root selector.

Lightweight on purpose (no CSS parser at runtime) but handles:
  - normal rules: ``.a, .b { ... }``
  - nested grouping at-rules: ``@media`` / ``@supports`` / ``@container`` / ``@layer``
  - ``:root`` / ``html`` / ``body`` / ``:host`` mapped onto the root selector

``@keyframes``, ``@font-face`` and ``@property`` blocks (and any at-rule we do
not recognize) are passed through unchanged. Input is user-authored styling,
so malformed text yields best-effort output instead of raising.
"""

from __future__ import annotations

import logging
import re
from typing import List

LOGGER = logging.getLogger(__name__)

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

_SCOPABLE_AT_RULES = ("@media", "@supports", "@container", "@layer")
_PASSTHROUGH_AT_RULES = ("@keyframes", "@font-face", "@property")
_VENDOR_KEYFRAMES_RE = re.compile(r"^@-[a-z]+-keyframes\b")

# Global-ish selectors users write to style the whole surface.
_ROOT_TOKENS = (":root", ":host", "html", "body")


def _at_rule_name(header: str) -> str:
    m = re.match(r"@[-\w]+", header)
    return m.group(0).lower() if m else "@"


def _is_scopable_at_rule(header: str) -> bool:
    return _at_rule_name(header) in _SCOPABLE_AT_RULES


def _is_passthrough_at_rule(header: str) -> bool:
    name = _at_rule_name(header)
    return name in _PASSTHROUGH_AT_RULES or bool(_VENDOR_KEYFRAMES_RE.match(name))


def _starts_with_token(selector: str, token: str) -> bool:
    """True when ``selector`` begins with ``token`` on an identifier boundary."""
    if not selector.startswith(token):
        return False
    rest = selector[len(token):]
    return not rest or not (rest[0].isalnum() or rest[0] in "-_")


def split_selector_list(selector_text: str) -> List[str]:
    """Split a selector list on commas that are not inside ``()`` or ``[]``."""
    parts: List[str] = []
    buf: List[str] = []
    paren = bracket = 0
    for ch in selector_text:
        if ch == "(" and bracket == 0:
            paren += 1
        elif ch == ")" and bracket == 0:
            paren = max(0, paren - 1)
        elif ch == "[":
            bracket += 1
        elif ch == "]":
            bracket = max(0, bracket - 1)

        if ch == "," and paren == 0 and bracket == 0:
            parts.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
    tail = "".join(buf).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def scope_selector(selector: str, root_selector: str) -> str:
    sel = selector.strip()
    if not sel:
        return sel
    for token in _ROOT_TOKENS:
        if _starts_with_token(sel, token):
            return (root_selector + sel[len(token):]).strip()
    if _starts_with_token(sel, root_selector):
        return sel
    return f"{root_selector} {sel}".strip()


def scope_selectors(selector_text: str, root_selector: str) -> str:
    return ", ".join(
        scope_selector(sel, root_selector)
        for sel in split_selector_list(selector_text)
    )


def _find_block_end(source: str, brace: int) -> int:
    """Index just past the ``}`` matching ``source[brace]``, or -1 if unmatched."""
    depth = 0
    for j in range(brace, len(source)):
        ch = source[j]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return j + 1
    return -1


def _scope_blocks(source: str, root_selector: str) -> str:
    out: List[str] = []
    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        if ch.isspace():
            out.append(ch)
            i += 1
            continue
        if ch == "}":
            # stray closer
            i += 1
            continue

        brace = source.find("{", i)
        semi = source.find(";", i)
        if ch == "@" and semi != -1 and (brace == -1 or semi < brace):
            # statement at-rule: @import ...; @charset ...;
            out.append(source[i:semi + 1])
            i = semi + 1
            continue
        if brace == -1:
            out.append(source[i:])
            break

        header = source[i:brace].strip()
        end = _find_block_end(source, brace)
        if end == -1:
            LOGGER.debug("notedown.css_scope.unmatched_brace at=%d", brace)
            body = source[brace + 1:]
            end = n
        else:
            body = source[brace + 1:end - 1]

        if header.startswith("@"):
            if _is_scopable_at_rule(header):
                out.append(f"{header}{{{_scope_blocks(body, root_selector)}}}")
            else:
                # keyframes/font-face/property and unknown at-rules stay as-is
                out.append(f"{header}{{{body}}}")
        else:
            out.append(f"{scope_selectors(header, root_selector)}{{{body}}}")
        i = end
    return "".join(out)


def scope_css(css_text: str, root_selector: str) -> str:
    """Rewrite ``css_text`` so every rule applies only inside ``root_selector``."""
    css = (css_text or "").strip()
    root = (root_selector or "").strip()
    if not css:
        return ""
    if not root:
        return css
    return _scope_blocks(_COMMENT_RE.sub("", css), root)
