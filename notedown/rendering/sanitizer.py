"""
Allow-list HTML sanitization for rendered notes.

The working allow-list is built in two ordered passes:
  1. union the baseline prose tags/attributes with every plugin request
  2. subtract a fixed denylist of script-execution vectors

The denylist is applied last and is not configurable, so no plugin request
can re-admit ``<script>``, inline event handlers, or ``javascript:`` URLs.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional

from bleach.sanitizer import Cleaner
from bleach.css_sanitizer import CSSSanitizer

from ..domain import AllowListAdditions
from .options import DEFAULT_CONFIG, RenderConfig

LOGGER = logging.getLogger(__name__)

BASE_TAGS: FrozenSet[str] = frozenset(
    {
        "a", "abbr", "b", "blockquote", "br", "caption", "cite", "code",
        "dd", "del", "details", "div", "dl", "dt", "em", "figcaption",
        "figure", "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i", "img",
        "ins", "kbd", "li", "ol", "p", "pre", "q", "s", "samp", "small",
        "span", "strong", "sub", "summary", "sup", "table", "tbody", "td",
        "tfoot", "th", "thead", "tr", "u", "ul", "var",
    }
)

BASE_GLOBAL_ATTRIBUTES: FrozenSet[str] = frozenset(
    {"class", "id", "title", "lang", "dir", "data-lang"}
)

BASE_TAG_ATTRIBUTES: Dict[str, FrozenSet[str]] = {
    "a": frozenset({"href", "name", "rel", "target"}),
    "abbr": frozenset({"title"}),
    "img": frozenset({"src", "alt", "width", "height"}),
    "ol": frozenset({"start", "type"}),
    "td": frozenset({"colspan", "rowspan", "style"}),
    "th": frozenset({"colspan", "rowspan", "style", "scope"}),
    "details": frozenset({"open"}),
    "q": frozenset({"cite"}),
    "blockquote": frozenset({"cite"}),
}

# Never admitted, whatever a plugin asks for.
DENIED_TAGS: FrozenSet[str] = frozenset(
    {
        "script", "style", "iframe", "frame", "frameset", "object", "embed",
        "applet", "base", "meta", "link", "form", "noscript", "template",
        "svg", "math", "portal",
    }
)
DENIED_ATTRIBUTES: FrozenSet[str] = frozenset(
    {"srcdoc", "formaction", "action", "xlink:href", "http-equiv"}
)

ALLOWED_CSS_PROPERTIES: FrozenSet[str] = frozenset(
    {
        "text-align", "color", "background-color", "font-weight",
        "font-style", "text-decoration", "letter-spacing", "vertical-align",
    }
)

_TAG_NAME_RE = re.compile(r"^[a-z][a-z0-9-]*$")
_ATTR_NAME_RE = re.compile(r"^[a-z_:][-a-z0-9_:.]*$")
_NAME_COLLECTIONS = (list, tuple, set, frozenset)


def is_denied_attribute(name: str) -> bool:
    n = name.lower()
    return n.startswith("on") or n in DENIED_ATTRIBUTES


def _name_list(names: object) -> Iterable[object]:
    if isinstance(names, _NAME_COLLECTIONS):
        return names
    if names:
        LOGGER.debug("notedown.sanitizer.bad_name_list %s", type(names).__name__)
    return ()


def clean_tag_names(names: Iterable[object]) -> FrozenSet[str]:
    out = set()
    for name in _name_list(names):
        if not isinstance(name, str):
            continue
        n = name.strip().lower()
        if _TAG_NAME_RE.match(n):
            out.add(n)
        else:
            LOGGER.debug("notedown.sanitizer.bad_tag_name %r", name)
    return frozenset(out)


def clean_attribute_names(names: Iterable[object]) -> FrozenSet[str]:
    out = set()
    for name in _name_list(names):
        if not isinstance(name, str):
            continue
        n = name.strip().lower()
        if _ATTR_NAME_RE.match(n):
            out.add(n)
        else:
            LOGGER.debug("notedown.sanitizer.bad_attribute_name %r", name)
    return frozenset(out)


@dataclass(frozen=True)
class AllowList:
    tags: FrozenSet[str] = BASE_TAGS
    attributes: FrozenSet[str] = BASE_GLOBAL_ATTRIBUTES
    tag_attributes: Dict[str, FrozenSet[str]] = field(
        default_factory=lambda: dict(BASE_TAG_ATTRIBUTES)
    )

    def allows_attribute(self, tag: str, name: str) -> bool:
        n = name.lower()
        if is_denied_attribute(n):
            return False
        if n in self.attributes:
            return True
        return n in self.tag_attributes.get(tag, frozenset())


def build_allow_list(requests: Iterable[AllowListAdditions] = ()) -> AllowList:
    """Union the baseline with plugin requests, then subtract the denylist."""
    tags = set(BASE_TAGS)
    attributes = set(BASE_GLOBAL_ATTRIBUTES)
    for req in requests:
        tags |= req.tags
        attributes |= req.attributes

    tags -= DENIED_TAGS
    attributes = {a for a in attributes if not is_denied_attribute(a)}
    return AllowList(tags=frozenset(tags), attributes=frozenset(attributes))


BASE_ALLOW_LIST = build_allow_list()


def sanitize_html(
    html_text: str,
    allow_list: Optional[AllowList] = None,
    config: Optional[RenderConfig] = None,
) -> str:
    """Strip everything outside ``allow_list`` from ``html_text``."""
    allow = allow_list or BASE_ALLOW_LIST
    cfg = config or DEFAULT_CONFIG

    def attribute_filter(tag: str, name: str, value: str) -> bool:
        return allow.allows_attribute(tag, name)

    cleaner = Cleaner(
        tags=allow.tags,
        attributes=attribute_filter,
        protocols=frozenset(cfg.allowed_protocols),
        strip=True,
        strip_comments=True,
        css_sanitizer=CSSSanitizer(allowed_css_properties=ALLOWED_CSS_PROPERTIES),
    )
    return cleaner.clean(html_text or "")
