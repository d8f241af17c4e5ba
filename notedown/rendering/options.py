"""
Render configuration for note HTML output.

Centralizes behavior flags so callers can tune defaults without touching
core logic. All fields are optional at call sites; None means "use current
module defaults and/or environment fallbacks".
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional, Tuple


def _env_flag(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass(frozen=True)
class RenderConfig:
    # Logging/debug
    debug: bool = False

    # markdown-it options (mirrors the editor's parser setup)
    html: bool = True
    linkify: bool = True
    typographer: bool = True
    breaks: bool = False

    # Code blocks: wrapper class and Pygments style used for theme CSS
    code_wrapper_class: str = "codewrap"
    code_pre_class: str = "hljs-pre"
    pygments_style: str = "default"
    # Smallest snippet worth running language auto-detection on
    autodetect_min_chars: int = 12

    # URL schemes kept by the sanitizer (relative URLs are always kept)
    allowed_protocols: Tuple[str, ...] = ("http", "https", "mailto", "tel")

    # Root class used by render_note_page when no scope selector is given
    page_root_class: str = "note-content"

    @classmethod
    def from_env(cls, base: Optional["RenderConfig"] = None) -> "RenderConfig":
        """Apply NOTEDOWN_* environment overrides on top of ``base``."""
        cfg = base or cls()
        return replace(cfg, debug=_env_flag("NOTEDOWN_DEBUG", cfg.debug))

    def markdown_options(self) -> dict:
        return {
            "html": self.html,
            "linkify": self.linkify,
            "typographer": self.typographer,
            "breaks": self.breaks,
        }


DEFAULT_CONFIG = RenderConfig()
