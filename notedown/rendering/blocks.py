"""Block model used by the editor: a note is edited one paragraph group at a time."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

_BLOCK_SPLIT_RE = re.compile(r"\n{2,}")


def normalize_content(content: Optional[str]) -> str:
    return str(content or "").replace("\r\n", "\n")


def split_blocks(content: Optional[str]) -> List[str]:
    """Split on runs of two or more newlines; single newlines stay in a block."""
    parts = _BLOCK_SPLIT_RE.split(normalize_content(content))
    return parts or [""]


def join_blocks(blocks: Iterable[str]) -> str:
    return "\n\n".join(blocks)
