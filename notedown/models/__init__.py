"""Public exports for note data models."""

from __future__ import annotations

from .dto import ExtensionSpec, Note, NoteLibrary

__all__ = [
    "ExtensionSpec",
    "Note",
    "NoteLibrary",
]
