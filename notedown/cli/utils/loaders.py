"""Input loading helpers for the notedown CLI."""

import json
from pathlib import Path
from typing import Any, List, Optional

from notedown.models import ExtensionSpec, Note, NoteLibrary


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _looks_like_json(path: Path) -> bool:
    return path.suffix.lower() == ".json"


def load_note(path: Path, note_id: Optional[str] = None) -> Note:
    """Load a note from markdown, a single-note JSON, or a library export.

    Library exports (``{"docs": [...], "activeId": ...}``) yield ``note_id``
    when given, else the active note.
    """
    if not _looks_like_json(path):
        return Note(id=path.stem, title=path.stem, content=read_text(path))

    data: Any = json.loads(read_text(path))
    if isinstance(data, dict) and "docs" in data:
        library = NoteLibrary.model_validate(data)
        note = library.get(note_id) if note_id else library.active
        if note is None:
            raise ValueError(
                f"Note {note_id!r} not found" if note_id else "Library has no notes"
            )
        return note
    return Note.model_validate(data)


def load_specs(path: Path) -> List[ExtensionSpec]:
    """Load extension specs from JSON (a list, or ``{"markdownPlugins": [...]}``)
    or from a bare ``.py`` source file (one enabled spec named after the file).
    """
    if path.suffix.lower() == ".py":
        return [ExtensionSpec(id=path.stem, name=path.stem, code=read_text(path))]

    data: Any = json.loads(read_text(path))
    if isinstance(data, dict):
        data = data.get("markdownPlugins", data.get("markdown_plugins", []))
    if not isinstance(data, list):
        raise ValueError("Expected a list of extension specs")
    return [ExtensionSpec.model_validate(item) for item in data]
