"""Note and extension documents as persisted by the editor."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator

from ._base import NoteModel


class ExtensionSpec(NoteModel):
    """A user-authored markdown extension attached to one note."""

    id: str
    """Unique per note."""

    name: str = ""
    """Display name in the settings surface."""

    enabled: bool = True
    """Specs without an explicit flag count as enabled."""

    code: str = ""
    """Python source; opaque until compiled. Must ``return`` an object."""

    @field_validator("code", mode="before")
    @classmethod
    def _none_code_is_empty(cls, v):
        return "" if v is None else v


class Note(NoteModel):
    """A single note: raw markdown plus its per-note styling and extensions."""

    id: str
    title: str = ""
    content: str = ""
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    imported_from: Optional[str] = Field(default=None, alias="importedFrom")
    custom_css: Optional[str] = Field(default=None, alias="customCss")
    markdown_plugins: List[ExtensionSpec] = Field(
        default_factory=list, alias="markdownPlugins"
    )

    @field_validator("markdown_plugins", mode="before")
    @classmethod
    def _none_plugins_is_empty(cls, v):
        return [] if v is None else v

    @property
    def enabled_plugins(self) -> List[ExtensionSpec]:
        return [p for p in self.markdown_plugins if p.enabled]


class NoteLibrary(NoteModel):
    """The editor's exported store: every note plus the active one."""

    docs: List[Note] = Field(default_factory=list)
    active_id: Optional[str] = Field(default=None, alias="activeId")

    def get(self, note_id: str) -> Optional[Note]:
        for note in self.docs:
            if note.id == note_id:
                return note
        return None

    @property
    def active(self) -> Optional[Note]:
        if self.active_id:
            found = self.get(self.active_id)
            if found is not None:
                return found
        return self.docs[0] if self.docs else None
