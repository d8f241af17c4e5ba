from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict


def _env_extra_mode(default: str = "ignore") -> str:
    """
    Determine the extra-mode from environment vars.

    NOTEDOWN_EXTRA: allow|forbid|ignore
    Convenience booleans: "true/1/on" -> forbid (strict), "false/0/off" -> allow
    """
    raw = (os.getenv("NOTEDOWN_EXTRA") or default).strip().lower()

    if raw in {"allow", "forbid", "ignore"}:
        return raw

    if raw in {"1", "true", "yes", "on", "strict"}:
        return "forbid"
    if raw in {"0", "false", "no", "off", "lenient"}:
        return "allow"

    return default


_EXTRA = _env_extra_mode()


class NoteModel(BaseModel):
    """
    Project-wide base model.

    Documents come from the editor's own exports, which grow fields over time,
    so unknown keys are ignored by default. Switch at runtime by setting an
    env var before import:
      export NOTEDOWN_EXTRA=forbid   # or allow/ignore
    """

    model_config = ConfigDict(
        extra=_EXTRA,
        populate_by_name=True,
    )


__all__ = ["NoteModel", "_env_extra_mode"]
