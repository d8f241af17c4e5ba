# notedown/domain.py
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, FrozenSet, Mapping, Optional


@dataclass(frozen=True)
class AllowListAdditions:
    """Extra tag/attribute names a plugin asks the sanitizer to keep."""

    tags: FrozenSet[str] = frozenset()
    attributes: FrozenSet[str] = frozenset()

    def __bool__(self) -> bool:
        return bool(self.tags or self.attributes)


@dataclass(frozen=True)
class CompiledExtension:
    """Runtime view of one successfully evaluated extension spec."""

    spec_id: str
    name: Optional[str] = None
    stylesheet: Optional[str] = None
    transform: Optional[Callable[..., Any]] = None
    register_rules: Optional[Callable[..., Any]] = None
    allow_list: AllowListAdditions = field(default_factory=AllowListAdditions)


@dataclass(frozen=True)
class RenderResult:
    html: str
    stylesheet: str
    errors: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", MappingProxyType(dict(self.errors)))

    @property
    def ok(self) -> bool:
        return not self.errors
