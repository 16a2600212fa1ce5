"""Record of where configuration files were loaded from.

Each successful file load appends a :class:`LoadDefinition` to the
resolver's :class:`LoadDefinitionLog`. Replaying a snapshot of the log against
a fresh store repeats the same loads in the same order, which reproduces the
same merged values as long as the files are unchanged on disk.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .locator import ResourceAnchor


class DefinitionKind(str, Enum):
    """How a recorded file is found again on replay."""

    ABSOLUTE_PATH = "absolute_path"
    RESOURCE_RELATIVE = "resource_relative"


@dataclass(frozen=True)
class LoadDefinition:
    """Origin of one successful file load."""

    kind: DefinitionKind
    name: str
    path: str
    anchor: ResourceAnchor | None = None

    @classmethod
    def from_absolute_path(
        cls, path: str, *, name: str | None = None
    ) -> LoadDefinition:
        return cls(DefinitionKind.ABSOLUTE_PATH, name or path, path)

    @classmethod
    def from_anchor(
        cls, anchor: ResourceAnchor, file_name: str, *, name: str | None = None
    ) -> LoadDefinition:
        return cls(
            DefinitionKind.RESOURCE_RELATIVE, name or anchor.name, file_name, anchor
        )

    @property
    def location(self) -> str:
        """Human-readable location used for provenance and logging."""
        if self.kind is DefinitionKind.RESOURCE_RELATIVE and self.anchor is not None:
            return self.anchor.describe(self.path)
        return self.path


class LoadDefinitionLog:
    """Ordered, append-only log of load definitions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[LoadDefinition] = []

    def record(self, entry: LoadDefinition) -> None:
        with self._lock:
            self._entries.append(entry)

    def snapshot(self) -> list[LoadDefinition]:
        """Return an ordered copy of all entries."""
        with self._lock:
            return list(self._entries)

    def reset(self) -> None:
        """Discard all entries."""
        with self._lock:
            self._entries = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[LoadDefinition]:
        return iter(self.snapshot())
