"""Merged property storage.

:class:`PropertyStore` keeps the flat name -> string map every lookup goes
through, a parallel name -> :class:`~propstack.coercion.TypedValue` map, and
the origin of each key. Merges overlay whole files with last-write-wins
semantics under a lock, so readers see either all of a file or none of it.
"""

from __future__ import annotations

import logging
import threading
from typing import IO, TYPE_CHECKING, Any

from .coercion import TypedValue, TypeTag, check_value, infer_tag, render
from .constants import PUT_ORIGIN
from .errors import CoercionError

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)

LISTING_HEADER = "-- listing properties --"


class PropertyStore:
    """Thread-safe string and typed property maps with layered merges."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._strings: dict[str, str] = {}
        self._typed: dict[str, TypedValue] = {}
        self._origins: dict[str, str] = {}

    # --- Mutation ---

    def merge(
        self,
        incoming: Mapping[str, str],
        typed: Mapping[str, TypedValue] | None = None,
        *,
        origin: str | None = None,
    ) -> None:
        """Overlay *incoming* onto the store.

        Every incoming key replaces any existing value; keys not in
        *incoming* are untouched. A key without an entry in *typed* loses any
        typed value left by an earlier file.
        """
        typed = typed or {}
        with self._lock:
            for name, value in incoming.items():
                self._strings[name] = value
                entry = typed.get(name)
                if entry is None:
                    self._typed.pop(name, None)
                else:
                    self._typed[name] = entry
                if origin is not None:
                    self._origins[name] = origin

    def put(self, name: str, value: str) -> None:
        """Set a raw string value and its ``String`` typed entry."""
        with self._lock:
            self._strings[name] = value
            self._typed[name] = TypedValue(TypeTag.STRING, value)
            self._origins[name] = PUT_ORIGIN

    def put_typed(self, name: str, value: Any, tag: TypeTag | None = None) -> bool:
        """Set a typed value directly, bypassing tag parsing.

        The tag is inferred from the Python type when omitted. The raw string
        is set to the rendered value. Returns False (and logs) if *value* does
        not fit the tag.
        """
        effective = tag if tag is not None else infer_tag(value)
        if effective is None:
            log.error(
                "Cannot store %s value for %s: unsupported type",
                type(value).__name__,
                name,
            )
            return False
        try:
            stored = TypedValue(effective, check_value(effective, value))
        except CoercionError as e:
            log.error("Cannot store value for %s: %s", name, e)
            return False
        with self._lock:
            self._typed[name] = stored
            self._strings[name] = render(stored)
            self._origins[name] = PUT_ORIGIN
        return True

    # --- Lookup ---

    def get(self, name: str, default: str | None = None) -> str | None:
        with self._lock:
            return self._strings.get(name, default)

    def get_typed(self, name: str) -> Any | None:
        """Return the typed value, or None if absent or never converted."""
        with self._lock:
            entry = self._typed.get(name)
        return None if entry is None else entry.value

    def get_type(self, name: str) -> TypeTag | None:
        with self._lock:
            entry = self._typed.get(name)
        return None if entry is None else entry.tag

    def origin_of(self, name: str) -> str | None:
        """Return where *name* was last set: a file location or ``"put"``."""
        with self._lock:
            return self._origins.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._strings)

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the string map."""
        with self._lock:
            return dict(self._strings)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._strings

    def __len__(self) -> int:
        with self._lock:
            return len(self._strings)

    def list_all(self, sink: IO[str]) -> None:
        """Write a header line and every property as ``name=value`` to *sink*."""
        lines = [LISTING_HEADER]
        lines.extend(f"{name}={value}" for name, value in self.snapshot().items())
        try:
            sink.write("\n".join(lines) + "\n")
        except (OSError, ValueError) as e:
            log.error("Failed to list properties: %s", e)
