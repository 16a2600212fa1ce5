"""Configuration file discovery.

Files are looked up in external search directories first and then relative to
a :class:`ResourceAnchor`, the bundled location supplied by the caller
(a package shipped with the application, or a plain directory). Lookups never
raise: every call returns a :class:`LocateResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import importlib.resources
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .definitions import LoadDefinition
from .errors import ResourceError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from importlib.resources.abc import Traversable

log = logging.getLogger(__name__)


class LoadOutcome(str, Enum):
    """Result of trying to find and load one file."""

    LOADED = "loaded"
    NOT_FOUND = "not_found"
    FAILED = "failed"


def _is_file(entry: Path | Traversable) -> bool:
    # Names the OS refuses to look up (too long, no permission) count as absent
    try:
        return entry.is_file()
    except OSError as e:
        log.debug("Cannot check %s: %s", entry, e)
        return False


@dataclass(frozen=True)
class ResourceAnchor:
    """Named root for files bundled with a component.

    ``name`` is a dotted identifier. Besides naming the anchor it contributes
    a sub-directory layout (``a.b`` -> ``a/b``) that search directories are
    searched with, so one external directory can hold overrides for several
    components.
    """

    name: str
    directory: Path | None = None
    package: str | None = None

    @classmethod
    def for_package(cls, package: str) -> ResourceAnchor:
        """Anchor at the resources of an importable package."""
        return cls(name=package, package=package)

    @classmethod
    def for_directory(cls, directory: str | Path, *, name: str = "") -> ResourceAnchor:
        """Anchor at a directory on disk."""
        return cls(name=name, directory=Path(directory))

    @property
    def package_path(self) -> str:
        return self.name.replace(".", "/")

    def describe(self, file_name: str) -> str:
        root = self.directory if self.directory is not None else self.package
        return f"{self.name or root}:{file_name}"

    def read(self, file_name: str) -> bytes | None:
        """Return the content of *file_name* under the anchor, or None if missing.

        Raises:
            ResourceError: If the anchor package cannot be imported.
            OSError: If the file exists but cannot be read.
        """
        if self.directory is not None:
            path = self.directory / file_name
            return path.read_bytes() if _is_file(path) else None
        if self.package is None:
            return None
        try:
            root = importlib.resources.files(self.package)
        except (ImportError, ValueError, TypeError) as e:
            raise ResourceError(
                f"Resource package {self.package!r} is not importable",
                hint="Pass an importable package name or use ResourceAnchor.for_directory()",
            ) from e
        resource = root.joinpath(file_name)
        return resource.read_bytes() if _is_file(resource) else None


@dataclass(frozen=True)
class LocateResult:
    """Outcome of a lookup; ``data`` holds the whole file when LOADED."""

    outcome: LoadOutcome
    data: bytes = b""
    definition: LoadDefinition | None = None
    errors: tuple[Exception, ...] = field(default=())

    @property
    def found(self) -> bool:
        return self.outcome is LoadOutcome.LOADED


_NOT_FOUND = LocateResult(LoadOutcome.NOT_FOUND)


def _read_path(path: Path) -> LocateResult:
    try:
        data = path.read_bytes()
    except OSError as e:
        log.info("Unable to read %s: %s", path, e)
        return LocateResult(LoadOutcome.FAILED, errors=(e,))
    return LocateResult(
        LoadOutcome.LOADED,
        data,
        LoadDefinition.from_absolute_path(str(path.absolute())),
    )


def _read_anchor(anchor: ResourceAnchor, file_name: str) -> LocateResult:
    try:
        data = anchor.read(file_name)
    except (OSError, ResourceError) as e:
        log.info("Unable to read %s: %s", anchor.describe(file_name), e)
        return LocateResult(LoadOutcome.FAILED, errors=(e,))
    if data is None:
        return _NOT_FOUND
    return LocateResult(
        LoadOutcome.LOADED, data, LoadDefinition.from_anchor(anchor, file_name)
    )


def candidate_paths(
    file_name: str, search_paths: Sequence[str], anchor: ResourceAnchor | None
) -> list[Path]:
    """Return the filesystem paths tried for *file_name*, in order."""
    candidates: list[Path] = []
    sub_dir = anchor.package_path if anchor is not None else ""
    for location in search_paths:
        base = Path(location)
        if sub_dir:
            candidates.append(base / sub_dir / file_name)
        candidates.append(base / file_name)
    return candidates


def locate(
    file_name: str,
    search_paths: Sequence[str],
    anchor: ResourceAnchor | None = None,
) -> LocateResult:
    """Find and read *file_name*.

    Absolute names are read directly. Relative names are tried in each
    search directory (anchor sub-directory layout first, then flat) before
    falling back to the anchor itself. The first hit wins.
    """
    path = Path(file_name)
    if path.is_absolute():
        return _read_path(path) if _is_file(path) else _NOT_FOUND

    errors: list[Exception] = []
    for candidate in candidate_paths(file_name, search_paths, anchor):
        if not _is_file(candidate):
            continue
        result = _read_path(candidate)
        if result.found:
            log.debug("Found %s at %s", file_name, candidate)
            return result
        errors.extend(result.errors)

    if anchor is not None:
        result = _read_anchor(anchor, file_name)
        if result.found:
            log.debug("Found %s", anchor.describe(file_name))
            return result
        errors.extend(result.errors)

    if errors:
        return LocateResult(LoadOutcome.FAILED, errors=tuple(errors))
    return _NOT_FOUND


def locate_file_or_anchor(
    file_name: str, anchor: ResourceAnchor | None = None
) -> LocateResult:
    """Read an absolute path, or *file_name* relative to *anchor* (no search)."""
    path = Path(file_name)
    if path.is_absolute():
        return _read_path(path) if _is_file(path) else _NOT_FOUND
    if anchor is None:
        return _NOT_FOUND
    return _read_anchor(anchor, file_name)
