"""``${name}`` variable substitution.

Names resolve against, in order: system properties, the OS environment, and
the caller's context mapping. Names that resolve nowhere are left in place as
literal ``${name}`` text, so substitution never fails.
"""

from __future__ import annotations

from collections import ChainMap
from collections.abc import Iterator, Mapping
import logging
import os

from .constants import MAX_SUBSTITUTED_LENGTH, MAX_SUBSTITUTION_PASSES
from .errors import SubstitutionError
from .system import system_properties

log = logging.getLogger(__name__)

OPEN_MARKER = "${"
CLOSE_MARKER = "}"


def _lookup(
    name: str,
    context: Mapping[str, str] | None,
    system: Mapping[str, str],
    environ: Mapping[str, str],
) -> str | None:
    value = system.get(name)
    if value is not None:
        return value
    value = environ.get(name)
    if value is not None:
        return value
    if context is not None:
        return context.get(name)
    return None


def substitute(
    text: str,
    context: Mapping[str, str] | None = None,
    *,
    system: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
    max_length: int | None = None,
) -> str | None:
    """Replace ``${name}`` references in *text*.

    Args:
        text: Input text.
        context: Properties consulted after system properties and environment.
        system: System properties; defaults to the process-wide map.
        environ: Environment; defaults to ``os.environ``.
        max_length: Longest result allowed; unlimited when None.

    Returns:
        The substituted text, or ``None`` when no reference resolved. ``None``
        means "use the original", which differs from a substitution that
        happens to reproduce the input.

    Raises:
        SubstitutionError: If a substitution makes the result longer than
            *max_length*.

    An unterminated ``${`` copies the rest of the text verbatim.
    """
    sys_props = system_properties if system is None else system
    env = os.environ if environ is None else environ

    out: list[str] = []
    size = 0
    pos = 0
    resolved_any = False
    while (start := text.find(OPEN_MARKER, pos)) != -1:
        end = text.find(CLOSE_MARKER, start + len(OPEN_MARKER))
        if end == -1:
            break
        name = text[start + len(OPEN_MARKER) : end]
        value = _lookup(name, context, sys_props, env)
        if value is None:
            piece = text[pos : end + 1]
        else:
            piece = text[pos:start] + value
            resolved_any = True
        size += len(piece)
        if resolved_any:
            _check_length(size, max_length)
        out.append(piece)
        pos = end + 1
    out.append(text[pos:])
    if not resolved_any:
        return None
    _check_length(size + len(text) - pos, max_length)
    return "".join(out)


def _check_length(size: int, max_length: int | None) -> None:
    if max_length is not None and size > max_length:
        raise SubstitutionError(
            f"substituted text exceeds {max_length} characters",
            hint="Check for properties that reference each other repeatedly",
        )


def expand(
    text: str,
    context: Mapping[str, str] | None = None,
    *,
    system: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
    max_length: int | None = None,
) -> str:
    """Like :func:`substitute`, but always return text."""
    result = substitute(
        text, context, system=system, environ=environ, max_length=max_length
    )
    return text if result is None else result


class _WithoutKey(Mapping[str, str]):
    """View of *base* that hides one key."""

    def __init__(self, base: Mapping[str, str], hidden: str) -> None:
        self._base = base
        self._hidden = hidden

    def __getitem__(self, key: str) -> str:
        if key == self._hidden:
            raise KeyError(key)
        return self._base[key]

    def __iter__(self) -> Iterator[str]:
        return (key for key in self._base if key != self._hidden)

    def __len__(self) -> int:
        return len(self._base) - (self._hidden in self._base)


def substitute_all(
    properties: Mapping[str, str],
    fallback: Mapping[str, str] | None = None,
    *,
    system: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
    max_passes: int = MAX_SUBSTITUTION_PASSES,
    max_length: int = MAX_SUBSTITUTED_LENGTH,
) -> dict[str, str]:
    """Substitute every key and value of *properties* until nothing changes.

    Each pass resolves against the map being built, so a property may refer
    to another property from the same file. Names missing from that map are
    looked up in *fallback* (typically the already merged store). A property
    never expands its own name from the map being built; ``path=${path}:/opt``
    extends the value of ``path`` found in *fallback* instead.

    A pass counts as a change only when some key or value text differs, so
    reference cycles settle with literal ``${name}`` text. *max_passes* and
    *max_length* stop mutually expanding definitions such as
    ``a=${b}${b}`` / ``b=${a}``; hitting either limit logs a warning and
    returns the last complete pass.
    """
    current = dict(properties)
    stored = dict(fallback or {})
    for _ in range(max_passes):
        try:
            updated, changed = _substitution_pass(
                current, stored, system=system, environ=environ, max_length=max_length
            )
        except SubstitutionError as e:
            log.warning("Variable substitution stopped: %s", e)
            return current
        current = updated
        if not changed:
            return current

    log.warning(
        "Variable substitution stopped after %d passes; "
        "properties may contain self-expanding references",
        max_passes,
    )
    return current


def _substitution_pass(
    current: dict[str, str],
    stored: Mapping[str, str],
    *,
    system: Mapping[str, str] | None,
    environ: Mapping[str, str] | None,
    max_length: int,
) -> tuple[dict[str, str], bool]:
    # Works on a copy so a failed pass leaves the previous result intact
    updated = dict(current)
    changed = False
    for name in list(updated):
        if name not in updated:
            continue
        value = updated[name]
        context = ChainMap(_WithoutKey(updated, name), stored)
        new_name = expand(
            name, context, system=system, environ=environ, max_length=max_length
        )
        if new_name != name:
            del updated[name]
            changed = True
        new_value = expand(
            value, context, system=system, environ=environ, max_length=max_length
        )
        if new_value != value:
            changed = True
        updated[new_name] = new_value
    return updated, changed
