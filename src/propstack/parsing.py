"""Parser for line-oriented ``key = value`` properties text.

The accepted syntax is the classic ``.properties`` format:

- ``#`` or ``!`` as the first non-blank character starts a comment line.
- The key ends at the first unescaped ``=``, ``:`` or whitespace; one
  separator and the surrounding whitespace are skipped.
- A line ending in an odd number of backslashes continues on the next line,
  whose leading whitespace is dropped.
- ``\\t``, ``\\n``, ``\\r``, ``\\f`` and ``\\uXXXX`` escapes are decoded; any
  other escaped character stands for itself.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .errors import PropertyFileError

if TYPE_CHECKING:
    from collections.abc import Iterator

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
# Only CR, LF and CRLF end a line; form feed is whitespace within one
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _logical_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, logical_line)`` with continuations joined."""
    pending: list[str] = []
    start = 0
    for number, line in enumerate(_LINE_BREAK.split(text), start=1):
        if pending:
            line = line.lstrip(_WHITESPACE)
        else:
            stripped = line.lstrip(_WHITESPACE)
            if not stripped or stripped[0] in "#!":
                continue
            line = stripped
            start = number

        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending.append(line[:-1])
            continue
        pending.append(line)
        yield start, "".join(pending)
        pending = []

    if pending:
        yield start, "".join(pending)


def _unescape(raw: str, line_number: int) -> str:
    out: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch != "\\" or i + 1 >= len(raw):
            out.append(ch)
            i += 1
            continue
        nxt = raw[i + 1]
        if nxt == "u":
            digits = raw[i + 2 : i + 6]
            if len(digits) != 4 or not all(c in _HEX_DIGITS for c in digits):
                raise PropertyFileError(
                    f"Malformed \\uXXXX escape on line {line_number}"
                )
            out.append(chr(int(digits, 16)))
            i += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _split_key_value(line: str) -> tuple[str, str]:
    """Split a logical line into its raw (still escaped) key and value."""
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in _SEPARATORS or ch in _WHITESPACE:
            break
        i += 1
    key = line[:i]

    rest = line[i:].lstrip(_WHITESPACE)
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def parse_properties(text: str) -> dict[str, str]:
    """Parse properties *text* into an ordered name -> value dict.

    Later duplicates of a key replace earlier ones.

    Raises:
        PropertyFileError: On a malformed ``\\uXXXX`` escape.
    """
    properties: dict[str, str] = {}
    for number, line in _logical_lines(text):
        raw_key, raw_value = _split_key_value(line)
        properties[_unescape(raw_key, number)] = _unescape(raw_value, number)
    return properties


def strip_values(properties: dict[str, str]) -> dict[str, str]:
    """Return a copy with leading and trailing whitespace removed from values."""
    return {name: value.strip() for name, value in properties.items()}
