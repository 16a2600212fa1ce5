"""Typed values from ``[Type] raw`` tagged property text.

A value such as ``[Integer] 123`` is parsed into a :class:`TypedValue`. Parsing
never raises to callers: :func:`parse_tagged` reports a failed conversion as a
missing typed value, which callers cannot tell apart from an absent key.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging
import re
from typing import Any

from .errors import CoercionError

log = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r"^\[([^\]]+)\](.+)$", re.IGNORECASE | re.DOTALL)

_INTEGER_TEXT = re.compile(r"^[+-]?[0-9]+$")
_DECIMAL_TEXT = re.compile(
    r"^[+-]?(?:NaN|Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)[fFdD]?$"
)

DATE_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
DATE_FORMAT = "%Y-%m-%d"
LIST_SEPARATOR = ","


class TypeTag(str, Enum):
    """Closed set of value types a tag may request."""

    STRING = "String"
    INTEGER = "Integer"
    SHORT = "Short"
    LONG = "Long"
    BYTE = "Byte"
    FLOAT = "Float"
    DOUBLE = "Double"
    BOOLEAN = "Boolean"
    DATE = "Date"
    STRING_LIST = "ArrayList<String>"
    INTEGER_LIST = "ArrayList<Integer>"

    @classmethod
    def from_name(cls, name: str) -> TypeTag | None:
        """Look up a tag by case-insensitive name, ignoring inner whitespace."""
        return _TAGS_BY_NAME.get("".join(name.split()).lower())


_TAGS_BY_NAME: dict[str, TypeTag] = {tag.value.lower(): tag for tag in TypeTag}

# Inclusive bounds for the sized integer tags
INTEGER_BOUNDS: dict[TypeTag, tuple[int, int]] = {
    TypeTag.BYTE: (-(2**7), 2**7 - 1),
    TypeTag.SHORT: (-(2**15), 2**15 - 1),
    TypeTag.INTEGER: (-(2**31), 2**31 - 1),
    TypeTag.LONG: (-(2**63), 2**63 - 1),
}


@dataclass(frozen=True)
class TypedValue:
    """A converted value together with the tag it was converted for."""

    tag: TypeTag
    value: Any


@dataclass(frozen=True)
class TaggedParse:
    """Result of :func:`parse_tagged`.

    ``text`` is the raw string to store: the remainder after a recognised tag,
    otherwise the full input. ``typed`` is ``None`` when conversion failed or
    the tag name is unknown.
    """

    tag_name: str | None
    text: str
    typed: TypedValue | None


def _parse_integer(tag: TypeTag, text: str) -> int:
    if not _INTEGER_TEXT.match(text):
        raise CoercionError(
            f"not a base-10 integer: {text!r}", tag=tag.value, text=text
        )
    value = int(text)
    low, high = INTEGER_BOUNDS[tag]
    if not low <= value <= high:
        raise CoercionError(
            f"{value} out of range for {tag.value} [{low}, {high}]",
            tag=tag.value,
            text=text,
        )
    return value


def _parse_decimal(tag: TypeTag, text: str) -> float:
    if not _DECIMAL_TEXT.match(text):
        raise CoercionError(
            f"not a decimal number: {text!r}", tag=tag.value, text=text
        )
    if text[-1] in "fFdD":
        text = text[:-1]
    return float(text)


def _parse_boolean(text: str) -> bool:
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise CoercionError(
        f"not a boolean: {text!r}",
        tag=TypeTag.BOOLEAN.value,
        text=text,
        hint="Use true or false",
    )


def _parse_date(text: str) -> datetime:
    try:
        if "T" in text:
            return datetime.strptime(text, DATE_TIME_FORMAT)
        return datetime.strptime(text, DATE_FORMAT).astimezone()
    except ValueError as e:
        raise CoercionError(
            f"not a date: {text!r}",
            tag=TypeTag.DATE.value,
            text=text,
            hint="Use yyyy-MM-dd or yyyy-MM-ddTHH:mm:ss+HHMM",
        ) from e


def coerce(tag: TypeTag, text: str) -> Any:
    """Convert *text* to the Python value for *tag*.

    Raises:
        CoercionError: If *text* is not a valid literal for *tag*.
    """
    match tag:
        case TypeTag.STRING:
            return text
        case TypeTag.INTEGER | TypeTag.SHORT | TypeTag.LONG | TypeTag.BYTE:
            return _parse_integer(tag, text)
        case TypeTag.FLOAT | TypeTag.DOUBLE:
            return _parse_decimal(tag, text)
        case TypeTag.BOOLEAN:
            return _parse_boolean(text)
        case TypeTag.DATE:
            return _parse_date(text)
        case TypeTag.STRING_LIST:
            return [item.strip() for item in text.split(LIST_SEPARATOR)]
        case TypeTag.INTEGER_LIST:
            return [
                _parse_integer(TypeTag.INTEGER, item.strip())
                for item in text.split(LIST_SEPARATOR)
            ]
    raise CoercionError(f"unsupported tag {tag!r}")  # pragma: no cover


def parse_tagged(raw: str) -> TaggedParse:
    """Parse a possibly tagged property value without raising.

    Untagged text becomes a ``String`` typed value. Tagged text is converted
    according to its tag; failures are logged at debug level and leave
    ``typed`` unset while ``text`` still carries the untagged remainder.
    """
    match = TAG_PATTERN.match(raw)
    if match is None:
        return TaggedParse(None, raw, TypedValue(TypeTag.STRING, raw))

    tag_name = match.group(1)
    tag = TypeTag.from_name(tag_name)
    if tag is None:
        log.debug("Unknown type tag [%s]; value kept as untyped text", tag_name)
        return TaggedParse(tag_name, raw, None)

    text = match.group(2).strip()
    try:
        value = coerce(tag, text)
    except CoercionError as e:
        log.debug("Failed to convert %r to %s: %s", text, tag.value, e)
        return TaggedParse(tag_name, text, None)
    return TaggedParse(tag_name, text, TypedValue(tag, value))


def infer_tag(value: Any) -> TypeTag | None:
    """Pick a tag for a native Python value, or ``None`` if unsupported."""
    if isinstance(value, bool):
        return TypeTag.BOOLEAN
    if isinstance(value, int):
        low, high = INTEGER_BOUNDS[TypeTag.INTEGER]
        return TypeTag.INTEGER if low <= value <= high else TypeTag.LONG
    if isinstance(value, float):
        return TypeTag.DOUBLE
    if isinstance(value, datetime):
        return TypeTag.DATE
    if isinstance(value, str):
        return TypeTag.STRING
    if isinstance(value, list | tuple):
        if all(isinstance(item, str) for item in value):
            return TypeTag.STRING_LIST
        if all(isinstance(item, int) and not isinstance(item, bool) for item in value):
            return TypeTag.INTEGER_LIST
    return None


def check_value(tag: TypeTag, value: Any) -> Any:
    """Validate a native *value* against *tag* and return its stored form.

    Raises:
        CoercionError: If *value* does not fit *tag*.
    """
    match tag:
        case TypeTag.STRING if isinstance(value, str):
            return value
        case TypeTag.INTEGER | TypeTag.SHORT | TypeTag.LONG | TypeTag.BYTE if (
            isinstance(value, int) and not isinstance(value, bool)
        ):
            low, high = INTEGER_BOUNDS[tag]
            if low <= value <= high:
                return value
        case TypeTag.FLOAT | TypeTag.DOUBLE if (
            isinstance(value, int | float) and not isinstance(value, bool)
        ):
            return float(value)
        case TypeTag.BOOLEAN if isinstance(value, bool):
            return value
        case TypeTag.DATE if isinstance(value, datetime):
            return value
        case TypeTag.STRING_LIST if isinstance(value, list | tuple) and all(
            isinstance(item, str) for item in value
        ):
            return list(value)
        case TypeTag.INTEGER_LIST if isinstance(value, list | tuple):
            return [check_value(TypeTag.INTEGER, item) for item in value]
    raise CoercionError(
        f"{type(value).__name__} value {value!r} does not fit {tag.value}",
        tag=tag.value,
    )


def render(typed: TypedValue) -> str:
    """Render a typed value as the raw string stored next to it."""
    value = typed.value
    match typed.tag:
        case TypeTag.BOOLEAN:
            return "true" if value else "false"
        case TypeTag.DATE:
            if value.tzinfo is None:
                return value.strftime(DATE_FORMAT)
            return value.strftime(DATE_TIME_FORMAT)
        case TypeTag.STRING_LIST | TypeTag.INTEGER_LIST:
            return ", ".join(str(item) for item in value)
    return str(value)
