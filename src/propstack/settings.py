"""Resolver settings and their precedence.

Every resolver setting is looked up in three layers, evaluated in order and
each overwriting the previous result (last-applied-wins):

1. the value already stored in loaded properties,
2. the system property of the same name,
3. the call-site option of the same name.

The effective precedence is therefore options > system > stored > default.
The raw layered values flow through a Pydantic schema (:class:`ResolverSettings`)
so that malformed values fall back to defaults instead of leaking into the
resolver; the provenance of each setting is kept in a :data:`SourceMap`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import (
    ADDITIONAL_PATHS_KEY,
    BOOTSTRAP_FILE_KEY,
    BOOTSTRAP_FILE_NAME,
    BOOTSTRAP_LOGGING_FILE_KEY,
    BOOTSTRAP_LOGGING_FILE_NAME,
    BOOTSTRAP_LOGGING_KEY,
    CONSOLE_TRACING_KEY,
    DEFAULT_ENVIRONMENT,
    DEFAULT_FILE_EXTENSION,
    DEFAULT_FILE_PREFIX,
    DEFAULT_FILE_SUFFIX,
    EXTENDED_SYNTAX_KEY,
    FILE_EXTENSION_KEY,
    FILE_PREFIX_KEY,
    FILE_SUFFIX_KEY,
    RUNTIME_ENVIRONMENT_KEY,
    SEARCH_PATH_SEPARATOR,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)


# --- Provenance ---


class Origin(str, Enum):
    """Layer a setting value came from."""

    DEFAULT = "default"
    PROPERTIES = "properties"
    SYSTEM = "system"
    OPTIONS = "options"


@dataclass(frozen=True)
class FieldOrigin:
    """Origin of one setting and the property key it was read under."""

    origin: Origin
    key: str


SourceMap = dict[str, FieldOrigin]


def layered_value(
    key: str,
    *,
    options: Mapping[str, Any] | None,
    system: Mapping[str, str] | None,
    stored: Mapping[str, str] | None,
    default: Any = None,
) -> tuple[Any, Origin]:
    """Resolve *key* through stored < system < options.

    An option present with a ``None`` value still wins; it means "unset".
    """
    value, origin = default, Origin.DEFAULT
    if stored is not None and stored.get(key) is not None:
        value, origin = stored.get(key), Origin.PROPERTIES
    if system is not None and system.get(key) is not None:
        value, origin = system.get(key), Origin.SYSTEM
    if options is not None and key in options:
        value, origin = options[key], Origin.OPTIONS
    return value, origin


def resolve_layered(
    fields: Mapping[str, str],
    *,
    options: Mapping[str, Any] | None,
    system: Mapping[str, str] | None,
    stored: Mapping[str, str] | None = None,
) -> tuple[dict[str, Any], SourceMap]:
    """Resolve several settings at once.

    Args:
        fields: Setting field name -> property key.

    Returns:
        Field values found in some layer (defaults are left to the schema)
        and the origin of every requested field.
    """
    raw: dict[str, Any] = {}
    sources: SourceMap = {}
    for field_name, key in fields.items():
        value, origin = layered_value(
            key, options=options, system=system, stored=stored
        )
        sources[field_name] = FieldOrigin(origin, key)
        if origin is not Origin.DEFAULT:
            raw[field_name] = value
    return raw, sources


# --- Schema (Pydantic wall) ---


def _parse_flag(v: Any) -> Any:
    if isinstance(v, str):
        lowered = v.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        raise ValueError(f"expected 'true' or 'false', got {v!r}")
    return v


class ResolverSettings(BaseModel):
    """Validated bootstrap settings of a resolver."""

    runtime_environment: str = Field(default=DEFAULT_ENVIRONMENT, min_length=1)
    additional_paths: str | None = Field(default=None)
    extended_syntax: bool = Field(default=True)
    console_tracing: bool = Field(default=False)
    bootstrap_logging: bool = Field(default=False)
    bootstrap_file_name: str = Field(default=BOOTSTRAP_FILE_NAME, min_length=1)
    bootstrap_logging_file: str = Field(
        default=BOOTSTRAP_LOGGING_FILE_NAME, min_length=1
    )

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator(
        "runtime_environment",
        "bootstrap_file_name",
        "bootstrap_logging_file",
        mode="before",
    )
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        """Trim surrounding whitespace on names."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator(
        "extended_syntax", "console_tracing", "bootstrap_logging", mode="before"
    )
    @classmethod
    def parse_flag(cls, v: Any) -> Any:
        """Accept only ``true``/``false`` text (any case) for flags."""
        return _parse_flag(v)

    @property
    def search_paths(self) -> list[str]:
        return parse_search_paths(self.additional_paths)


# Which property key feeds which settings field, by bootstrap stage
EARLY_FIELDS: dict[str, str] = {
    "console_tracing": CONSOLE_TRACING_KEY,
    "bootstrap_logging": BOOTSTRAP_LOGGING_KEY,
    "bootstrap_logging_file": BOOTSTRAP_LOGGING_FILE_KEY,
    "bootstrap_file_name": BOOTSTRAP_FILE_KEY,
}
LATE_FIELDS: dict[str, str] = {
    "runtime_environment": RUNTIME_ENVIRONMENT_KEY,
    "additional_paths": ADDITIONAL_PATHS_KEY,
    "extended_syntax": EXTENDED_SYNTAX_KEY,
}


def build_settings(
    raw: Mapping[str, Any], sources: SourceMap | None = None
) -> ResolverSettings:
    """Validate *raw* settings, dropping invalid fields back to their defaults.

    Invalid fields are logged (with their originating key when *sources* is
    given) and their origin is rewritten to ``DEFAULT``. Never raises.
    """
    data = dict(raw)
    try:
        return ResolverSettings.model_validate(data)
    except ValidationError as e:
        for err in e.errors():
            field_name = str(err["loc"][0]) if err["loc"] else ""
            msg = err.get("msg", "")
            # Remove "Value error, " prefix if present (Pydantic standard wrapper)
            if msg.startswith("Value error, "):
                msg = msg[13:]
            where = sources.get(field_name) if sources is not None else None
            key = where.key if where is not None else field_name
            log.warning(
                "Ignoring invalid setting %s=%r: %s", key, data.get(field_name), msg
            )
            data.pop(field_name, None)
            if sources is not None and where is not None:
                sources[field_name] = FieldOrigin(Origin.DEFAULT, key)
    try:
        return ResolverSettings.model_validate(data)
    except ValidationError:
        log.error("Resolver settings rejected; using defaults")
        return ResolverSettings()


class FileNameSettings(BaseModel):
    """Parts of a configuration file name; ``None`` parts are omitted."""

    prefix: str | None = DEFAULT_FILE_PREFIX
    suffix: str | None = DEFAULT_FILE_SUFFIX
    extension: str | None = DEFAULT_FILE_EXTENSION

    model_config = {"frozen": True}

    def file_name(self, name: str | None) -> str:
        """Build ``prefix + name + suffix + "." + extension``."""
        parts = [self.prefix or "", name or "", self.suffix or ""]
        if self.extension is not None:
            parts.append("." + self.extension)
        return "".join(parts)


FILE_NAME_FIELDS: dict[str, str] = {
    "prefix": FILE_PREFIX_KEY,
    "suffix": FILE_SUFFIX_KEY,
    "extension": FILE_EXTENSION_KEY,
}


def resolve_file_name_settings(
    *,
    options: Mapping[str, Any] | None,
    system: Mapping[str, str] | None,
    stored: Mapping[str, str] | None,
) -> FileNameSettings:
    """Resolve file-name parts through stored < system < options. Never raises."""
    raw, _ = resolve_layered(
        FILE_NAME_FIELDS, options=options, system=system, stored=stored
    )
    try:
        return FileNameSettings.model_validate(raw)
    except ValidationError as e:
        log.warning(
            "Ignoring invalid file name options: %s", e.errors()[0].get("msg")
        )
        return FileNameSettings()


def parse_search_paths(paths: str | None) -> list[str]:
    """Split a colon-separated directory list, skipping empty entries."""
    if not paths:
        return []
    return [p for p in paths.split(SEARCH_PATH_SEPARATOR) if p]


# --- Redaction ---

# Field-level sensitive tokens used for redaction in audits.
SENSITIVE_KEYS = {
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
    "passwd",
    "access_key",
    "client_secret",
    "credential",
}


def is_sensitive_key(name: str) -> bool:
    """Return True if a property name is considered sensitive for logging."""
    lower = name.lower()
    return any(token in lower for token in SENSITIVE_KEYS)
