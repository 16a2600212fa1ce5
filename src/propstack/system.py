"""Process-wide system properties.

System properties are the middle precedence layer for every resolver setting
(stored property < system property < call-site option) and the first source
consulted by ``${name}`` substitution, ahead of the OS environment.

A module-level instance, :data:`system_properties`, plays the role of the
process-wide map. Resolvers accept any mapping in its place, which keeps
tests and embedded uses free of shared state.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
import os
import threading

from .constants import (
    ADDITIONAL_PATHS_KEY,
    BOOTSTRAP_FILE_KEY,
    BOOTSTRAP_LOGGING_FILE_KEY,
    BOOTSTRAP_LOGGING_KEY,
    CONSOLE_TRACING_KEY,
    ENV_PREFIX,
    EXTENDED_SYNTAX_KEY,
    FILE_EXTENSION_KEY,
    FILE_PREFIX_KEY,
    FILE_SUFFIX_KEY,
    RUNTIME_ENVIRONMENT_KEY,
)

# Environment variable suffix (after ENV_PREFIX) -> namespaced setting key
ENV_SETTING_KEYS: dict[str, str] = {
    "RUNTIME_ENVIRONMENT": RUNTIME_ENVIRONMENT_KEY,
    "ADDITIONAL_CONFIGURATION_PATHS": ADDITIONAL_PATHS_KEY,
    "CONFIGURATION_FILE_PREFIX": FILE_PREFIX_KEY,
    "CONFIGURATION_FILE_SUFFIX": FILE_SUFFIX_KEY,
    "CONFIGURATION_FILE_EXTENSION": FILE_EXTENSION_KEY,
    "BOOTSTRAP_FILE_NAME": BOOTSTRAP_FILE_KEY,
    "CONSOLE_TRACING": CONSOLE_TRACING_KEY,
    "BOOTSTRAP_LOGGING": BOOTSTRAP_LOGGING_KEY,
    "BOOTSTRAP_LOGGING_CONFIGURATION_FILE": BOOTSTRAP_LOGGING_FILE_KEY,
    "EXTENDED_PROPERTIES_SYNTAX_ENABLED": EXTENDED_SYNTAX_KEY,
}


class SystemProperties(MutableMapping[str, str]):
    """Thread-safe map of process-wide property overrides."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._values: dict[str, str] = dict(initial or {})

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        prefix: str = ENV_PREFIX,
    ) -> SystemProperties:
        """Build system properties from ``PROPSTACK_*`` environment variables.

        Only the recognised setting names in :data:`ENV_SETTING_KEYS` are
        mapped; other variables with the prefix are ignored.
        """
        source = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for env_key, value in source.items():
            if not env_key.startswith(prefix):
                continue
            setting = ENV_SETTING_KEYS.get(env_key[len(prefix) :])
            if setting is not None:
                values[setting] = value
        return cls(values)

    def __getitem__(self, key: str) -> str:
        with self._lock:
            return self._values[key]

    def __setitem__(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def __delitem__(self, key: str) -> None:
        with self._lock:
            del self._values[key]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._values))

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __repr__(self) -> str:
        with self._lock:
            return f"SystemProperties({self._values!r})"


system_properties = SystemProperties()
