"""Layered configuration resolver.

A :class:`ConfigurationResolver` bootstraps itself from a small properties
file, then loads ``defaults`` and environment-specific files for each
component that asks for them, merging every file over the previous ones.

Every file goes through the same pipeline::

    locate -> decode -> parse -> trim -> substitute -> coerce -> merge -> record

Each successful load is recorded so :meth:`ConfigurationResolver.reload_all`
can rebuild the whole store from the files on disk. No public method raises;
failures are logged and reported as :class:`~propstack.locator.LoadOutcome`
values or absent properties.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
import threading
from typing import IO, TYPE_CHECKING, Any

import dotenv

from .coercion import TypedValue, TypeTag, parse_tagged
from .constants import (
    ADDITIONAL_PATHS_KEY,
    DEFAULT_ENVIRONMENT,
    DEFAULTS_NAME,
    RUNTIME_ENVIRONMENT_KEY,
)
from .definitions import DefinitionKind, LoadDefinition, LoadDefinitionLog
from .errors import PropertyFileError, PropstackError
from .locator import (
    LoadOutcome,
    LocateResult,
    ResourceAnchor,
    locate,
    locate_file_or_anchor,
)
from .parsing import parse_properties, strip_values
from .settings import (
    EARLY_FIELDS,
    LATE_FIELDS,
    Origin,
    ResolverSettings,
    SourceMap,
    build_settings,
    is_sensitive_key,
    parse_search_paths,
    resolve_file_name_settings,
    resolve_layered,
)
from .store import PropertyStore
from .substitution import substitute_all
from .system import system_properties
from .tracing import TraceLogger, configure_bootstrap_logging

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, MutableMapping

PACKAGE_ANCHOR = ResourceAnchor.for_package("propstack")

_DOTENV_LOADED = False


def _try_load_dotenv() -> None:
    """Load a ``.env`` file once so ``${VAR}`` references can see it.

    A missing or unreadable file leaves the environment untouched.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    try:
        dotenv.load_dotenv()
    except (OSError, ValueError) as e:
        logging.getLogger(__name__).debug("Ignoring .env file: %s", e)
    _DOTENV_LOADED = True


@dataclass
class ResolverState:
    """Values fixed by bootstrap; search paths grow on request."""

    runtime_environment: str = DEFAULT_ENVIRONMENT
    search_paths: list[str] = field(default_factory=list)
    extended_syntax_enabled: bool = True


class ConfigurationResolver:
    """Load, merge and serve layered configuration properties.

    Args:
        options: Call-site options; highest-precedence layer for every
            ``propstack.*`` setting. Reused on :meth:`reload_all`.
        system: System property map; defaults to the process-wide
            :data:`~propstack.system.system_properties`.
        environ: Environment used for ``${VAR}`` substitution; defaults to
            ``os.environ``.
        stream: Console tracing target; defaults to stdout.

    Example::

        resolver = ConfigurationResolver()
        resolver.load_package_configuration(ResourceAnchor.for_package("myapp"))
        pool_size = resolver.get_typed("myapp.pool.size")
    """

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        system: MutableMapping[str, str] | None = None,
        environ: Mapping[str, str] | None = None,
        stream: IO[str] | None = None,
    ) -> None:
        self._options = dict(options) if options is not None else None
        self._system = system_properties if system is None else system
        self._environ = environ
        self._stream = stream
        self._lock = threading.RLock()
        self._definitions = LoadDefinitionLog()
        self._trace = TraceLogger(stream=stream)
        self._state = ResolverState()
        self._settings = ResolverSettings()
        self._sources: SourceMap = {}
        self._store = PropertyStore()
        with self._lock:
            self._bootstrap(self._store)

    # --- Bootstrap ---

    def _bootstrap(self, store: PropertyStore) -> None:
        _try_load_dotenv()

        raw, sources = resolve_layered(
            EARLY_FIELDS, options=self._options, system=self._system
        )
        early = build_settings(raw, sources)
        self._trace = TraceLogger(
            console_tracing=early.console_tracing,
            bootstrap_logging=early.bootstrap_logging,
            stream=self._stream,
        )
        if early.bootstrap_logging:
            self._configure_logging(early.bootstrap_logging_file)

        # The bootstrap file is always parsed with extended syntax
        self._state = ResolverState()
        outcome = self._load(
            early.bootstrap_file_name, PACKAGE_ANCHOR, store, search=False, record=False
        )
        if outcome is not LoadOutcome.LOADED:
            self._trace.error(
                "Unable to load bootstrap file %s; using defaults",
                early.bootstrap_file_name,
            )

        raw_late, late_sources = resolve_layered(
            LATE_FIELDS,
            options=self._options,
            system=self._system,
            stored=store.snapshot(),
        )
        sources.update(late_sources)
        carried = {name: getattr(early, name) for name in EARLY_FIELDS}
        settings = build_settings({**carried, **raw_late}, sources)

        self._settings = settings
        self._sources = sources
        self._state = ResolverState(
            runtime_environment=settings.runtime_environment,
            search_paths=settings.search_paths,
            extended_syntax_enabled=settings.extended_syntax,
        )
        env_origin = sources["runtime_environment"].origin
        store.merge(
            {RUNTIME_ENVIRONMENT_KEY: settings.runtime_environment},
            {
                RUNTIME_ENVIRONMENT_KEY: TypedValue(
                    TypeTag.STRING, settings.runtime_environment
                )
            },
            origin=None
            if env_origin in (Origin.PROPERTIES, Origin.DEFAULT)
            else env_origin.value,
        )
        self._trace.info(
            "Bootstrap complete: environment=%s, search paths=%s, extended syntax=%s",
            settings.runtime_environment,
            self._state.search_paths,
            settings.extended_syntax,
        )

    def _configure_logging(self, file_name: str) -> None:
        result = locate_file_or_anchor(file_name, PACKAGE_ANCHOR)
        if not result.found:
            self._trace.error(
                "Bootstrap logging configuration %s not found", file_name
            )
            return
        try:
            configure_bootstrap_logging(result.data)
        except PropstackError as e:
            self._trace.error("Unable to apply %s: %s", file_name, e, exc=e)

    # --- Load pipeline ---

    def _load(
        self,
        file_name: str,
        anchor: ResourceAnchor | None,
        store: PropertyStore,
        *,
        search: bool,
        record: bool,
    ) -> LoadOutcome:
        if search:
            result = locate(file_name, self._state.search_paths, anchor)
        else:
            result = locate_file_or_anchor(file_name, anchor)

        if result.outcome is LoadOutcome.NOT_FOUND:
            self._trace.info("Configuration file %s not found", file_name)
            return result.outcome
        if result.outcome is LoadOutcome.FAILED:
            first = result.errors[0] if result.errors else None
            self._trace.error("Unable to read %s", file_name, exc=first)
            return result.outcome
        return self._merge_file(result, store, record=record)

    def _merge_file(
        self, result: LocateResult, store: PropertyStore, *, record: bool
    ) -> LoadOutcome:
        definition = result.definition
        location = definition.location if definition is not None else "?"
        try:
            parsed = strip_values(parse_properties(result.data.decode("utf-8")))
        except (UnicodeDecodeError, PropertyFileError) as e:
            self._trace.error("Skipping %s: %s", location, e, exc=e)
            return LoadOutcome.FAILED

        substituted = substitute_all(
            parsed, store.snapshot(), system=self._system, environ=self._environ
        )
        strings, typed = self._coerce(substituted)
        store.merge(strings, typed, origin=location)
        if record and definition is not None:
            self._definitions.record(definition)

        self._trace.info("Loaded %d properties from %s", len(strings), location)
        self._trace.dump_properties(logging.DEBUG, strings)
        return LoadOutcome.LOADED

    def _coerce(
        self, properties: Mapping[str, str]
    ) -> tuple[dict[str, str], dict[str, TypedValue] | None]:
        if not self._state.extended_syntax_enabled:
            return dict(properties), None
        strings: dict[str, str] = {}
        typed: dict[str, TypedValue] = {}
        for name, raw in properties.items():
            parsed = parse_tagged(raw)
            strings[name] = parsed.text
            if parsed.typed is not None:
                typed[name] = parsed.typed
            elif parsed.tag_name is not None:
                self._trace.warning(
                    "No typed value for %s: cannot convert %r as [%s]",
                    name,
                    parsed.text,
                    parsed.tag_name,
                )
        return strings, typed

    # --- Public loading API ---

    def load_package_configuration(
        self, anchor: ResourceAnchor | None, options: Mapping[str, Any] | None = None
    ) -> list[LoadOutcome]:
        """Load ``defaults`` then the runtime environment file for *anchor*.

        Returns:
            One outcome per attempted file, in load order.
        """
        names = [DEFAULTS_NAME, self._state.runtime_environment]
        return self.load_and_merge(names, anchor, options)

    resolve = load_package_configuration

    def load_and_merge(
        self,
        names: Iterable[str],
        anchor: ResourceAnchor | None,
        options: Mapping[str, Any] | None = None,
    ) -> list[LoadOutcome]:
        """Load one file per name, in order, each overriding the previous.

        ``options`` may add search directories via
        ``propstack.runtime.additionalConfigurationPaths`` and override the
        file-name prefix, suffix and extension for this call.
        """
        with self._lock:
            extra = (options or {}).get(ADDITIONAL_PATHS_KEY)
            if isinstance(extra, str):
                self._state.search_paths.extend(parse_search_paths(extra))

            parts = resolve_file_name_settings(
                options=options, system=self._system, stored=self._store.snapshot()
            )
            outcomes: list[LoadOutcome] = []
            for name in names:
                file_name = parts.file_name(name)
                outcomes.append(
                    self._load(file_name, anchor, self._store, search=True, record=True)
                )
            return outcomes

    def load_file(
        self, file_name: str, anchor: ResourceAnchor | None = None
    ) -> LoadOutcome:
        """Load one absolute path, or a file relative to *anchor*."""
        with self._lock:
            return self._load(file_name, anchor, self._store, search=False, record=True)

    def reload_all(self) -> None:
        """Rebuild the store by re-running bootstrap and replaying every load.

        Values set with :meth:`put` or :meth:`put_typed` are lost.
        """
        with self._lock:
            previous = self._definitions.snapshot()
            self._definitions.reset()
            store = PropertyStore()
            self._bootstrap(store)
            for definition in previous:
                anchor = (
                    definition.anchor
                    if definition.kind is DefinitionKind.RESOURCE_RELATIVE
                    else None
                )
                outcome = self._load(
                    definition.path, anchor, store, search=False, record=True
                )
                if outcome is not LoadOutcome.LOADED:
                    self._trace.warning(
                        "Replay of %s: %s", definition.location, outcome.value
                    )
            self._store = store
            self._trace.info("Reloaded %d configuration file(s)", len(previous))

    # --- Accessors ---

    def get(self, name: str, default: str | None = None) -> str | None:
        return self._store.get(name, default)

    def get_typed(self, name: str) -> Any | None:
        """Return the converted value, or None when absent or unconvertible."""
        return self._store.get_typed(name)

    def get_type(self, name: str) -> TypeTag | None:
        return self._store.get_type(name)

    def put(self, name: str, value: str) -> None:
        self._store.put(name, value)

    def put_typed(self, name: str, value: Any, tag: TypeTag | None = None) -> bool:
        return self._store.put_typed(name, value, tag)

    def names(self) -> list[str]:
        return self._store.names()

    def list_all(self, sink: IO[str]) -> None:
        self._store.list_all(sink)

    def definitions(self) -> list[LoadDefinition]:
        """Return the ordered load history."""
        return self._definitions.snapshot()

    @property
    def state(self) -> ResolverState:
        with self._lock:
            return replace(self._state, search_paths=list(self._state.search_paths))

    @property
    def settings(self) -> ResolverSettings:
        return self._settings

    @property
    def settings_origins(self) -> SourceMap:
        return dict(self._sources)

    def audit_lines(self) -> list[str]:
        """Describe where every setting and property came from.

        Values of sensitive-looking names are redacted.
        """
        lines = [
            f"{origin.key}: {origin.origin.value}"
            for origin in self.settings_origins.values()
        ]
        store = self._store
        for name, value in store.snapshot().items():
            shown = "***redacted***" if is_sensitive_key(name) else value
            where = store.origin_of(name) or "resolved"
            lines.append(f"{name} = {shown} ({where})")
        return lines
