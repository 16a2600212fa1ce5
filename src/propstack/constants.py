"""Project-wide constants for propstack"""  # noqa: D415

from __future__ import annotations

from typing import Final

# ==============================================================================
# Key namespace
# ==============================================================================

NAMESPACE: Final[str] = "propstack."

RUNTIME_ENVIRONMENT_KEY: Final[str] = NAMESPACE + "runtime.environment"
ADDITIONAL_PATHS_KEY: Final[str] = NAMESPACE + "runtime.additionalConfigurationPaths"
FILE_PREFIX_KEY: Final[str] = NAMESPACE + "configurationFile.prefix"
FILE_SUFFIX_KEY: Final[str] = NAMESPACE + "configurationFile.suffix"
FILE_EXTENSION_KEY: Final[str] = NAMESPACE + "configurationFile.extension"
BOOTSTRAP_FILE_KEY: Final[str] = NAMESPACE + "bootstrap.fileName"
CONSOLE_TRACING_KEY: Final[str] = NAMESPACE + "consoleTracing"
BOOTSTRAP_LOGGING_KEY: Final[str] = NAMESPACE + "bootstrapLogging"
BOOTSTRAP_LOGGING_FILE_KEY: Final[str] = NAMESPACE + "bootstrapLogging.configurationFile"
EXTENDED_SYNTAX_KEY: Final[str] = NAMESPACE + "extendedPropertiesSyntax.enabled"

# ==============================================================================
# Defaults
# ==============================================================================

DEFAULT_ENVIRONMENT: Final[str] = "development"
DEFAULTS_NAME: Final[str] = "defaults"

BOOTSTRAP_FILE_NAME: Final[str] = "propstack-bootstrap.properties"
BOOTSTRAP_LOGGING_FILE_NAME: Final[str] = "propstack-logging-bootstrap.json"

DEFAULT_FILE_PREFIX: Final[str | None] = None
DEFAULT_FILE_SUFFIX: Final[str | None] = "-ee"
DEFAULT_FILE_EXTENSION: Final[str | None] = "properties"

SEARCH_PATH_SEPARATOR: Final[str] = ":"

# Safety net for substitution fixpoint iteration
MAX_SUBSTITUTION_PASSES: Final[int] = 32

# Longest text a single substitution may produce, in characters
MAX_SUBSTITUTED_LENGTH: Final[int] = 1 << 20

# Environment prefix for seeding system properties (PROPSTACK_RUNTIME_ENVIRONMENT, ...)
ENV_PREFIX: Final[str] = "PROPSTACK_"

# Provenance label for values set directly rather than loaded from a file
PUT_ORIGIN: Final[str] = "put"
