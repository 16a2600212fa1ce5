"""propstack: layered, environment-aware configuration properties.

Public API:
    - ConfigurationResolver: bootstrap, load, merge and reload properties
    - ResourceAnchor: where bundled configuration files live
    - LoadOutcome: result of loading one file
    - TypeTag: value types understood by ``[Tag] value`` syntax
    - system_properties: process-wide override layer
"""

from __future__ import annotations

import logging

from propstack.coercion import TypedValue, TypeTag
from propstack.definitions import DefinitionKind, LoadDefinition
from propstack.errors import (
    CoercionError,
    PropertyFileError,
    PropstackError,
    ResourceError,
)
from propstack.locator import LoadOutcome, ResourceAnchor
from propstack.resolver import ConfigurationResolver, ResolverState
from propstack.settings import Origin, ResolverSettings
from propstack.substitution import expand, substitute
from propstack.system import SystemProperties, system_properties

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("propstack")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("propstack").addHandler(logging.NullHandler())

__all__ = [
    "CoercionError",
    "ConfigurationResolver",
    "DefinitionKind",
    "LoadDefinition",
    "LoadOutcome",
    "Origin",
    "PropertyFileError",
    "PropstackError",
    "ResolverSettings",
    "ResolverState",
    "ResourceError",
    "ResourceAnchor",
    "SystemProperties",
    "TypeTag",
    "TypedValue",
    "expand",
    "substitute",
    "system_properties",
]
