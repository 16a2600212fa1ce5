"""Pytest configuration and fixtures.

Provides environment isolation, logging hygiene and small builders for
configuration files and resolvers. Fixtures marked autouse apply to every test.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import suppress
import io
import logging
import os
from pathlib import Path
from typing import Any

import pytest

from propstack.resolver import ConfigurationResolver
from propstack.system import SystemProperties
from propstack.tracing import BOOTSTRAP_LOGGER, RESOLVER_LOGGER

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_propstack_env(request, monkeypatch):
    """Clear PROPSTACK_* variables so the host environment cannot leak in.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("PROPSTACK_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_propstack_loggers() -> Iterator[None]:
    """Undo handler and level changes made by bootstrap logging tests."""
    names = ("propstack", RESOLVER_LOGGER, BOOTSTRAP_LOGGER)
    saved = {
        name: (
            logging.getLogger(name).level,
            list(logging.getLogger(name).handlers),
            logging.getLogger(name).propagate,
        )
        for name in names
    }
    yield
    for name, (level, handlers, propagate) in saved.items():
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.handlers[:] = handlers
        logger.propagate = propagate


# =============================================================================
# Builders
# =============================================================================


@pytest.fixture
def system() -> SystemProperties:
    """Fresh system property layer, isolated from the process-wide one."""
    return SystemProperties()


@pytest.fixture
def write_properties() -> Callable[..., Path]:
    """Write a properties file and return its path.

    Usage: ``write_properties(directory, "defaults-ee.properties", "a = 1\\n")``
    """

    def _write(directory: Path, name: str, text: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_resolver(system: SystemProperties) -> Callable[..., ConfigurationResolver]:
    """Build a resolver wired to the isolated system layer and an empty environ."""

    def _make(
        options: Mapping[str, Any] | None = None,
        *,
        environ: Mapping[str, str] | None = None,
        stream: io.StringIO | None = None,
    ) -> ConfigurationResolver:
        return ConfigurationResolver(
            options,
            system=system,
            environ={} if environ is None else environ,
            stream=stream,
        )

    return _make
