"""No public resolver operation raises.

Failures surface only as logged diagnostics, returned outcomes and absent
values. These tests assert on resulting state, never on error objects.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from propstack.coercion import TypeTag
from propstack.constants import (
    ADDITIONAL_PATHS_KEY,
    BOOTSTRAP_LOGGING_FILE_KEY,
    BOOTSTRAP_LOGGING_KEY,
    CONSOLE_TRACING_KEY,
    EXTENDED_SYNTAX_KEY,
    RUNTIME_ENVIRONMENT_KEY,
)
from propstack.locator import LoadOutcome, ResourceAnchor

pytestmark = pytest.mark.contract


@pytest.fixture
def bundled(tmp_path: Path) -> Path:
    path = tmp_path / "bundled"
    path.mkdir()
    return path


def test_undecodable_file_is_skipped_and_others_still_load(make_resolver, bundled):
    (bundled / "defaults-ee.properties").write_bytes(b"a = \xff\xfe\n")
    (bundled / "development-ee.properties").write_text("b = 2\n", encoding="utf-8")
    resolver = make_resolver()

    outcomes = resolver.load_package_configuration(ResourceAnchor.for_directory(bundled))

    assert outcomes == [LoadOutcome.FAILED, LoadOutcome.LOADED]
    assert resolver.get("a") is None
    assert resolver.get("b") == "2"
    assert len(resolver.definitions()) == 1


def test_malformed_escape_skips_whole_file(make_resolver, bundled):
    (bundled / "defaults-ee.properties").write_text(
        "good = 1\nbad = \\uZZZZ\n", encoding="utf-8"
    )
    resolver = make_resolver()

    outcomes = resolver.load_package_configuration(ResourceAnchor.for_directory(bundled))

    assert outcomes[0] is LoadOutcome.FAILED
    assert resolver.get("good") is None


def test_unimportable_package_anchor(make_resolver):
    resolver = make_resolver()
    outcomes = resolver.load_package_configuration(
        ResourceAnchor.for_package("propstack_missing_component")
    )
    assert outcomes == [LoadOutcome.FAILED, LoadOutcome.FAILED]


@pytest.mark.parametrize("package", ["", "..relative"])
def test_invalid_package_name_anchor(make_resolver, package):
    """Names import_module rejects outright still yield FAILED outcomes."""
    resolver = make_resolver()
    outcomes = resolver.load_package_configuration(ResourceAnchor.for_package(package))
    assert outcomes == [LoadOutcome.FAILED, LoadOutcome.FAILED]


def test_file_name_too_long_for_the_filesystem_is_not_found(
    make_resolver, bundled, tmp_path
):
    resolver = make_resolver()
    outcomes = resolver.load_and_merge(
        ["x" * 300],
        ResourceAnchor.for_directory(bundled, name="acme.app"),
        {ADDITIONAL_PATHS_KEY: str(tmp_path)},
    )
    assert outcomes == [LoadOutcome.NOT_FOUND]
    assert resolver.load_file("/" + "x" * 300) is LoadOutcome.NOT_FOUND


def test_no_anchor_and_no_search_paths(make_resolver):
    resolver = make_resolver()
    assert resolver.load_package_configuration(None) == [
        LoadOutcome.NOT_FOUND,
        LoadOutcome.NOT_FOUND,
    ]
    assert resolver.load_file("relative.properties") is LoadOutcome.NOT_FOUND


@pytest.mark.parametrize(
    "options",
    [
        {CONSOLE_TRACING_KEY: "sometimes"},
        {EXTENDED_SYNTAX_KEY: None},
        {RUNTIME_ENVIRONMENT_KEY: ""},
        {BOOTSTRAP_LOGGING_KEY: "true", BOOTSTRAP_LOGGING_FILE_KEY: "/missing.json"},
    ],
)
def test_bad_options_fall_back_to_defaults(make_resolver, options):
    resolver = make_resolver(options, stream=io.StringIO())
    state = resolver.state
    assert state.runtime_environment == "development"
    assert state.extended_syntax_enabled is True


def test_invalid_bootstrap_logging_document(make_resolver, tmp_path):
    doc = tmp_path / "logging.json"
    doc.write_text("{not json")
    resolver = make_resolver(
        {BOOTSTRAP_LOGGING_KEY: "true", BOOTSTRAP_LOGGING_FILE_KEY: str(doc)}
    )
    assert resolver.state.runtime_environment == "development"


def test_typed_access_cannot_tell_missing_from_unconvertible(make_resolver, bundled):
    (bundled / "defaults-ee.properties").write_text("n = [Short] 70000\n")
    resolver = make_resolver()
    resolver.load_package_configuration(ResourceAnchor.for_directory(bundled))

    assert resolver.get_typed("n") is None
    assert resolver.get_typed("never.defined") is None
    assert resolver.get("n") == "70000"


def test_put_typed_mismatch_returns_false(make_resolver):
    resolver = make_resolver()
    assert resolver.put_typed("n", "text", TypeTag.INTEGER) is False
    assert resolver.get("n") is None


def test_list_all_to_closed_sink(make_resolver):
    resolver = make_resolver()
    sink = io.StringIO()
    sink.close()
    resolver.list_all(sink)


def test_repeated_reloads_are_idempotent(make_resolver, bundled):
    (bundled / "defaults-ee.properties").write_text("a = 1\n")
    resolver = make_resolver()
    resolver.load_package_configuration(ResourceAnchor.for_directory(bundled))

    for _ in range(3):
        resolver.reload_all()

    assert resolver.get("a") == "1"
    assert len(resolver.definitions()) == 1
