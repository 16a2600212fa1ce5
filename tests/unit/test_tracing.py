"""TraceLogger routing and bootstrap logging configuration."""

from __future__ import annotations

import io
import json
import logging

import pytest

from propstack.errors import PropstackError
from propstack.tracing import (
    BOOTSTRAP_LOGGER,
    CONSOLE_PREFIX,
    RESOLVER_LOGGER,
    TraceLogger,
    configure_bootstrap_logging,
)

pytestmark = pytest.mark.unit


def test_messages_go_to_resolver_logger_by_default(caplog) -> None:
    caplog.set_level(logging.INFO, logger=RESOLVER_LOGGER)
    TraceLogger().info("loaded %d files", 2)
    assert [(r.name, r.getMessage()) for r in caplog.records] == [
        (RESOLVER_LOGGER, "loaded 2 files")
    ]


def test_bootstrap_logging_routes_to_bootstrap_logger() -> None:
    trace = TraceLogger(bootstrap_logging=True)
    assert trace.logger.name == BOOTSTRAP_LOGGER


def test_console_tracing_prints_prefixed_lines_and_exception_chain() -> None:
    stream = io.StringIO()
    trace = TraceLogger(console_tracing=True, stream=stream)
    try:
        try:
            raise OSError("disk gone")
        except OSError as inner:
            raise PropstackError("cannot load") from inner
    except PropstackError as e:
        trace.error("Load of %s failed", "x.properties", exc=e)

    lines = stream.getvalue().splitlines()
    assert lines[0] == f"{CONSOLE_PREFIX}Load of x.properties failed"
    assert f"{CONSOLE_PREFIX}PropstackError: cannot load" in lines
    assert f"{CONSOLE_PREFIX}OSError: disk gone" in lines


def test_console_is_silent_when_tracing_disabled() -> None:
    stream = io.StringIO()
    TraceLogger(stream=stream).error("nothing to see")
    assert stream.getvalue() == ""


def test_dump_properties_logs_each_entry(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger=RESOLVER_LOGGER)
    TraceLogger().dump_properties(logging.DEBUG, {"a": "1", "b": "2"})
    assert [r.getMessage() for r in caplog.records] == ["a = 1", "b = 2"]


class TestConfigureBootstrapLogging:
    """JSON dictConfig documents."""

    def test_applies_valid_document(self):
        doc = {
            "loggers": {BOOTSTRAP_LOGGER: {"level": "WARNING"}},
        }
        configure_bootstrap_logging(json.dumps(doc).encode())
        assert logging.getLogger(BOOTSTRAP_LOGGER).level == logging.WARNING

    @pytest.mark.parametrize(
        "data",
        [b"not json", b"[1, 2]", b'{"handlers": {"h": {"class": "no.such.Handler"}}}'],
    )
    def test_rejects_invalid_documents(self, data: bytes):
        with pytest.raises(PropstackError, match="Invalid bootstrap logging"):
            configure_bootstrap_logging(data)
