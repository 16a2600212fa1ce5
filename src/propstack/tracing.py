"""Logging collaborator for the resolver.

:class:`TraceLogger` sends every message through standard :mod:`logging`.
While bootstrap logging is active messages go to the ``propstack.bootstrap``
logger, which a JSON :func:`logging.config.dictConfig` document can configure
before the application has set up logging of its own. Console tracing
additionally prints each message to stdout with a ``consoleTrace:`` prefix,
independent of any logging configuration.
"""

from __future__ import annotations

import json
import logging
import logging.config
import sys
from typing import IO, TYPE_CHECKING

from .errors import PropstackError, walk_exception_chain

if TYPE_CHECKING:
    from collections.abc import Mapping

RESOLVER_LOGGER = "propstack.resolver"
BOOTSTRAP_LOGGER = "propstack.bootstrap"
CONSOLE_PREFIX = "consoleTrace: "


class TraceLogger:
    """Route resolver diagnostics to the first configured channel(s)."""

    def __init__(
        self,
        *,
        console_tracing: bool = False,
        bootstrap_logging: bool = False,
        stream: IO[str] | None = None,
    ) -> None:
        self.console_tracing = console_tracing
        self.bootstrap_logging = bootstrap_logging
        self._stream = stream
        self._logger = logging.getLogger(RESOLVER_LOGGER)
        self._bootstrap_logger = logging.getLogger(BOOTSTRAP_LOGGER)

    @property
    def logger(self) -> logging.Logger:
        """The logger currently receiving messages."""
        return self._bootstrap_logger if self.bootstrap_logging else self._logger

    def debug(self, msg: str, *args: object, exc: BaseException | None = None) -> None:
        self.log(logging.DEBUG, msg, *args, exc=exc)

    def info(self, msg: str, *args: object, exc: BaseException | None = None) -> None:
        self.log(logging.INFO, msg, *args, exc=exc)

    def warning(
        self, msg: str, *args: object, exc: BaseException | None = None
    ) -> None:
        self.log(logging.WARNING, msg, *args, exc=exc)

    def error(self, msg: str, *args: object, exc: BaseException | None = None) -> None:
        self.log(logging.ERROR, msg, *args, exc=exc)

    def log(
        self, level: int, msg: str, *args: object, exc: BaseException | None = None
    ) -> None:
        logger = self.logger
        if logger.isEnabledFor(level):
            exc_info = (type(exc), exc, exc.__traceback__) if exc is not None else None
            logger.log(level, msg, *args, exc_info=exc_info, stacklevel=3)
        if self.console_tracing:
            self._console(msg % args if args else msg)
            if exc is not None:
                for link in walk_exception_chain(exc):
                    self._console(f"{type(link).__name__}: {link}")

    def dump_properties(self, level: int, properties: Mapping[str, str]) -> None:
        """Log every property as ``name = value``."""
        if not (self.console_tracing or self.logger.isEnabledFor(level)):
            return
        for name, value in properties.items():
            self.log(level, "%s = %s", name, value)

    def _console(self, text: str) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(f"{CONSOLE_PREFIX}{text}\n")


def configure_bootstrap_logging(data: bytes) -> None:
    """Apply a JSON ``dictConfig`` document.

    Existing loggers stay enabled unless the document says otherwise.

    Raises:
        PropstackError: If the document is not valid JSON or is rejected by
            :func:`logging.config.dictConfig`.
    """
    try:
        config = json.loads(data)
        if not isinstance(config, dict):
            raise TypeError("logging configuration must be a JSON object")
        config.setdefault("version", 1)
        config.setdefault("disable_existing_loggers", False)
        logging.config.dictConfig(config)
    except (ValueError, TypeError, AttributeError, ImportError) as e:
        raise PropstackError(
            f"Invalid bootstrap logging configuration: {e}",
            hint="Provide a JSON object accepted by logging.config.dictConfig",
        ) from e
