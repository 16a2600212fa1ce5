"""Exception hierarchy for propstack.

These exceptions are raised inside the loading pipeline and caught at the
public boundary of :class:`propstack.resolver.ConfigurationResolver`; callers
observe failures through logging and through returned outcomes, never through
a raised error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class PropstackError(Exception):
    """Base exception for all propstack errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        msg = super().__str__()
        return f"{msg}. {self.hint}" if self.hint else msg


class PropertyFileError(PropstackError):
    """A properties file could not be read, decoded or parsed."""

    def __init__(
        self, message: str, *, path: str | None = None, hint: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.path = path


class CoercionError(PropstackError):
    """A tagged value could not be converted to its declared type."""

    def __init__(
        self,
        message: str,
        *,
        tag: str | None = None,
        text: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.tag = tag
        self.text = text


class ResourceError(PropstackError):
    """A resource anchor could not be resolved."""


class SubstitutionError(PropstackError):
    """Substituted text grew past its length limit."""


def walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
