"""
Errors raised by generated mocks at call time.
"""

from __future__ import annotations

from typing import NoReturn


class UnconfiguredHandlerError(BaseException):
    """
    Raised when a mock member is used before it was configured.

    Examples:
    - Calling a non-void operation whose handler is unset
    - Reading a non-optional property whose backing value is unset

    Derives from BaseException so ``except Exception`` blocks in the code
    under test do not absorb it as an ordinary domain failure.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class OverloadResolutionError(TypeError):
    """Raised when no overload of a mock member accepts the given arguments."""

    def __init__(self, qualname: str, args: tuple[object, ...], kwargs: dict[str, object]):
        self.qualname = qualname
        rendered = [repr(a) for a in args] + [f"{k}={v!r}" for k, v in kwargs.items()]
        super().__init__(f"no overload of {qualname} accepts ({', '.join(rendered)})")


def fatal_error(message: str) -> NoReturn:
    """Abort the current test with an unconfigured-member failure."""
    raise UnconfiguredHandlerError(message)
