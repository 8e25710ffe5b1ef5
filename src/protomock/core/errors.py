"""
Error types for protomock specification loading, validation and synthesis.

Runtime failures raised by generated mocks live in ``protomock.runtime.errors``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class ProtomockError(Exception):
    """Base exception for all protomock errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


class SpecificationError(ProtomockError):
    """
    Raised when a MockSpecification is malformed.

    Examples:
    - Member or parameter names that are not identifiers
    - Two members with the same name but different kinds
    - Generated field names that collide with a declared member
    - Build conditions that are not valid expressions
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        issues: list[str] | None = None,
    ):
        self.issues = list(issues or [])
        super().__init__(message, context)


class OverloadCollisionError(SpecificationError):
    """
    Raised when two overloads of one name cannot be told apart.

    Overloads with identical parameter-type sequences would be routed to the
    same implementation by the runtime dispatcher.
    """

    pass


class TypeParseError(ProtomockError):
    """Raised when a type annotation string cannot be parsed."""

    pass


class ConfigError(ProtomockError):
    """
    Raised when protomock configuration is invalid.

    Examples:
    - A [tool.protomock] value of the wrong type
    - An unreadable protomock.toml
    """

    pass


class SynthesisError(ProtomockError):
    """
    Raised when the synthesizer reaches a state a validated specification
    should never produce.
    """

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error.

    Attributes:
        file: Path of the specification or config file, if loaded from disk
        mock: Interface name of the specification being processed
        member: Name of the member being processed
    """

    file: Path | None = None
    mock: str | None = None
    member: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "specs/user.toml: UserService.fetch_user"
        """
        parts: list[str] = []
        if self.file is not None:
            parts.append(str(self.file))
        if self.mock and self.member:
            parts.append(f"{self.mock}.{self.member}")
        elif self.mock or self.member:
            parts.append(self.mock or self.member or "")
        return ": ".join(parts)


def make_collision_error(mock: str, name: str, signatures: list[str]) -> OverloadCollisionError:
    """Create an OverloadCollisionError listing the clashing signatures."""
    listed = ", ".join(signatures)
    message = f"overloads of '{name}' share a parameter-type sequence: {listed}"
    return OverloadCollisionError(
        message, ErrorContext(mock=mock, member=name), issues=[message]
    )
