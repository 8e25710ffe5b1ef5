"""
Helpers for reading configured values out of a mock.
"""

from __future__ import annotations

from typing import TypeVar

from .errors import fatal_error

T = TypeVar("T")


def unwrap(value: T | None, qualname: str) -> T:
    """Return ``value``, or abort naming ``qualname`` when it was never set."""
    if value is None:
        fatal_error(f"{qualname} is not set")
    return value
