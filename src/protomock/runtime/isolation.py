"""
Marker for members callable from outside an isolation domain.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


def nonisolated(func: F) -> F:
    """
    Mark a generated accessor as safe to call without entering the mock's
    isolation domain. The lock guarding the storage already serializes it.
    """
    func.__nonisolated__ = True  # type: ignore[attr-defined]
    return func


def is_nonisolated(func: Any) -> bool:
    """Whether ``func`` (or a property's getter) carries the marker."""
    if isinstance(func, property):
        func = func.fget
    return bool(getattr(func, "__nonisolated__", False))
