"""
Runtime overload dispatch for generated mocks.

A Python class can hold only one attribute per name, so overloaded members
are generated as private implementations plus one public dispatcher. The
dispatcher tries each candidate in declaration order and calls the first
whose parameter predicate accepts the bound arguments.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .errors import OverloadResolutionError


@dataclass(frozen=True)
class Candidate:
    """
    One overload as seen by the dispatcher.

    Attributes:
        implementation: Bound private method holding the overload's body
        parameters: Parameter names, used to bind keyword arguments
        accepts: Predicate over the bound positional arguments
    """

    implementation: Callable[..., Any]
    parameters: tuple[str, ...]
    accepts: Callable[..., bool]

    def bind(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> tuple[Any, ...] | None:
        """Arrange ``args`` and ``kwargs`` in parameter order, or None if they do not fit."""
        if len(args) > len(self.parameters):
            return None
        remaining = self.parameters[len(args) :]
        if set(kwargs) != set(remaining):
            return None
        return tuple(args) + tuple(kwargs[name] for name in remaining)


def dispatch(
    qualname: str,
    candidates: Sequence[Candidate],
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> Any:
    """
    Call the first candidate accepting ``args`` and ``kwargs``.

    Raises:
        OverloadResolutionError: If no candidate accepts them.
    """
    for candidate in candidates:
        bound = candidate.bind(args, kwargs)
        if bound is not None and candidate.accepts(*bound):
            return candidate.implementation(*bound)
    raise OverloadResolutionError(qualname, args, kwargs)


def dispatch_key(
    qualname: str,
    candidates: Sequence[Candidate],
    key: Any,
    trailing: tuple[Any, ...] = (),
) -> Any:
    """
    Dispatch an item access on ``key``.

    A candidate with one parameter receives the key itself; a candidate with
    several receives the key unpacked from a tuple of matching length; a
    candidate with none matches only the empty tuple. ``trailing`` values
    (the assigned value for ``__setitem__``) are appended after the key
    arguments and are not seen by the predicate.
    """
    for candidate in candidates:
        arity = len(candidate.parameters)
        if arity == 1:
            bound: tuple[Any, ...] = (key,)
        elif isinstance(key, tuple) and len(key) == arity:
            bound = key
        else:
            continue
        if candidate.accepts(*bound):
            return candidate.implementation(*bound, *trailing)
    raise OverloadResolutionError(qualname, (key, *trailing), {})
