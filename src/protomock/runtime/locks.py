"""
Lock primitives guarding a mock's storage aggregate.

Both wrap a single value and only hand it out while the lock is held.
``Mutex`` is the preferred primitive and offers a context manager;
``LegacyLock`` only offers the callback form.
"""

from __future__ import annotations

import _thread
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class Mutex(Generic[T]):
    """
    A value guarded by a ``threading.Lock``.

    Usage:
        storage = Mutex(State())
        with storage.lock() as state:
            state.count += 1
    """

    __slots__ = ("_lock", "_value")

    def __init__(self, value: T):
        self._lock = threading.Lock()
        self._value = value

    @contextmanager
    def lock(self) -> Iterator[T]:
        with self._lock:
            yield self._value

    def with_lock(self, body: Callable[[T], R]) -> R:
        with self._lock:
            return body(self._value)


class LegacyLock(Generic[T]):
    """
    A value guarded by a bare interpreter lock.

    Only the callback form is available: ``body`` runs with the value while
    the lock is held and its result is returned after release.
    """

    __slots__ = ("_lock", "_value")

    def __init__(self, value: T):
        self._lock = _thread.allocate_lock()
        self._value = value

    def with_lock(self, body: Callable[[T], R]) -> R:
        self._lock.acquire()
        try:
            return body(self._value)
        finally:
            self._lock.release()
