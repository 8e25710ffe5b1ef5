"""
Support library imported by generated mocks.

Generated modules import from here rather than from protomock internals, so
a mock only depends on this package at run time.
"""

from __future__ import annotations

from .capabilities import HAS_MUTEX, LEGACY_LOCK_ENV, detect_mutex_support
from .dispatch import Candidate, dispatch, dispatch_key
from .errors import OverloadResolutionError, UnconfiguredHandlerError, fatal_error
from .isolation import is_nonisolated, nonisolated
from .locks import LegacyLock, Mutex
from .values import unwrap

__all__ = [
    "HAS_MUTEX",
    "LEGACY_LOCK_ENV",
    "Candidate",
    "LegacyLock",
    "Mutex",
    "OverloadResolutionError",
    "UnconfiguredHandlerError",
    "detect_mutex_support",
    "dispatch",
    "dispatch_key",
    "fatal_error",
    "is_nonisolated",
    "nonisolated",
    "unwrap",
]
