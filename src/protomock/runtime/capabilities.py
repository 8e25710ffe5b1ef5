"""
Capability detection for the preferred lock.

``HAS_MUTEX`` is resolved once, when this module is first imported.
Generated lock-based mocks define their Mutex variant when it is true and
their LegacyLock variant otherwise.
"""

from __future__ import annotations

import logging
import os
import sys

logger = logging.getLogger(__name__)

LEGACY_LOCK_ENV = "PROTOMOCK_LEGACY_LOCK"

# Platforms where the interpreter runs without OS threads
_THREADLESS_PLATFORMS = frozenset({"emscripten", "wasi"})

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def detect_mutex_support() -> bool:
    """Whether generated mocks should use ``Mutex`` rather than ``LegacyLock``."""
    if os.environ.get(LEGACY_LOCK_ENV, "").strip().lower() in _TRUTHY:
        logger.debug("%s set, using LegacyLock", LEGACY_LOCK_ENV)
        return False
    if sys.platform in _THREADLESS_PLATFORMS:
        logger.debug("Platform %s has no OS threads, using LegacyLock", sys.platform)
        return False
    return True


HAS_MUTEX: bool = detect_mutex_support()
