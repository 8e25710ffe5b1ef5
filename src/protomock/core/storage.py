"""
Storage strategy selection.

The strategy decides how a mock holds its tracking, backing and handler
state:

- DIRECT: plain instance attributes, no synchronization
- MUTEX: one ``Mutex`` guarding a single ``_Storage`` dataclass
- LEGACY_LOCK: the same layout behind ``LegacyLock``, whose only API is the
  callback form ``with_lock(body)``

Thread-safe and isolation-domain interfaces get both lock variants behind a
``HAS_MUTEX`` guard unless the legacy lock is forced.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from protomock.core.model import ConcurrencyRequirement, MockSpecification, SynthesisOptions

logger = logging.getLogger(__name__)


class StorageStrategy(StrEnum):
    """How generated state is stored and synchronized."""

    DIRECT = "direct"
    MUTEX = "mutex"
    LEGACY_LOCK = "legacy_lock"

    @property
    def is_lock_based(self) -> bool:
        return self is not StorageStrategy.DIRECT

    @property
    def lock_type_name(self) -> str | None:
        """Runtime class wrapping the storage aggregate."""
        return {
            StorageStrategy.DIRECT: None,
            StorageStrategy.MUTEX: "Mutex",
            StorageStrategy.LEGACY_LOCK: "LegacyLock",
        }[self]


def select_strategies(
    spec: MockSpecification, options: SynthesisOptions | None = None
) -> list[StorageStrategy]:
    """
    Choose the storage strategies to emit for ``spec``.

    Returns a single strategy, or ``[MUTEX, LEGACY_LOCK]`` when both variants
    must be emitted behind the ``HAS_MUTEX`` capability guard.
    """
    options = options or SynthesisOptions()

    if spec.concurrency == ConcurrencyRequirement.NONE:
        strategies = [StorageStrategy.DIRECT]
    elif options.force_legacy_lock:
        strategies = [StorageStrategy.LEGACY_LOCK]
    else:
        strategies = [StorageStrategy.MUTEX, StorageStrategy.LEGACY_LOCK]

    logger.debug(
        "Storage for %s (%s): %s",
        spec.interface_name,
        spec.concurrency.value,
        ", ".join(s.value for s in strategies),
    )
    return strategies


def needs_capability_guard(strategies: list[StorageStrategy]) -> bool:
    """Whether the variants must be wrapped in ``if HAS_MUTEX: ... else: ...``."""
    return len(strategies) > 1
