"""
Conditional grouping of members.

Members without a build condition come first, followed by one group per
distinct condition, sorted by normalized condition text. Every section of
a generated mock (storage fields, initializer, accessors, reset) is emitted
in this order, which keeps output byte-stable.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

from protomock.core.model import BuildCondition


class Conditioned(Protocol):
    @property
    def condition(self) -> BuildCondition | None: ...


M = TypeVar("M", bound=Conditioned)


@dataclass
class MemberGroup(Generic[M]):
    """Members sharing one build condition (None for unconditioned)."""

    condition: BuildCondition | None
    members: list[M] = field(default_factory=list)

    @property
    def sort_key(self) -> str:
        return "" if self.condition is None else self.condition.normalized


def group_by_condition(members: Iterable[M]) -> list[MemberGroup[M]]:
    """
    Partition ``members`` by build condition.

    Declaration order is kept inside each group. Conditions that normalize to
    the same text share a group.
    """
    unconditioned: MemberGroup[M] = MemberGroup(None)
    conditioned: dict[str, MemberGroup[M]] = {}

    for member in members:
        condition = member.condition
        if condition is None:
            unconditioned.members.append(member)
            continue
        key = condition.normalized
        if key not in conditioned:
            conditioned[key] = MemberGroup(condition)
        conditioned[key].members.append(member)

    groups: list[MemberGroup[M]] = []
    if unconditioned.members:
        groups.append(unconditioned)
    groups.extend(conditioned[key] for key in sorted(conditioned))
    return groups
