"""
Overload resolution for operations and indexed accessors.

Members sharing a name form an overload group. A member alone in its group
keeps its name as identifier; otherwise the identifier gets a suffix built
from its parameter types, e.g. ``process(value: int)`` becomes
``process_Int`` and ``process(value: list[str] | None)`` becomes
``process_StrArrayOptional``.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field

from protomock.core.errors import make_collision_error
from protomock.core.model import (
    ArrayType,
    AttributedType,
    FunctionType,
    GenericType,
    IndexedAccessor,
    LiteralType,
    MockSpecification,
    NamedType,
    Operation,
    OptionalType,
    TypeRef,
    UnionType,
)

logger = logging.getLogger(__name__)

_NON_ALPHANUMERIC = re.compile(r"[^0-9A-Za-z]")

Overloadable = Operation | IndexedAccessor


def _capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def sanitize_type(type_ref: TypeRef) -> str:
    """
    Turn a type into an identifier fragment.

    Examples:
        int               -> Int
        str | None        -> StrOptional
        list[int]         -> IntArray
        dict[str, User]   -> DictStrUser
        Key[int]          -> KeyInt
        int | str         -> IntOrStr
        Literal["r", "w"] -> LiteralRW
    """
    match type_ref:
        case OptionalType(wrapped=wrapped, implicitly_unwrapped=unwrapped):
            marker = "ImplicitlyUnwrapped" if unwrapped else "Optional"
            return sanitize_type(wrapped) + marker
        case ArrayType(element=element):
            return sanitize_type(element) + "Array"
        case GenericType(base=base, arguments=arguments):
            fragment = _strip(base) + "".join(sanitize_type(arg) for arg in arguments)
            return _capitalize_first(fragment)
        case LiteralType(values=values):
            return "Literal" + "".join(_strip(value) for value in values)
        case UnionType(options=options):
            return "Or".join(sanitize_type(option) for option in options)
        case FunctionType(parameters=parameters, returns=returns, is_async=is_async):
            fragment = "".join(sanitize_type(p) for p in parameters or ())
            if is_async:
                fragment += "Async"
            if returns is not None:
                fragment += sanitize_type(returns)
            return _capitalize_first(fragment or "Function")
        case AttributedType(base=base):
            return sanitize_type(base)
        case NamedType(name=name):
            return _strip(name)
    return _strip(str(type_ref))


def _strip(text: str) -> str:
    return _capitalize_first(_NON_ALPHANUMERIC.sub("", text))


def overload_suffix(member: Overloadable) -> str:
    """Concatenated parameter fragments in declaration order."""
    return "".join(sanitize_type(param.type) for param in member.parameters)


@dataclass
class OverloadGroup:
    """All members sharing one name, in declaration order."""

    name: str
    members: list[Overloadable] = field(default_factory=list)

    @property
    def is_overloaded(self) -> bool:
        return len(self.members) > 1


@dataclass
class OverloadTable:
    """
    Identifier assignment for every operation and indexed accessor.

    Members are keyed by identity since equal declarations under different
    conditions are still distinct members.
    """

    groups: dict[str, OverloadGroup] = field(default_factory=dict)
    identifiers: dict[int, str] = field(default_factory=dict)

    def identifier(self, member: Overloadable) -> str:
        return self.identifiers[id(member)]

    def group_of(self, member: Overloadable) -> OverloadGroup:
        return self.groups[member.name]

    def is_overloaded(self, member: Overloadable) -> bool:
        return self.group_of(member).is_overloaded

    def overloaded_groups(self) -> list[OverloadGroup]:
        """Overloaded groups in first-declaration order."""
        return [group for group in self.groups.values() if group.is_overloaded]


def group_overloads(spec: MockSpecification) -> dict[str, OverloadGroup]:
    """Group operations by name and indexed accessors under ``subscript``."""
    groups: dict[str, OverloadGroup] = {}
    for member in spec.members:
        if isinstance(member, Operation | IndexedAccessor):
            groups.setdefault(member.name, OverloadGroup(member.name)).members.append(member)
    return groups


def find_collisions(spec: MockSpecification) -> list[tuple[str, list[str]]]:
    """
    Find overloads that cannot be told apart at call time.

    Returns (name, signatures) pairs for every group where two members share
    a parameter-type sequence. Members under different build conditions
    still collide, since both conditions may hold at once.
    """
    collisions: list[tuple[str, list[str]]] = []
    for name, group in group_overloads(spec).items():
        by_types: dict[tuple[str, ...], list[Overloadable]] = defaultdict(list)
        for member in group.members:
            key = tuple(str(param.type) for param in member.parameters)
            by_types[key].append(member)
        for members in by_types.values():
            if len(members) > 1:
                collisions.append((name, [m.signature() for m in members]))
    return collisions


def resolve_overloads(spec: MockSpecification) -> OverloadTable:
    """
    Assign a unique identifier to every operation and indexed accessor.

    Raises:
        OverloadCollisionError: If two overloads share a parameter-type sequence.
    """
    collisions = find_collisions(spec)
    if collisions:
        name, signatures = collisions[0]
        raise make_collision_error(spec.interface_name, name, signatures)

    table = OverloadTable(groups=group_overloads(spec))
    for name, group in table.groups.items():
        if not group.is_overloaded:
            table.identifiers[id(group.members[0])] = name
            continue

        suffixes = [overload_suffix(member) for member in group.members]
        counts: dict[str, int] = defaultdict(int)
        for suffix in suffixes:
            counts[suffix] += 1

        # Distinct types that sanitize alike get a 1-based declaration index
        seen: dict[str, int] = defaultdict(int)
        for member, suffix in zip(group.members, suffixes, strict=True):
            if counts[suffix] > 1:
                seen[suffix] += 1
                logger.debug(
                    "Suffix '%s' shared by %d overloads of '%s'; appending index %d",
                    suffix,
                    counts[suffix],
                    name,
                    seen[suffix],
                )
                suffix = f"{suffix}{seen[suffix]}"
            table.identifiers[id(member)] = f"{name}_{suffix}" if suffix else name

    return table

