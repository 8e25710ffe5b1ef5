"""
MockSpecification: the aggregate root handed to the synthesizer.
"""

from __future__ import annotations

import keyword
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .members import (
    IndexedAccessor,
    Member,
    MemberDeclaration,
    Operation,
    Property,
    TypePlaceholder,
)

DEFAULT_RUNTIME_MODULE = "protomock.runtime"


class ConcurrencyRequirement(StrEnum):
    """Concurrency contract the interface imposes on its implementations."""

    NONE = "none"
    THREAD_SAFE = "thread_safe"
    ISOLATION_DOMAIN = "isolation_domain"


class AccessScope(StrEnum):
    """Declared visibility of the interface."""

    PUBLIC = "public"
    PACKAGE = "package"
    INTERNAL = "internal"
    FILEPRIVATE = "fileprivate"
    PRIVATE = "private"

    @property
    def exported(self) -> bool:
        """Whether the mock is listed in the generated module's ``__all__``."""
        return self in (AccessScope.PUBLIC, AccessScope.PACKAGE)

    @property
    def hidden(self) -> bool:
        """Whether the mock class name gets a leading underscore."""
        return self in (AccessScope.FILEPRIVATE, AccessScope.PRIVATE)


class MockSpecification(BaseModel):
    """
    Complete description of one interface to mock.

    Attributes:
        interface_name: Class the mock implements
        interface_module: Module to import the interface from; when None the
            interface must already be in the namespace the mock runs in
        imports: Extra import lines the generated module needs at runtime,
            e.g. for types used in placeholder defaults or overload dispatch
        members: Members in declaration order
        type_placeholders: Associated type aliases declared on the interface
    """

    interface_name: str
    interface_module: str | None = None
    concurrency: ConcurrencyRequirement = ConcurrencyRequirement.NONE
    access_scope: AccessScope = AccessScope.INTERNAL
    members: tuple[MemberDeclaration, ...] = Field(default_factory=tuple)
    type_placeholders: tuple[TypePlaceholder, ...] = Field(default_factory=tuple)
    imports: tuple[str, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    @property
    def is_lock_based(self) -> bool:
        return self.concurrency != ConcurrencyRequirement.NONE

    @property
    def operations(self) -> list[Operation]:
        return [m for m in self.members if isinstance(m, Operation)]

    @property
    def properties(self) -> list[Property]:
        return [m for m in self.members if isinstance(m, Property)]

    @property
    def placeholders(self) -> list[TypePlaceholder]:
        """Placeholders from both the dedicated list and the member list."""
        declared = [m for m in self.members if isinstance(m, TypePlaceholder)]
        return list(self.type_placeholders) + declared

    @property
    def trackable_members(self) -> list[Member]:
        """Members that produce tracking or backing state."""
        return [m for m in self.members if not isinstance(m, TypePlaceholder)]

    @property
    def generic_names(self) -> list[str]:
        """Sorted generic parameter names used by any member."""
        names: set[str] = set()
        for member in self.members:
            if isinstance(member, Operation | IndexedAccessor):
                names |= member.generic_parameters
        return sorted(names)

    def mock_class_name(self, suffix: str = "Mock") -> str:
        name = f"{self.interface_name}{suffix}"
        if self.access_scope.hidden:
            return f"_{name}"
        return name


def is_identifier(name: str) -> bool:
    """Whether ``name`` can be used as a Python attribute or parameter name."""
    return name.isidentifier() and not keyword.iskeyword(name)


class SynthesisOptions(BaseModel):
    """
    Options controlling code generation.

    Attributes:
        force_legacy_lock: Emit only the LegacyLock variant for lock-based
            mocks instead of both variants behind the HAS_MUTEX guard
        runtime_module: Import path of the support library used by
            generated code
        mock_suffix: Appended to the interface name to form the mock name
        inherit_interface: Make the mock a subclass of the interface
    """

    force_legacy_lock: bool = False
    runtime_module: str = DEFAULT_RUNTIME_MODULE
    mock_suffix: str = "Mock"
    inherit_interface: bool = True

    model_config = ConfigDict(frozen=True)
