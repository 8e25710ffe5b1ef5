"""
protomock member model.

Immutable pydantic models describing one interface: its members, their
types and the concurrency and visibility the mock must honour.
"""

from __future__ import annotations

from .members import (
    SUBSCRIPT_NAME,
    BuildCondition,
    IndexedAccessor,
    Member,
    MemberDeclaration,
    Mutability,
    Operation,
    Parameter,
    Property,
    TypePlaceholder,
)
from .spec import (
    DEFAULT_RUNTIME_MODULE,
    AccessScope,
    ConcurrencyRequirement,
    MockSpecification,
    SynthesisOptions,
    is_identifier,
)
from .types import (
    ANY,
    CAPTURE_ATTRIBUTES,
    ERASED_TYPE_NAME,
    NONE,
    ArrayType,
    AttributedType,
    FunctionType,
    GenericType,
    LiteralType,
    NamedType,
    OptionalType,
    TypeExpr,
    TypeRef,
    UnionType,
    is_optional,
    make_optional,
    referenced_names,
)

__all__ = [
    # Types
    "ANY",
    "CAPTURE_ATTRIBUTES",
    "ERASED_TYPE_NAME",
    "NONE",
    "ArrayType",
    "AttributedType",
    "FunctionType",
    "GenericType",
    "LiteralType",
    "NamedType",
    "OptionalType",
    "TypeExpr",
    "TypeRef",
    "UnionType",
    "is_optional",
    "make_optional",
    "referenced_names",
    # Members
    "SUBSCRIPT_NAME",
    "BuildCondition",
    "IndexedAccessor",
    "Member",
    "MemberDeclaration",
    "Mutability",
    "Operation",
    "Parameter",
    "Property",
    "TypePlaceholder",
    # Specification
    "DEFAULT_RUNTIME_MODULE",
    "AccessScope",
    "ConcurrencyRequirement",
    "MockSpecification",
    "SynthesisOptions",
    "is_identifier",
]
