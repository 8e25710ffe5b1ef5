"""
Member declarations for the protomock member model.

A MemberDeclaration is a tagged union over the four kinds of interface
member. Every kind may carry a BuildCondition that gates its existence.
"""

from __future__ import annotations

import ast
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .types import TypeExpr, TypeRef, is_optional

SUBSCRIPT_NAME = "subscript"


class Mutability(StrEnum):
    """Whether a property or indexed accessor can be assigned."""

    GET_ONLY = "get_only"
    GET_SET = "get_set"


class BuildCondition(BaseModel):
    """
    A boolean expression gating a member.

    Conditions are opaque to protomock: they are compared only by normalized
    text and emitted verbatim into an ``if`` block in the generated class.

    Examples:
        - DEBUG
        - sys.version_info >= (3, 12)
        - FEATURE_FLAGS.enabled("beta") and not LEGACY
    """

    expression: str

    model_config = ConfigDict(frozen=True)

    @field_validator("expression")
    @classmethod
    def _check_syntax(cls, value: str) -> str:
        try:
            ast.parse(value.strip(), mode="eval")
        except SyntaxError as exc:
            raise ValueError(f"invalid build condition {value!r}: {exc.msg}") from exc
        return value

    @property
    def normalized(self) -> str:
        """Canonical text used for equality and ordering."""
        return ast.unparse(ast.parse(self.expression.strip(), mode="eval"))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BuildCondition):
            return NotImplemented
        return self.normalized == other.normalized

    def __hash__(self) -> int:
        return hash(self.normalized)

    def __str__(self) -> str:
        return self.normalized


class Parameter(BaseModel):
    """A named, typed parameter of an operation or indexed accessor."""

    name: str
    type: TypeExpr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.name}: {self.type}"


class Operation(BaseModel):
    """
    A method of the interface.

    Attributes:
        returns: Declared return type, or None for operations returning nothing
        suspends: The operation is a coroutine (``async def``)
        may_fail: The operation may raise; handler exceptions propagate as-is
        generic_parameters: Names of type variables local to this operation
    """

    kind: Literal["operation"] = "operation"
    name: str
    parameters: tuple[Parameter, ...] = Field(default_factory=tuple)
    returns: TypeExpr | None = None
    suspends: bool = False
    may_fail: bool = False
    generic_parameters: frozenset[str] = Field(default_factory=frozenset)
    condition: BuildCondition | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("returns", mode="after")
    @classmethod
    def _none_is_void(cls, value: TypeRef | None) -> TypeRef | None:
        if value is not None and str(value) == "None":
            return None
        return value

    @property
    def parameter_types(self) -> tuple[TypeRef, ...]:
        return tuple(param.type for param in self.parameters)

    def signature(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        prefix = "async " if self.suspends else ""
        result = "None" if self.returns is None else str(self.returns)
        return f"{prefix}{self.name}({params}) -> {result}"


class Property(BaseModel):
    """
    A data member of the interface.

    Optionality is not a separate flag: a property whose type admits None
    (``X | None``) is optional.
    """

    kind: Literal["property"] = "property"
    name: str
    type: TypeExpr
    mutability: Mutability = Mutability.GET_ONLY
    condition: BuildCondition | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_optional(self) -> bool:
        return is_optional(self.type)

    @property
    def is_mutable(self) -> bool:
        return self.mutability == Mutability.GET_SET

    def signature(self) -> str:
        access = "get set" if self.is_mutable else "get"
        return f"{self.name}: {self.type} {{ {access} }}"


class IndexedAccessor(BaseModel):
    """
    Item access on the interface (``__getitem__`` / ``__setitem__``).

    Accessors have no name of their own; all of them share the overload
    group ``subscript``.
    """

    kind: Literal["indexed_accessor"] = "indexed_accessor"
    parameters: tuple[Parameter, ...] = Field(default_factory=tuple)
    returns: TypeExpr
    generic_parameters: frozenset[str] = Field(default_factory=frozenset)
    mutability: Mutability = Mutability.GET_ONLY
    condition: BuildCondition | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def name(self) -> str:
        return SUBSCRIPT_NAME

    @property
    def is_mutable(self) -> bool:
        return self.mutability == Mutability.GET_SET

    @property
    def parameter_types(self) -> tuple[TypeRef, ...]:
        return tuple(param.type for param in self.parameters)

    def signature(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        access = "get set" if self.is_mutable else "get"
        return f"[{params}] -> {self.returns} {{ {access} }}"


class TypePlaceholder(BaseModel):
    """An associated type alias with an optional default."""

    kind: Literal["type_placeholder"] = "type_placeholder"
    name: str
    default: TypeExpr | None = None
    condition: BuildCondition | None = None

    model_config = ConfigDict(frozen=True)

    def signature(self) -> str:
        default = "Any" if self.default is None else str(self.default)
        return f"{self.name} = {default}"


MemberDeclaration = Annotated[
    Operation | Property | IndexedAccessor | TypePlaceholder,
    Field(discriminator="kind"),
]

Member = Operation | Property | IndexedAccessor | TypePlaceholder
