"""
Type expressions for the protomock member model.

Types are a small structural language: named types, optionals, arrays,
generic instantiations, literals, unions, function types and attributed
types. Every variant renders back to Python annotation text via ``str()``.

Any field declared as ``TypeExpr`` also accepts annotation text, e.g.
``"dict[str, list[int]] | None"``, which is parsed on validation.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

# Attributes that only make sense in parameter position and must be dropped
# once a type is stored in a field or used in a handler signature.
CAPTURE_ATTRIBUTES: frozenset[str] = frozenset({"escaping"})

ERASED_TYPE_NAME = "Any"


class NamedType(BaseModel):
    """
    A plain or dotted type name.

    Examples:
        - int
        - User
        - models.Account
    """

    kind: Literal["named"] = "named"
    name: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name


class OptionalType(BaseModel):
    """
    A type that admits ``None``.

    ``implicitly_unwrapped`` marks optionals that the declaring interface
    treats as always present once configured. Both kinds render as
    ``X | None``; the flag only affects overload suffixes.
    """

    kind: Literal["optional"] = "optional"
    wrapped: TypeExpr
    implicitly_unwrapped: bool = False

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.wrapped} | None"


class ArrayType(BaseModel):
    """An ordered homogeneous sequence, rendered as ``list[X]``."""

    kind: Literal["array"] = "array"
    element: TypeExpr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"list[{self.element}]"


class GenericType(BaseModel):
    """
    A generic instantiation.

    Examples:
        - dict[str, int]
        - Key[int]
        - tuple[int, ...]
        - tuple[()]
    """

    kind: Literal["generic"] = "generic"
    base: str
    arguments: tuple[TypeExpr, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        args = ", ".join(str(arg) for arg in self.arguments)
        return f"{self.base}[{args or '()'}]"


class LiteralType(BaseModel):
    """
    A ``Literal[...]`` type.

    Values are kept as source text (``'"read"'``, ``"1"``, ``"Mode.FAST"``)
    so they render back unchanged.
    """

    kind: Literal["literal"] = "literal"
    base: str = "Literal"
    values: tuple[str, ...]

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.base}[{', '.join(self.values)}]"


class UnionType(BaseModel):
    """A union of two or more non-None options, rendered as ``A | B``."""

    kind: Literal["union"] = "union"
    options: tuple[TypeExpr, ...]

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return " | ".join(str(option) for option in self.options)


class FunctionType(BaseModel):
    """
    A callable type.

    ``parameters`` is None for ``Callable[..., R]``. ``returns`` is None for
    functions returning nothing. Async functions render their return type
    wrapped in ``Awaitable``.
    """

    kind: Literal["function"] = "function"
    parameters: tuple[TypeExpr, ...] | None = Field(default_factory=tuple)
    returns: TypeExpr | None = None
    is_async: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def result_text(self) -> str:
        result = "None" if self.returns is None else str(self.returns)
        if self.is_async:
            return f"Awaitable[{result}]"
        return result

    def __str__(self) -> str:
        if self.parameters is None:
            params = "..."
        else:
            params = "[" + ", ".join(str(p) for p in self.parameters) + "]"
        return f"Callable[{params}, {self.result_text}]"


class AttributedType(BaseModel):
    """
    A type carrying metadata attributes, rendered with ``Annotated``.

    Example:
        Annotated[Callable[[], None], "escaping"]
    """

    kind: Literal["attributed"] = "attributed"
    base: TypeExpr
    attributes: tuple[str, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    @property
    def capture_only(self) -> bool:
        """True when every attribute is a parameter-position capture marker."""
        return all(attr in CAPTURE_ATTRIBUTES for attr in self.attributes)

    def __str__(self) -> str:
        if not self.attributes:
            return str(self.base)
        attrs = ", ".join(repr(attr) for attr in self.attributes)
        return f"Annotated[{self.base}, {attrs}]"


def _coerce_type(value: Any) -> Any:
    """Accept annotation text wherever a type is expected."""
    if isinstance(value, str):
        from protomock.core.errors import TypeParseError
        from protomock.core.type_parser import parse_type

        try:
            return parse_type(value)
        except TypeParseError as exc:
            raise ValueError(str(exc)) from exc
    return value


TypeRef = (
    NamedType
    | OptionalType
    | ArrayType
    | GenericType
    | LiteralType
    | UnionType
    | FunctionType
    | AttributedType
)

TypeExpr = Annotated[TypeRef, BeforeValidator(_coerce_type)]

OptionalType.model_rebuild()
ArrayType.model_rebuild()
GenericType.model_rebuild()
UnionType.model_rebuild()
FunctionType.model_rebuild()
AttributedType.model_rebuild()


ANY = NamedType(name=ERASED_TYPE_NAME)
NONE = NamedType(name="None")


def is_optional(type_ref: TypeRef) -> bool:
    """Whether the type admits None at its top level."""
    if isinstance(type_ref, OptionalType):
        return True
    if isinstance(type_ref, AttributedType):
        return is_optional(type_ref.base)
    if isinstance(type_ref, NamedType):
        return type_ref.name in ("None", ERASED_TYPE_NAME, "object")
    return False


def make_optional(type_ref: TypeRef) -> TypeRef:
    """Wrap a type in OptionalType unless it already admits None."""
    if is_optional(type_ref):
        return type_ref
    return OptionalType(wrapped=type_ref)


def referenced_names(type_ref: TypeRef) -> set[str]:
    """Collect every type name mentioned anywhere in the expression."""
    match type_ref:
        case NamedType(name=name):
            return {name}
        case OptionalType(wrapped=wrapped):
            return referenced_names(wrapped)
        case ArrayType(element=element):
            return referenced_names(element)
        case GenericType(base=base, arguments=arguments):
            names = {base}
            for arg in arguments:
                names |= referenced_names(arg)
            return names
        case LiteralType(base=base):
            return {base}
        case UnionType(options=options):
            names = set()
            for option in options:
                names |= referenced_names(option)
            return names
        case FunctionType(parameters=parameters, returns=returns):
            names = set()
            for param in parameters or ():
                names |= referenced_names(param)
            if returns is not None:
                names |= referenced_names(returns)
            return names
        case AttributedType(base=base):
            return referenced_names(base)
    return set()
