"""
Parser from Python annotation text to the protomock type model.

Uses the ``ast`` module so that anything Python accepts as an annotation
expression is read with Python's own grammar:

    >>> str(parse_type("Optional[dict[str, list[int]]]"))
    'dict[str, list[int]] | None'
"""

from __future__ import annotations

import ast

from protomock.core.errors import TypeParseError
from protomock.core.model.types import (
    ArrayType,
    AttributedType,
    FunctionType,
    GenericType,
    LiteralType,
    NamedType,
    OptionalType,
    TypeRef,
    UnionType,
)

_OPTIONAL_BASES = frozenset({"Optional", "typing.Optional"})
_UNION_BASES = frozenset({"Union", "typing.Union"})
_ARRAY_BASES = frozenset({"list", "List", "typing.List"})
_CALLABLE_BASES = frozenset(
    {"Callable", "typing.Callable", "collections.abc.Callable", "abc.Callable"}
)
_AWAITABLE_BASES = frozenset(
    {"Awaitable", "typing.Awaitable", "collections.abc.Awaitable", "Coroutine"}
)
_ANNOTATED_BASES = frozenset({"Annotated", "typing.Annotated"})
_LITERAL_BASES = frozenset({"Literal", "typing.Literal"})


def parse_type(text: str) -> TypeRef:
    """
    Parse an annotation string into a TypeRef.

    Raises:
        TypeParseError: If the text is not a valid annotation expression.
    """
    source = text.strip()
    if not source:
        raise TypeParseError("empty type annotation")
    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as exc:
        raise TypeParseError(f"invalid type annotation {text!r}: {exc.msg}") from exc
    return _TypeBuilder(text).build(tree.body)


class _TypeBuilder:
    """Walks an annotation AST and builds the matching TypeRef."""

    def __init__(self, text: str):
        self.text = text

    def fail(self, reason: str) -> TypeParseError:
        return TypeParseError(f"unsupported type annotation {self.text!r}: {reason}")

    def build(self, node: ast.expr) -> TypeRef:
        match node:
            case ast.Name(id=name):
                return NamedType(name=name)
            case ast.Attribute():
                return NamedType(name=self.dotted(node))
            case ast.Constant(value=None):
                return NamedType(name="None")
            case ast.Constant(value=str() as forward):
                return parse_type(forward)
            case ast.Constant(value=value) if value is Ellipsis:
                return NamedType(name="...")
            case ast.BinOp(op=ast.BitOr()):
                return self.union(self.flatten_bitor(node))
            case ast.Subscript(value=base_node, slice=slice_node):
                return self.subscript(self.dotted(base_node), slice_node)
        raise self.fail(f"unexpected {type(node).__name__} node")

    def dotted(self, node: ast.expr) -> str:
        if isinstance(node, ast.Name):
            return node.id
        if isinstance(node, ast.Attribute):
            return f"{self.dotted(node.value)}.{node.attr}"
        raise self.fail("generic base must be a name")

    def flatten_bitor(self, node: ast.expr) -> list[ast.expr]:
        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            return self.flatten_bitor(node.left) + self.flatten_bitor(node.right)
        return [node]

    def union(self, nodes: list[ast.expr]) -> TypeRef:
        options: list[TypeRef] = []
        has_none = False
        for node in nodes:
            option = self.build(node)
            if isinstance(option, NamedType) and option.name == "None":
                has_none = True
                continue
            # X | None inside a union contributes X and the None marker
            if isinstance(option, OptionalType):
                has_none = True
                option = option.wrapped
            if isinstance(option, UnionType):
                options.extend(o for o in option.options if o not in options)
            elif option not in options:
                options.append(option)
        if not options:
            return NamedType(name="None")
        inner = options[0] if len(options) == 1 else UnionType(options=tuple(options))
        if has_none:
            return OptionalType(wrapped=inner)
        return inner

    def elements(self, slice_node: ast.expr) -> list[ast.expr]:
        if isinstance(slice_node, ast.Tuple):
            return list(slice_node.elts)
        return [slice_node]

    def subscript(self, base: str, slice_node: ast.expr) -> TypeRef:
        elements = self.elements(slice_node)

        if base in _OPTIONAL_BASES:
            if len(elements) != 1:
                raise self.fail("Optional takes exactly one argument")
            return self.union([elements[0], ast.Constant(value=None)])

        if base in _UNION_BASES:
            return self.union(elements)

        if base in _ARRAY_BASES:
            if len(elements) != 1:
                raise self.fail("list takes exactly one argument")
            return ArrayType(element=self.build(elements[0]))

        if base in _CALLABLE_BASES:
            return self.callable(elements)

        if base in _ANNOTATED_BASES:
            if len(elements) < 2:
                raise self.fail("Annotated needs a type and at least one attribute")
            attributes: list[str] = []
            for meta in elements[1:]:
                if not (isinstance(meta, ast.Constant) and isinstance(meta.value, str)):
                    raise self.fail("Annotated metadata must be string literals")
                attributes.append(meta.value)
            return AttributedType(base=self.build(elements[0]), attributes=tuple(attributes))

        if base in _LITERAL_BASES:
            return LiteralType(base=base, values=tuple(self.literal(e) for e in elements))

        return GenericType(base=base, arguments=tuple(self.build(e) for e in elements))

    def literal(self, node: ast.expr) -> str:
        """Source text of one ``Literal`` value: a constant, negated number or enum member."""
        match node:
            case ast.Constant(value=value) if value is not Ellipsis:
                return ast.unparse(node)
            case ast.UnaryOp(op=ast.USub(), operand=ast.Constant(value=int() | float())):
                return ast.unparse(node)
            case ast.Attribute():
                return self.dotted(node)
        raise self.fail("Literal values must be constants or enum members")

    def callable(self, elements: list[ast.expr]) -> FunctionType:
        if len(elements) != 2:
            raise self.fail("Callable takes a parameter list and a return type")
        params_node, returns_node = elements

        parameters: tuple[TypeRef, ...] | None
        if isinstance(params_node, ast.Constant) and params_node.value is Ellipsis:
            parameters = None
        elif isinstance(params_node, ast.List):
            parameters = tuple(self.build(p) for p in params_node.elts)
        else:
            raise self.fail("Callable parameters must be a list or ...")

        is_async = False
        if isinstance(returns_node, ast.Subscript):
            wrapper = self.dotted(returns_node.value)
            if wrapper in _AWAITABLE_BASES:
                awaited = self.elements(returns_node.slice)
                is_async = True
                returns_node = awaited[-1]

        returns = self.build(returns_node)
        if isinstance(returns, NamedType) and returns.name == "None":
            return FunctionType(parameters=parameters, returns=None, is_async=is_async)
        return FunctionType(parameters=parameters, returns=returns, is_async=is_async)
