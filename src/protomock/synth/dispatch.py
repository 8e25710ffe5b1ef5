"""
Dispatchers for overloaded operations and indexed accessors.

Each overload's body lives in a private implementation. The public name is
declared once per overload with ``@overload`` stubs for type checkers and
once for real as a dispatcher that picks the implementation from the
runtime types of the arguments:

    def process(self, *args: Any, **kwargs: Any) -> Any:
        candidates: list[Candidate] = [
            Candidate(self._process_Int, ("value",), lambda _0: isinstance(_0, int) ...),
            Candidate(self._process_Str, ("value",), lambda _0: isinstance(_0, str)),
        ]
        return dispatch(f"{self.__class__.__name__}.process", candidates, args, kwargs)
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence

from protomock.core import naming
from protomock.core.grouping import group_by_condition
from protomock.core.model import (
    ERASED_TYPE_NAME,
    ArrayType,
    AttributedType,
    FunctionType,
    GenericType,
    IndexedAccessor,
    LiteralType,
    NamedType,
    Operation,
    OptionalType,
    TypeRef,
    UnionType,
)
from protomock.core.overloads import OverloadGroup

from .context import SynthesisContext
from .operations import return_annotation, signature_parameters
from .subscripts import VALUE_PARAMETER
from .tree import FunctionDef, IfBlock, Line, Node, StubDef

_ACCEPT_ANYTHING = frozenset({ERASED_TYPE_NAME, "object", "...", "Self", "typing.Any"})
_UNCHECKABLE_BASES = frozenset({"ClassVar", "Final", "typing.ClassVar", "typing.Final"})
_BUILTIN_ALIASES = {
    "Dict": "dict",
    "typing.Dict": "dict",
    "Set": "set",
    "typing.Set": "set",
    "FrozenSet": "frozenset",
    "Tuple": "tuple",
    "typing.Tuple": "tuple",
    "Type": "type",
}


def type_check(
    type_ref: TypeRef, value: str, opaque: Collection[str], depth: int = 0
) -> str | None:
    """
    Runtime check that ``value`` conforms to ``type_ref``.

    Returns None when every value is accepted: ``Any``, generic parameters
    and type placeholders (``opaque``), and types that cannot be checked.
    ``int`` excludes ``bool`` and ``float`` also accepts ``int``. Literals
    compare by equality against their values.
    """
    match type_ref:
        case NamedType(name=name):
            if name in _ACCEPT_ANYTHING or name in opaque:
                return None
            if name == "None":
                return f"{value} is None"
            if name == "int":
                return f"isinstance({value}, int) and not isinstance({value}, bool)"
            if name == "float":
                return f"isinstance({value}, (int, float)) and not isinstance({value}, bool)"
            return f"isinstance({value}, {name})"

        case OptionalType(wrapped=wrapped):
            inner = type_check(wrapped, value, opaque, depth)
            return None if inner is None else f"{value} is None or ({inner})"

        case ArrayType(element=element):
            item = f"_e{depth}"
            inner = type_check(element, item, opaque, depth + 1)
            if inner is None:
                return f"isinstance({value}, list)"
            return f"isinstance({value}, list) and all(({inner}) for {item} in {value})"

        case GenericType(base=base):
            if base in opaque or base in _UNCHECKABLE_BASES:
                return None
            return f"isinstance({value}, {_BUILTIN_ALIASES.get(base, base)})"

        case LiteralType(values=values):
            return f"{value} in ({', '.join(values)},)"

        case UnionType(options=options):
            checks = [type_check(option, value, opaque, depth) for option in options]
            if any(check is None for check in checks):
                return None
            return " or ".join(f"({check})" for check in checks)

        case FunctionType():
            return f"callable({value})"

        case AttributedType(base=base):
            return type_check(base, value, opaque, depth)

    return None


def acceptance_lambda(ctx: SynthesisContext, member: Operation | IndexedAccessor) -> str:
    """A lambda over positional arguments checking every parameter type."""
    opaque = set(member.generic_parameters) | ctx.placeholder_names
    names = [f"_{index}" for index in range(len(member.parameters))]
    checks = [
        check
        for name, param in zip(names, member.parameters, strict=True)
        if (check := type_check(param.type, name, opaque)) is not None
    ]
    body = " and ".join(f"({check})" for check in checks) if checks else "True"
    if not names:
        return f"lambda: {body}"
    return f"lambda {', '.join(names)}: {body}"


def _candidate(ctx: SynthesisContext, member: Operation | IndexedAccessor, impl: str) -> str:
    names = [f'"{p.name}"' for p in member.parameters]
    params = f"({names[0]},)" if len(names) == 1 else f"({', '.join(names)})"
    return f"Candidate(self.{impl}, {params}, {acceptance_lambda(ctx, member)})"


def _candidate_list(
    ctx: SynthesisContext,
    members: Sequence[Operation | IndexedAccessor],
    implementation: Callable[[Operation | IndexedAccessor], str],
) -> list[Node]:
    """``candidates = [...]`` plus conditional appends, in grouping order."""
    ctx.imports.add_runtime("Candidate")
    nodes: list[Node] = []
    initial: list[str] = []
    conditional: list[Node] = []
    for group in group_by_condition(members):
        entries = [_candidate(ctx, m, implementation(m)) for m in group.members]
        if group.condition is None:
            initial.extend(entries)
        else:
            conditional.append(
                IfBlock(
                    group.condition.normalized,
                    [Line(f"candidates.append({entry})") for entry in entries],
                )
            )
    if initial:
        nodes.append(Line("candidates: list[Candidate] = ["))
        nodes.extend(Line(f"    {entry},") for entry in initial)
        nodes.append(Line("]"))
    else:
        nodes.append(Line("candidates: list[Candidate] = []"))
    nodes.extend(conditional)
    return nodes


def _stubs(ctx: SynthesisContext, members: list[Operation]) -> list[Node]:
    ctx.imports.add("typing", "overload")
    nodes: list[Node] = []
    for group in group_by_condition(members):
        stubs: list[Node] = [
            StubDef(
                name=m.name,
                parameters=signature_parameters(ctx, m.parameters),
                returns=return_annotation(ctx, m.returns),
                decorators=["overload"],
                is_async=m.suspends,
            )
            for m in group.members
        ]
        if group.condition is None:
            nodes.extend(stubs)
        else:
            nodes.append(IfBlock(group.condition.normalized, stubs))
    return nodes


def operation_dispatcher(ctx: SynthesisContext, group: OverloadGroup) -> list[Node]:
    """``@overload`` stubs and the dispatching method for one operation name."""
    members = [m for m in group.members if isinstance(m, Operation)]
    ctx.imports.add_runtime("dispatch")
    ctx.imports.add("typing", "Any")

    body = _candidate_list(
        ctx, members, lambda m: naming.implementation(ctx.overloads.identifier(m))
    )
    body.append(
        Line(f"return dispatch({ctx.qualname(group.name)}, candidates, args, kwargs)")
    )
    dispatcher = FunctionDef(
        name=group.name,
        parameters=["self", "*args: Any", "**kwargs: Any"],
        returns="Any",
        body=body,
    )
    return [*_stubs(ctx, members), dispatcher]


def subscript_dispatchers(ctx: SynthesisContext, group: OverloadGroup) -> list[Node]:
    """``__getitem__`` and, when any accessor is mutable, ``__setitem__``."""
    accessors = [m for m in group.members if isinstance(m, IndexedAccessor)]
    ctx.imports.add_runtime("dispatch_key")
    ctx.imports.add("typing", "Any")

    get_body = _candidate_list(
        ctx, accessors, lambda m: naming.implementation(ctx.overloads.identifier(m))
    )
    get_body.append(
        Line(f"return dispatch_key({ctx.qualname(group.name)}, candidates, key)")
    )
    nodes: list[Node] = [
        FunctionDef("__getitem__", ["self", "key: Any"], "Any", get_body),
    ]

    mutable = [m for m in accessors if m.is_mutable]
    if mutable:
        set_body = _candidate_list(
            ctx, mutable, lambda m: naming.setter_implementation(ctx.overloads.identifier(m))
        )
        set_body.append(
            Line(
                f"dispatch_key({ctx.qualname(group.name)}, candidates, key, ({VALUE_PARAMETER},))"
            )
        )
        nodes.append(
            FunctionDef(
                "__setitem__", ["self", "key: Any", f"{VALUE_PARAMETER}: Any"], "None", set_body
            )
        )
    return nodes
