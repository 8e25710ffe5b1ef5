"""
Code generation for indexed accessors (``__getitem__`` / ``__setitem__``).

Accessors track calls like operations, under identifiers derived from
``subscript``. Reads call ``<id>_handler`` and abort when it is unset;
writes on mutable accessors call ``<id>_set_handler`` when it is set and
are not tracked.

A single-parameter accessor takes the key as is. With several parameters
the key is a tuple and is unpacked; with none it is the empty tuple.
"""

from __future__ import annotations

from protomock.core import naming
from protomock.core.erasure import erase
from protomock.core.model import IndexedAccessor

from .context import MemberCode, StateField, SynthesisContext
from .operations import (
    argument_record_type,
    handler_type,
    invoke_handler,
    return_annotation,
    signature_parameters,
    tracked_call_body,
    tracking_fields,
)
from .storage_codegen import atomic
from .tree import FunctionDef, Line, Node

KEY_PARAMETER = "_key"
VALUE_PARAMETER = "new_value"


def key_signature(ctx: SynthesisContext, accessor: IndexedAccessor) -> tuple[list[str], list[Node]]:
    """
    Parameters for ``__getitem__`` and the statements unpacking the key.
    """
    params = accessor.parameters
    if len(params) == 1:
        return signature_parameters(ctx, params), []
    types = ", ".join(ctx.annotate(p.type) for p in params) if params else "()"
    unpack: list[Node] = []
    if len(params) > 1:
        unpack.append(Line(f"{', '.join(p.name for p in params)} = {KEY_PARAMETER}"))
    return ["self", f"{KEY_PARAMETER}: tuple[{types}]"], unpack


def set_handler_type(ctx: SynthesisContext, accessor: IndexedAccessor) -> str:
    """Set handlers receive the key parameters followed by the new value."""
    generics = accessor.generic_parameters
    erased_value = erase(accessor.returns, generics)
    params = [*(erase(p.type, generics) for p in accessor.parameters), erased_value]
    rendered = ", ".join(ctx.annotate(p) for p in params)
    ctx.imports.add("collections.abc", "Callable")
    return f"Callable[[{rendered}], None] | None"


def _set_body(ctx: SynthesisContext, identifier: str, accessor: IndexedAccessor) -> list[Node]:
    attribute = naming.set_handler(identifier)
    body = atomic(
        ctx,
        [],
        result=f"{ctx.state}.{attribute}",
        assign_to="_handler",
        inner_name="_read",
    )
    body.extend(
        invoke_handler(
            ctx,
            identifier,
            accessor.parameters,
            None,
            accessor.generic_parameters,
            handler_attribute=attribute,
            extra_arguments=[VALUE_PARAMETER],
        )
    )
    return body


def generate_subscript(ctx: SynthesisContext, accessor: IndexedAccessor) -> MemberCode:
    """Tracking state plus item-access methods for one indexed accessor."""
    identifier = ctx.overloads.identifier(accessor)
    generics = accessor.generic_parameters
    handler_annotation = handler_type(ctx, accessor.parameters, accessor.returns, generics)
    record_type = argument_record_type(ctx, accessor.parameters, generics)

    fields: list[StateField] = tracking_fields(identifier, record_type, handler_annotation)
    if accessor.is_mutable:
        fields.append(StateField(naming.set_handler(identifier), set_handler_type(ctx, accessor)))

    get_body = tracked_call_body(
        ctx, identifier, accessor.parameters, accessor.returns, generics, handler_annotation
    )
    value_annotation = return_annotation(ctx, accessor.returns)
    definitions: list[Node] = []

    if ctx.overloads.is_overloaded(accessor):
        # Dispatchers call these with the key already unpacked
        definitions.append(
            FunctionDef(
                name=naming.implementation(identifier),
                parameters=signature_parameters(ctx, accessor.parameters),
                returns=value_annotation,
                body=get_body,
            )
        )
        if accessor.is_mutable:
            definitions.append(
                FunctionDef(
                    name=naming.setter_implementation(identifier),
                    parameters=[
                        *signature_parameters(ctx, accessor.parameters),
                        f"{VALUE_PARAMETER}: {value_annotation}",
                    ],
                    returns="None",
                    body=_set_body(ctx, identifier, accessor),
                )
            )
        return MemberCode(member=accessor, fields=fields, definitions=definitions)

    params, unpack = key_signature(ctx, accessor)
    definitions.append(
        FunctionDef(
            name="__getitem__",
            parameters=params,
            returns=value_annotation,
            body=[*unpack, *get_body],
        )
    )
    if accessor.is_mutable:
        definitions.append(
            FunctionDef(
                name="__setitem__",
                parameters=[*params, f"{VALUE_PARAMETER}: {value_annotation}"],
                returns="None",
                body=[*unpack, *_set_body(ctx, identifier, accessor)],
            )
        )
    return MemberCode(member=accessor, fields=fields, definitions=definitions)
