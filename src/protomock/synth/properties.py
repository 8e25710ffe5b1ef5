"""
Code generation for properties.

Three shapes, depending on mutability and optionality:

- get-only: backing ``_name`` (optional) and a read-only property that
  unwraps it
- get/set of an optional type: one plain field named after the property
- get/set of a non-optional type: backing ``_name`` and a property pair,
  so the mock can start out unconfigured while the public type stays
  non-optional
"""

from __future__ import annotations

from protomock.core import naming
from protomock.core.erasure import strip_capture_attributes
from protomock.core.model import Property, make_optional

from .context import MemberCode, StateField, SynthesisContext
from .storage_codegen import atomic
from .tree import FunctionDef, Line, Node


def _getter(ctx: SynthesisContext, prop: Property, backing: str, annotation: str) -> FunctionDef:
    read = atomic(
        ctx,
        [],
        result=f"{ctx.state}.{backing}",
        assign_to="value",
        inner_name="_read",
        result_type=f"{annotation} | None",
    )
    body: list[Node] = list(read)
    if prop.is_optional:
        body.append(Line("return value"))
    else:
        ctx.imports.add_runtime("unwrap")
        body.append(Line(f"return unwrap(value, {ctx.qualname(prop.name)})"))
    return FunctionDef(
        name=prop.name,
        parameters=["self"],
        returns=annotation,
        body=body,
        decorators=ctx.accessor_decorators("property"),
    )


def _setter(ctx: SynthesisContext, prop: Property, backing: str, annotation: str) -> FunctionDef:
    return FunctionDef(
        name=prop.name,
        parameters=["self", f"value: {annotation}"],
        returns="None",
        body=atomic(ctx, [Line(f"{ctx.state}.{backing} = value")], inner_name="_write"),
        decorators=ctx.accessor_decorators(f"{prop.name}.setter"),
    )


def generate_property(ctx: SynthesisContext, prop: Property) -> MemberCode:
    """Backing state and accessors for one property."""
    declared = strip_capture_attributes(prop.type)
    annotation = ctx.annotate(declared)

    if prop.is_mutable and prop.is_optional:
        return MemberCode(
            member=prop,
            fields=[StateField(prop.name, annotation, "None", plain=True)],
        )

    backing = naming.backing(prop.name)
    backing_field = StateField(backing, ctx.annotate(make_optional(declared)))
    definitions: list[Node] = [_getter(ctx, prop, backing, annotation)]
    if prop.is_mutable:
        definitions.append(_setter(ctx, prop, backing, annotation))
    return MemberCode(member=prop, fields=[backing_field], definitions=definitions)
