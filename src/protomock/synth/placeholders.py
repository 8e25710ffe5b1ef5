"""
Type placeholder aliases declared at the top of the mock class.
"""

from __future__ import annotations

from protomock.core.grouping import group_by_condition
from protomock.core.model import TypePlaceholder

from .context import SynthesisContext
from .tree import IfBlock, Line, Node


def placeholder_alias(ctx: SynthesisContext, placeholder: TypePlaceholder) -> Line:
    """``Name: TypeAlias = Default``, with ``Any`` when there is no default."""
    ctx.imports.add("typing", "TypeAlias")
    if placeholder.default is None:
        ctx.imports.add("typing", "Any")
        target = "Any"
    else:
        target = ctx.annotate(placeholder.default)
    return Line(f"{placeholder.name}: TypeAlias = {target}")


def generate_placeholders(ctx: SynthesisContext) -> list[Node]:
    nodes: list[Node] = []
    for group in group_by_condition(ctx.spec.placeholders):
        aliases: list[Node] = [placeholder_alias(ctx, p) for p in group.members]
        if group.condition is None:
            nodes.extend(aliases)
        else:
            nodes.append(IfBlock(group.condition.normalized, aliases))
    return nodes
