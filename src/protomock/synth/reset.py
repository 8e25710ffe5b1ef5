"""
Generation of ``reset_mock``.

Every call count goes back to 0, every call-argument log to an empty list,
every handler and backing field to None. All of it happens in one critical
section, grouped by build condition in the same order as the rest of the
class.
"""

from __future__ import annotations

import logging

from protomock.core import naming
from protomock.core.grouping import MemberGroup

from .context import MemberCode, SynthesisContext
from .storage_codegen import atomic
from .tree import FunctionDef, IfBlock, Line, Node

logger = logging.getLogger(__name__)


def _reset_statements(ctx: SynthesisContext, code: MemberCode) -> list[Node]:
    return [
        Line(f"{ctx.state}.{state_field.name} = {state_field.reset_value}")
        for state_field in code.fields
    ]


def generate_reset(ctx: SynthesisContext, groups: list[MemberGroup[MemberCode]]) -> FunctionDef:
    """``reset_mock`` restoring every generated field to its initial value."""
    statements: list[Node] = []
    for group in groups:
        lines = [line for code in group.members for line in _reset_statements(ctx, code)]
        if not lines:
            continue
        if group.condition is None:
            statements.extend(lines)
        else:
            statements.append(IfBlock(group.condition.normalized, lines))

    logger.debug(
        "%s.%s resets %d statement group(s)", ctx.mock_name, naming.RESET_METHOD, len(statements)
    )

    return FunctionDef(
        name=naming.RESET_METHOD,
        parameters=["self"],
        returns="None",
        body=atomic(ctx, statements, inner_name="_reset"),
        decorators=ctx.accessor_decorators(),
    )
