"""
Strategy-specific code for holding and accessing generated state.

Member generators write their state statements against ``ctx.state``
(``self`` for the direct strategy, ``_state`` for lock-based ones) and hand
them to :func:`atomic`, which wraps them in the critical section the
strategy requires:

    direct       self.x_call_count += 1
    mutex        with self._storage.lock() as _state:
                     _state.x_call_count += 1
    legacy lock  def _record(_state: XMock._Storage) -> None:
                     _state.x_call_count += 1
                 self._storage.with_lock(_record)
"""

from __future__ import annotations

from collections.abc import Callable

from protomock.core import naming
from protomock.core.grouping import MemberGroup
from protomock.core.storage import StorageStrategy

from .context import MemberCode, StateField, SynthesisContext
from .tree import Block, ClassDef, FunctionDef, IfBlock, Line, Node


def atomic(
    ctx: SynthesisContext,
    statements: list[Node],
    *,
    result: str | None = None,
    assign_to: str | None = None,
    returns: bool = False,
    inner_name: str = "_record",
    result_type: str = "None",
) -> list[Node]:
    """
    Run ``statements`` (and evaluate ``result``) in one critical section.

    ``result`` is an expression over ``ctx.state``; it is either returned
    from the enclosing function (``returns``) or assigned to ``assign_to``
    after the lock is released.
    """
    if ctx.strategy is StorageStrategy.DIRECT:
        nodes = list(statements)
        if result is not None:
            nodes.append(Line(_deliver(result, assign_to, returns)))
        return nodes

    if ctx.strategy is StorageStrategy.MUTEX:
        body = list(statements)
        if result is not None and returns:
            body.append(Line(f"return {result}"))
        elif result is not None and assign_to:
            body.append(Line(f"{assign_to} = {result}"))
        return [Block(f"with self.{naming.STORAGE_ATTRIBUTE}.lock() as _state", body)]

    # LegacyLock only offers the callback form
    if not statements and result is not None:
        call = f"self.{naming.STORAGE_ATTRIBUTE}.with_lock(lambda _state: {result})"
        return [Line(_deliver(call, assign_to, returns))]

    inner_body = list(statements)
    if result is not None:
        inner_body.append(Line(f"return {result}"))
    inner = FunctionDef(
        name=inner_name,
        parameters=[f"_state: {ctx.mock_name}.{naming.STORAGE_CLASS}"],
        returns=result_type if result is not None else "None",
        body=inner_body,
    )
    call = f"self.{naming.STORAGE_ATTRIBUTE}.with_lock({inner_name})"
    return [inner, Line(_deliver(call, assign_to, returns) if result is not None else call)]


def _deliver(expression: str, assign_to: str | None, returns: bool) -> str:
    if returns:
        return f"return {expression}"
    if assign_to:
        return f"{assign_to} = {expression}"
    return expression


def exposures(ctx: SynthesisContext, state_field: StateField) -> list[Node]:
    """
    Class-body nodes making ``state_field`` reachable as ``mock.<name>``.

    Direct mocks keep state in instance attributes, so only plain fields
    need a class-level declaration. Lock-based mocks get a locked property
    pair per field.
    """
    if not ctx.strategy.is_lock_based:
        if state_field.plain:
            return [Line(f"{state_field.name}: {state_field.annotation} = {state_field.initial}")]
        return []

    name = state_field.name
    read = f"{ctx.state}.{name}"
    if state_field.copy_on_read:
        read = f"list({read})"

    getter = FunctionDef(
        name=name,
        parameters=["self"],
        returns=state_field.annotation,
        body=atomic(ctx, [], result=read, returns=True, result_type=state_field.annotation),
        decorators=ctx.accessor_decorators("property"),
    )
    setter = FunctionDef(
        name=name,
        parameters=["self", f"value: {state_field.annotation}"],
        returns="None",
        body=atomic(ctx, [Line(f"{ctx.state}.{name} = value")], inner_name="_write"),
        decorators=ctx.accessor_decorators(f"{name}.setter"),
    )
    return [getter, setter]


def _field_declaration(state_field: StateField) -> Line:
    if state_field.is_list:
        default = "dataclasses.field(default_factory=list)"
    else:
        default = state_field.initial
    return Line(f"{state_field.name}: {state_field.annotation} = {default}")


def _grouped(
    groups: list[MemberGroup[MemberCode]], render: Callable[[StateField], Node | None]
) -> list[Node]:
    nodes: list[Node] = []
    for group in groups:
        lines = [
            node
            for code in group.members
            for state_field in code.fields
            if (node := render(state_field)) is not None
        ]
        if not lines:
            continue
        if group.condition is None:
            nodes.extend(lines)
        else:
            nodes.append(IfBlock(group.condition.normalized, lines))
    return nodes


def storage_declarations(
    ctx: SynthesisContext, groups: list[MemberGroup[MemberCode]]
) -> list[Node]:
    """
    The ``_Storage`` aggregate (lock-based) and ``__init__``.

    Direct mocks initialize every non-plain field in ``__init__``; plain
    fields are declared on the class by :func:`exposures`.
    """
    if not ctx.strategy.is_lock_based:
        body = _grouped(
            groups,
            lambda f: None
            if f.plain
            else Line(f"self.{f.name}: {f.annotation} = {f.reset_value}"),
        )
        return [FunctionDef("__init__", ["self"], "None", body)]

    ctx.imports.uses_dataclasses = True
    lock_type = ctx.strategy.lock_type_name
    assert lock_type is not None
    ctx.imports.add_runtime(lock_type)

    storage = ClassDef(
        name=naming.STORAGE_CLASS,
        body=_grouped(groups, _field_declaration),
        decorators=["dataclasses.dataclass"],
    )
    init = FunctionDef(
        "__init__",
        ["self"],
        "None",
        [Line(f"self.{naming.STORAGE_ATTRIBUTE} = {lock_type}(self.{naming.STORAGE_CLASS}())")],
    )
    return [storage, init]
