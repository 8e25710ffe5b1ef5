"""
Code generation for operations.

For ``fetch_user(id: int) -> str`` under the direct strategy:

    def fetch_user(self, id: int) -> str:
        self.fetch_user_call_count += 1
        self.fetch_user_call_args.append(id)
        _handler = self.fetch_user_handler
        if _handler is None:
            fatal_error(f"{self.__class__.__name__}.fetch_user_handler is not set")
        return _handler(id)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from protomock.core import naming
from protomock.core.erasure import contains_generic, erase
from protomock.core.model import FunctionType, Operation, Parameter, TypeRef

from .context import MemberCode, StateField, SynthesisContext
from .storage_codegen import atomic
from .tree import FunctionDef, IfBlock, Line, Node

logger = logging.getLogger(__name__)


def argument_record_type(
    ctx: SynthesisContext, parameters: Sequence[Parameter], generics: frozenset[str]
) -> str:
    """Element type of the call-argument log."""
    erased = [ctx.annotate(erase(p.type, generics)) for p in parameters]
    if not erased:
        return "tuple[()]"
    if len(erased) == 1:
        return erased[0]
    return f"tuple[{', '.join(erased)}]"


def argument_record(parameters: Sequence[Parameter]) -> str:
    """Expression recording one call's arguments: a bare value for one parameter."""
    names = [p.name for p in parameters]
    if not names:
        return "()"
    if len(names) == 1:
        return names[0]
    return f"({', '.join(names)})"


def handler_type(
    ctx: SynthesisContext,
    parameters: Sequence[Parameter],
    returns: TypeRef | None,
    generics: frozenset[str],
    *,
    is_async: bool = False,
) -> str:
    """Annotation of a handler field, erased and optional."""
    function = FunctionType(
        parameters=tuple(erase(p.type, generics) for p in parameters),
        returns=None if returns is None else erase(returns, generics),
        is_async=is_async,
    )
    return f"{ctx.annotate(function)} | None"


def signature_parameters(ctx: SynthesisContext, parameters: Sequence[Parameter]) -> list[str]:
    """Parameters of a generated method, with their declared types."""
    return ["self", *(f"{p.name}: {ctx.annotate(p.type)}" for p in parameters)]


def return_annotation(ctx: SynthesisContext, returns: TypeRef | None) -> str:
    return "None" if returns is None else ctx.annotate(returns)


def tracking_fields(
    identifier: str, record_type: str, handler_annotation: str
) -> list[StateField]:
    return [
        StateField(naming.call_count(identifier), "int", "0"),
        StateField(
            naming.call_args(identifier),
            f"list[{record_type}]",
            "[]",
            is_list=True,
            copy_on_read=True,
        ),
        StateField(naming.handler(identifier), handler_annotation),
    ]


def tracked_call_body(
    ctx: SynthesisContext,
    identifier: str,
    parameters: Sequence[Parameter],
    returns: TypeRef | None,
    generics: frozenset[str],
    handler_annotation: str,
    *,
    is_async: bool = False,
) -> list[Node]:
    """
    Record the call under the storage strategy, then invoke the handler.

    The handler is read inside the critical section and called after it.
    """
    state = ctx.state
    statements: list[Node] = [
        Line(f"{state}.{naming.call_count(identifier)} += 1"),
        Line(f"{state}.{naming.call_args(identifier)}.append({argument_record(parameters)})"),
    ]
    body = atomic(
        ctx,
        statements,
        result=f"{state}.{naming.handler(identifier)}",
        assign_to="_handler",
        result_type=handler_annotation,
    )
    body.extend(invoke_handler(ctx, identifier, parameters, returns, generics, is_async=is_async))
    return body


def invoke_handler(
    ctx: SynthesisContext,
    identifier: str,
    parameters: Sequence[Parameter],
    returns: TypeRef | None,
    generics: frozenset[str],
    *,
    is_async: bool = False,
    handler_attribute: str | None = None,
    extra_arguments: Sequence[str] = (),
) -> list[Node]:
    """
    Call ``_handler`` with the arguments.

    Void members call it only when set; others abort when it is unset and
    cast the result back when the declared return type was erased.
    """
    arguments = ", ".join([p.name for p in parameters] + list(extra_arguments))
    call = f"_handler({arguments})"
    if is_async:
        call = f"await {call}"

    if returns is None:
        return [IfBlock("_handler is not None", [Line(call)])]

    ctx.imports.add_runtime("fatal_error")
    attribute = handler_attribute or naming.handler(identifier)
    result = call
    if contains_generic(returns, generics):
        ctx.imports.add("typing", "cast")
        result = f'cast("{returns}", {call})'
    return [
        IfBlock(
            "_handler is None",
            [Line(f"fatal_error({ctx.qualname(attribute, ' is not set')})")],
        ),
        Line(f"return {result}"),
    ]


def generate_operation(ctx: SynthesisContext, operation: Operation) -> MemberCode:
    """Tracking fields and the method body for one operation."""
    identifier = ctx.overloads.identifier(operation)
    generics = operation.generic_parameters
    handler_annotation = handler_type(
        ctx, operation.parameters, operation.returns, generics, is_async=operation.suspends
    )
    record_type = argument_record_type(ctx, operation.parameters, generics)

    # Overloads get a private implementation; the public name becomes a dispatcher
    overloaded = ctx.overloads.is_overloaded(operation)
    method_name = naming.implementation(identifier) if overloaded else operation.name

    method = FunctionDef(
        name=method_name,
        parameters=signature_parameters(ctx, operation.parameters),
        returns=return_annotation(ctx, operation.returns),
        body=tracked_call_body(
            ctx,
            identifier,
            operation.parameters,
            operation.returns,
            generics,
            handler_annotation,
            is_async=operation.suspends,
        ),
        is_async=operation.suspends,
    )

    if generics:
        logger.debug(
            "%s.%s erased against %s", ctx.mock_name, identifier, ", ".join(sorted(generics))
        )

    return MemberCode(
        member=operation,
        fields=tracking_fields(identifier, record_type, handler_annotation),
        definitions=[method],
    )
