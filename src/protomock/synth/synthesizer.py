"""
Mock synthesizer.

Turns one MockSpecification into the source of a Python module defining its
mock class. Synthesis is a pure function of the specification and options:
the same input always renders to byte-identical output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from protomock.core.errors import ErrorContext, SynthesisError
from protomock.core.grouping import MemberGroup, group_by_condition
from protomock.core.model import (
    IndexedAccessor,
    Member,
    MockSpecification,
    Operation,
    Property,
    SynthesisOptions,
)
from protomock.core.overloads import resolve_overloads
from protomock.core.storage import StorageStrategy, needs_capability_guard, select_strategies
from protomock.core.validation import ensure_valid

from .context import ImportSet, MemberCode, SynthesisContext
from .dispatch import operation_dispatcher, subscript_dispatchers
from .operations import generate_operation
from .placeholders import generate_placeholders
from .properties import generate_property
from .reset import generate_reset
from .storage_codegen import exposures, storage_declarations
from .subscripts import generate_subscript
from .tree import ClassDef, IfBlock, Line, Module, Node

logger = logging.getLogger(__name__)

MODULE_DOCSTRING = "Mock for {interface}.\n\nGenerated by protomock. Do not edit."


@dataclass
class SynthesisResult:
    """
    Output of one synthesis run.

    Attributes:
        spec: The specification synthesized
        module: Declaration tree of the generated module
        source: Rendered module source
        strategies: Storage strategies emitted, in output order
        warnings: Non-fatal findings from validation
    """

    spec: MockSpecification
    module: Module
    source: str
    strategies: list[StorageStrategy] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    mock_name: str = ""


def generate_member(ctx: SynthesisContext, member: Member) -> MemberCode:
    """Dispatch one member to the generator for its kind."""
    match member:
        case Operation():
            return generate_operation(ctx, member)
        case Property():
            return generate_property(ctx, member)
        case IndexedAccessor():
            return generate_subscript(ctx, member)
    raise SynthesisError(
        f"cannot generate code for member kind '{member.kind}'",
        ErrorContext(mock=ctx.spec.interface_name, member=member.name),
    )


def _member_sections(ctx: SynthesisContext, groups: list[MemberGroup[MemberCode]]) -> list[Node]:
    nodes: list[Node] = []
    for group in groups:
        section: list[Node] = []
        for code in group.members:
            for state_field in code.fields:
                section.extend(exposures(ctx, state_field))
            section.extend(code.definitions)
        if not section:
            continue
        if group.condition is None:
            nodes.extend(section)
        else:
            nodes.append(IfBlock(group.condition.normalized, section))
    return nodes


def _dispatchers(ctx: SynthesisContext) -> list[Node]:
    nodes: list[Node] = []
    for group in ctx.overloads.overloaded_groups():
        if isinstance(group.members[0], IndexedAccessor):
            nodes.extend(subscript_dispatchers(ctx, group))
        else:
            nodes.extend(operation_dispatcher(ctx, group))
    return nodes


def build_class(ctx: SynthesisContext) -> ClassDef:
    """The mock class for the strategy in ``ctx``."""
    spec = ctx.spec
    codes = [generate_member(ctx, member) for member in spec.trackable_members]
    groups = group_by_condition(codes)

    body: list[Node] = []
    body.extend(generate_placeholders(ctx))
    body.extend(storage_declarations(ctx, groups))
    body.extend(_member_sections(ctx, groups))
    body.extend(_dispatchers(ctx))
    body.append(generate_reset(ctx, groups))

    decorators: list[str] = []
    if ctx.strategy.is_lock_based:
        ctx.imports.add("typing", "final")
        decorators.append("final")

    bases = [spec.interface_name] if ctx.options.inherit_interface else []

    logger.debug(
        "Built %s (%s): %d member(s) in %d group(s)",
        ctx.mock_name,
        ctx.strategy.value,
        len(codes),
        len(groups),
    )
    return ClassDef(
        name=ctx.mock_name,
        bases=bases,
        body=body,
        decorators=decorators,
        docstring=f"Mock implementation of {spec.interface_name}.",
    )


def _extra_imports(spec: MockSpecification, options: SynthesisOptions) -> list[str]:
    lines = sorted(set(spec.imports))
    if spec.interface_module and options.inherit_interface:
        lines.append(f"from {spec.interface_module} import {spec.interface_name}")
    return lines


def synthesize(
    spec: MockSpecification, options: SynthesisOptions | None = None
) -> SynthesisResult:
    """
    Synthesize the mock module for ``spec``.

    Raises:
        SpecificationError: If the specification fails validation.
    """
    options = options or SynthesisOptions()
    report = ensure_valid(spec)
    overloads = resolve_overloads(spec)
    strategies = select_strategies(spec, options)

    imports = ImportSet()
    classes: list[ClassDef] = []
    for strategy in strategies:
        ctx = SynthesisContext(spec=spec, options=options, strategy=strategy, overloads=overloads)
        classes.append(build_class(ctx))
        imports.merge(ctx.imports)

    body: list[Node] = []
    generic_names = spec.generic_names
    if generic_names:
        imports.add("typing", "TypeVar")
        body.extend(Line(f'{name} = TypeVar("{name}")') for name in generic_names)

    mock_name = spec.mock_class_name(options.mock_suffix)
    if spec.access_scope.exported:
        body.append(Line(f'__all__ = ["{mock_name}"]'))

    if needs_capability_guard(strategies):
        imports.add_runtime("HAS_MUTEX")
        body.append(IfBlock("HAS_MUTEX", [classes[0]], [classes[1]]))
    else:
        body.append(classes[0])

    module = Module(
        docstring=MODULE_DOCSTRING.format(interface=spec.interface_name),
        imports=imports.render(options.runtime_module, _extra_imports(spec, options)),
        body=body,
    )
    source = module.render()

    logger.info(
        "Synthesized %s with %s storage",
        mock_name,
        " + ".join(strategy.value for strategy in strategies),
    )
    return SynthesisResult(
        spec=spec,
        module=module,
        source=source,
        strategies=strategies,
        warnings=list(report.warnings),
        mock_name=mock_name,
    )


def generate_mock_source(spec: MockSpecification, options: SynthesisOptions | None = None) -> str:
    """Rendered module source for ``spec``."""
    return synthesize(spec, options).source
