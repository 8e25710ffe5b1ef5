"""
Semantic validation of MockSpecification values.

Pydantic validates shape (types parse, conditions are expressions). This
module checks the rules that span members: names are usable Python
identifiers, generated attributes do not collide, overloads can be
dispatched, and extra import lines are import statements.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field

from protomock.core import naming
from protomock.core.errors import ErrorContext, SpecificationError
from protomock.core.model import (
    IndexedAccessor,
    MockSpecification,
    NamedType,
    Operation,
    Parameter,
    Property,
    TypePlaceholder,
    is_identifier,
)
from protomock.core.overloads import OverloadTable, find_collisions, resolve_overloads

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """Errors and warnings found in one specification."""

    interface_name: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)


def validate_specification(spec: MockSpecification) -> ValidationReport:
    """Run every check and collect the findings."""
    report = ValidationReport(spec.interface_name)

    _check_interface(spec, report)
    _check_members(spec, report)
    _check_placeholders(spec, report)
    if _check_overloads(spec, report):
        _check_generated_names(spec, resolve_overloads(spec), report)
    _check_imports(spec, report)

    logger.debug(
        "Validated %s: %d error(s), %d warning(s)",
        spec.interface_name,
        len(report.errors),
        len(report.warnings),
    )
    return report


def ensure_valid(spec: MockSpecification) -> ValidationReport:
    """
    Validate and raise on errors.

    Returns:
        The report, for its warnings.

    Raises:
        SpecificationError: If any check failed; ``issues`` lists them all.
    """
    report = validate_specification(spec)
    if not report.is_valid:
        count = len(report.errors)
        summary = f"{count} problem(s) found:\n" + "\n".join(f"  - {e}" for e in report.errors)
        raise SpecificationError(
            summary, ErrorContext(mock=spec.interface_name), issues=report.errors
        )
    return report


def _check_interface(spec: MockSpecification, report: ValidationReport) -> None:
    if not is_identifier(spec.interface_name):
        report.add_error(f"interface name '{spec.interface_name}' is not a valid identifier")
    if spec.interface_module is not None and not all(
        is_identifier(part) for part in spec.interface_module.split(".")
    ):
        report.add_error(f"interface module '{spec.interface_module}' is not a dotted module path")


def _check_name(name: str, what: str, report: ValidationReport) -> bool:
    if not is_identifier(name):
        report.add_error(f"{what} '{name}' is not a valid identifier")
        return False
    if name.startswith("_"):
        report.add_error(f"{what} '{name}' must not start with an underscore")
        return False
    return True


def _check_parameters(
    owner: str, parameters: tuple[Parameter, ...], report: ValidationReport
) -> None:
    seen: set[str] = set()
    for param in parameters:
        if not _check_name(param.name, f"parameter of '{owner}'", report):
            continue
        if param.name in naming.RESERVED_PARAMETERS:
            report.add_error(f"parameter '{param.name}' of '{owner}' uses a reserved name")
        if param.name in seen:
            report.add_error(f"duplicate parameter '{param.name}' in '{owner}'")
        seen.add(param.name)


def _check_generics(
    owner: str, member: Operation | IndexedAccessor, report: ValidationReport
) -> None:
    for generic in sorted(member.generic_parameters):
        if not is_identifier(generic):
            report.add_error(
                f"generic parameter '{generic}' of '{owner}' is not a valid identifier"
            )


def _check_members(spec: MockSpecification, report: ValidationReport) -> None:
    kinds: dict[str, str] = {}

    for member in spec.members:
        match member:
            case Operation():
                if _check_name(member.name, "operation name", report):
                    if member.name in naming.RESERVED_NAMES:
                        report.add_error(f"operation name '{member.name}' is reserved")
                _check_parameters(member.name, member.parameters, report)
                _check_generics(member.name, member, report)
                returns = member.returns
                if isinstance(returns, NamedType) and returns.name in member.generic_parameters:
                    report.add_warning(
                        f"'{member.name}' returns its generic parameter '{returns.name}'; "
                        "a handler is required even if it is instantiated with None"
                    )
            case Property():
                if _check_name(member.name, "property name", report):
                    if member.name in naming.RESERVED_NAMES:
                        report.add_error(f"property name '{member.name}' is reserved")
                if member.condition is None and kinds.get(member.name) == "property":
                    report.add_error(f"property '{member.name}' is declared more than once")
            case IndexedAccessor():
                _check_parameters("subscript", member.parameters, report)
                _check_generics("subscript", member, report)
            case TypePlaceholder():
                _check_name(member.name, "type placeholder", report)

        name = member.name
        kind = member.kind
        previous = kinds.setdefault(name, kind)
        if previous != kind:
            report.add_error(f"'{name}' is declared as both {previous} and {kind}")


def _check_placeholders(spec: MockSpecification, report: ValidationReport) -> None:
    seen: set[str] = set()
    for placeholder in spec.type_placeholders:
        _check_name(placeholder.name, "type placeholder", report)
    for placeholder in spec.placeholders:
        if placeholder.name in seen and placeholder.condition is None:
            report.add_error(f"type placeholder '{placeholder.name}' is declared more than once")
        seen.add(placeholder.name)


def _check_overloads(spec: MockSpecification, report: ValidationReport) -> bool:
    collisions = find_collisions(spec)
    for name, signatures in collisions:
        listed = ", ".join(signatures)
        report.add_error(f"overloads of '{name}' share a parameter-type sequence: {listed}")
    return not collisions


def _generated_names(spec: MockSpecification, table: OverloadTable) -> list[tuple[str, str]]:
    """(attribute, owner) pairs for every attribute the mock will define."""
    names: list[tuple[str, str]] = []

    for member in spec.members:
        match member:
            case Operation() | IndexedAccessor():
                identifier = table.identifier(member)
                if table.is_overloaded(member):
                    names.append((naming.implementation(identifier), member.signature()))
                names.append((naming.call_count(identifier), member.signature()))
                names.append((naming.call_args(identifier), member.signature()))
                names.append((naming.handler(identifier), member.signature()))
                if isinstance(member, IndexedAccessor) and member.is_mutable:
                    names.append((naming.set_handler(identifier), member.signature()))
            case Property():
                if not (member.is_mutable and member.is_optional):
                    names.append((naming.backing(member.name), member.signature()))

    for name, group in table.groups.items():
        if isinstance(group.members[0], Operation):
            names.append((name, name))
    for prop in spec.properties:
        names.append((prop.name, prop.name))
    return names


def _check_generated_names(
    spec: MockSpecification, table: OverloadTable, report: ValidationReport
) -> None:
    owners: dict[str, str] = {}
    for attribute, owner in _generated_names(spec, table):
        if attribute in naming.RESERVED_NAMES:
            report.add_error(f"generated attribute '{attribute}' for {owner} is reserved")
        previous = owners.setdefault(attribute, owner)
        if previous != owner:
            report.add_error(
                f"generated attribute '{attribute}' for {owner} collides with {previous}"
            )


def _check_imports(spec: MockSpecification, report: ValidationReport) -> None:
    for line in spec.imports:
        try:
            tree = ast.parse(line)
        except SyntaxError:
            report.add_error(f"import line {line!r} is not valid Python")
            continue
        if not tree.body or not all(isinstance(n, ast.Import | ast.ImportFrom) for n in tree.body):
            report.add_error(f"import line {line!r} must contain only import statements")
