"""
Shared state for synthesizing one mock class variant.
"""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass, field

from protomock.core.model import (
    BuildCondition,
    ConcurrencyRequirement,
    Member,
    MockSpecification,
    SynthesisOptions,
    TypeRef,
)
from protomock.core.overloads import OverloadTable
from protomock.core.storage import StorageStrategy

from .tree import Node

# Standard-library modules the generated code may import from, in output order
_STDLIB_MODULES = ("collections.abc", "typing")


@dataclass
class ImportSet:
    """Names the generated module imports, grouped by source module."""

    names: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    uses_dataclasses: bool = False

    def add(self, module: str, *names: str) -> None:
        self.names[module].update(names)

    def add_runtime(self, *names: str) -> None:
        self.add("", *names)

    def merge(self, other: ImportSet) -> None:
        for module, names in other.names.items():
            self.names[module].update(names)
        self.uses_dataclasses = self.uses_dataclasses or other.uses_dataclasses

    def render(self, runtime_module: str, extra: list[str]) -> list[str]:
        """Import lines in isort order: stdlib, runtime, then caller-supplied lines."""
        stdlib: list[str] = []
        if self.uses_dataclasses:
            stdlib.append("import dataclasses")
        for module in _STDLIB_MODULES:
            if self.names.get(module):
                names = ", ".join(_sorted_names(self.names[module]))
                stdlib.append(f"from {module} import {names}")

        groups: list[list[str]] = [stdlib]
        runtime = self.names.get("")
        if runtime:
            groups.append([f"from {runtime_module} import {', '.join(_sorted_names(runtime))}"])
        groups.append(extra)

        lines: list[str] = []
        for group in groups:
            if not group:
                continue
            if lines:
                lines.append("")
            lines.extend(group)
        return lines


def _sorted_names(names: set[str]) -> list[str]:
    # isort places CONSTANTS, then Classes, then functions
    def key(name: str) -> tuple[int, str]:
        if name.isupper():
            return (0, name)
        if name[:1].isupper():
            return (1, name)
        return (2, name)

    return sorted(names, key=key)


@dataclass
class StateField:
    """
    One piece of generated state.

    Attributes:
        name: Attribute name on the mock (and in ``_Storage``)
        annotation: Annotation text
        initial: Initial value expression
        is_list: Starts as an empty list; needs a default factory in ``_Storage``
        plain: Declared on the class itself under the direct strategy
        copy_on_read: Lock-based getters return a shallow copy
    """

    name: str
    annotation: str
    initial: str = "None"
    is_list: bool = False
    plain: bool = False
    copy_on_read: bool = False

    @property
    def reset_value(self) -> str:
        return "[]" if self.is_list else self.initial


@dataclass
class MemberCode:
    """Generated fragments for one member."""

    member: Member
    fields: list[StateField] = field(default_factory=list)
    definitions: list[Node] = field(default_factory=list)

    @property
    def condition(self) -> BuildCondition | None:
        return self.member.condition


@dataclass
class SynthesisContext:
    """
    Everything the member generators need for one class variant.

    One context is created per storage strategy, so the Mutex and LegacyLock
    variants of a thread-safe mock are generated independently.
    """

    spec: MockSpecification
    options: SynthesisOptions
    strategy: StorageStrategy
    overloads: OverloadTable
    imports: ImportSet = field(default_factory=ImportSet)

    @property
    def mock_name(self) -> str:
        return self.spec.mock_class_name(self.options.mock_suffix)

    @property
    def state(self) -> str:
        """Expression naming the object that holds generated state."""
        return "_state" if self.strategy.is_lock_based else "self"

    @property
    def is_isolated(self) -> bool:
        return self.spec.concurrency == ConcurrencyRequirement.ISOLATION_DOMAIN

    @property
    def placeholder_names(self) -> set[str]:
        return {p.name for p in self.spec.placeholders}

    def accessor_decorators(self, *decorators: str) -> list[str]:
        """Decorators for a generated accessor, adding the isolation marker when needed."""
        result = list(decorators)
        if self.is_isolated:
            self.imports.add_runtime("nonisolated")
            result.append("nonisolated")
        return result

    def qualname(self, attribute: str, suffix: str = "") -> str:
        """f-string literal naming ``attribute`` on the runtime mock class."""
        return f'f"{{self.__class__.__name__}}.{attribute}{suffix}"'

    def annotate(self, type_ref: TypeRef) -> str:
        """Render a type for use in an annotation, tracking imports it needs."""
        text = str(type_ref)
        if "Callable[" in text:
            self.imports.add("collections.abc", "Callable")
        if "Awaitable[" in text:
            self.imports.add("collections.abc", "Awaitable")
        if "Annotated[" in text:
            self.imports.add("typing", "Annotated")
        if _mentions(text, "Any"):
            self.imports.add("typing", "Any")
        if _mentions(text, "Literal"):
            self.imports.add("typing", "Literal")
        return text


def _mentions(text: str, name: str) -> bool:
    return re.search(rf"(?<![\w.]){re.escape(name)}(?!\w)", text) is not None
