"""
Output declaration tree.

The synthesizer builds a small tree of nodes and renders it to Python
source in one pass. Rendering is deterministic: 4-space indentation, one
blank line between definitions inside a class, two at module level, and no
trailing whitespace.
"""

from __future__ import annotations

from dataclasses import dataclass, field

INDENT = "    "


@dataclass
class Line:
    """A single statement or declaration line."""

    text: str

    def render(self, depth: int, spacing: int) -> list[str]:
        return [INDENT * depth + self.text]


@dataclass
class Block:
    """A compound statement: ``with``, ``for``, ``try`` and similar headers."""

    header: str
    body: list[Node] = field(default_factory=list)

    def render(self, depth: int, spacing: int) -> list[str]:
        lines = [INDENT * depth + f"{self.header}:"]
        lines.extend(render_body(self.body, depth + 1, 0))
        return lines


@dataclass
class IfBlock:
    """
    An ``if`` statement, optionally with an ``else`` branch.

    Inside a class body the branches hold definitions, so they keep the
    surrounding blank-line spacing.
    """

    condition: str
    body: list[Node] = field(default_factory=list)
    orelse: list[Node] | None = None

    def render(self, depth: int, spacing: int) -> list[str]:
        lines = [INDENT * depth + f"if {self.condition}:"]
        lines.extend(render_body(self.body, depth + 1, spacing))
        if self.orelse is not None:
            lines.extend([""] * spacing)
            lines.append(INDENT * depth + "else:")
            lines.extend(render_body(self.orelse, depth + 1, spacing))
        return lines


@dataclass
class FunctionDef:
    """A function or method definition."""

    name: str
    parameters: list[str] = field(default_factory=list)
    returns: str | None = None
    body: list[Node] = field(default_factory=list)
    decorators: list[str] = field(default_factory=list)
    is_async: bool = False

    def signature(self) -> str:
        prefix = "async def" if self.is_async else "def"
        params = ", ".join(self.parameters)
        result = f" -> {self.returns}" if self.returns is not None else ""
        return f"{prefix} {self.name}({params}){result}:"

    def render(self, depth: int, spacing: int) -> list[str]:
        pad = INDENT * depth
        lines = [f"{pad}@{decorator}" for decorator in self.decorators]
        lines.append(pad + self.signature())
        lines.extend(render_body(self.body, depth + 1, 0))
        return lines


@dataclass
class StubDef(FunctionDef):
    """A one-line definition whose body is ``...``, used for ``@overload`` stubs."""

    def render(self, depth: int, spacing: int) -> list[str]:
        pad = INDENT * depth
        lines = [f"{pad}@{decorator}" for decorator in self.decorators]
        lines.append(f"{pad}{self.signature()} ...")
        return lines


@dataclass
class ClassDef:
    """A class definition."""

    name: str
    bases: list[str] = field(default_factory=list)
    body: list[Node] = field(default_factory=list)
    decorators: list[str] = field(default_factory=list)
    docstring: str | None = None

    def render(self, depth: int, spacing: int) -> list[str]:
        pad = INDENT * depth
        lines = [f"{pad}@{decorator}" for decorator in self.decorators]
        bases = f"({', '.join(self.bases)})" if self.bases else ""
        lines.append(f"{pad}class {self.name}{bases}:")
        if not self.docstring:
            lines.extend(render_body(self.body, depth + 1, 1))
            return lines
        lines.append(f'{pad}{INDENT}"""{self.docstring}"""')
        if self.body:
            lines.append("")
            lines.extend(render_body(self.body, depth + 1, 1))
        return lines


Node = Line | Block | IfBlock | FunctionDef | ClassDef


def _is_definition(node: Node) -> bool:
    if isinstance(node, FunctionDef | ClassDef):
        return True
    if isinstance(node, IfBlock):
        branches = node.body + (node.orelse or [])
        return any(_is_definition(child) for child in branches)
    return False


def render_body(nodes: list[Node], depth: int, spacing: int) -> list[str]:
    """
    Render a sequence of sibling nodes.

    ``spacing`` blank lines separate two siblings when either is a
    definition. An empty body renders as ``pass``.
    """
    if not nodes:
        return [INDENT * depth + "pass"]

    lines: list[str] = []
    previous: Node | None = None
    for node in nodes:
        if previous is not None and spacing and (
            _is_definition(node) or _is_definition(previous)
        ):
            lines.extend([""] * spacing)
        lines.extend(node.render(depth, spacing))
        previous = node
    return lines


@dataclass
class Module:
    """A complete generated module."""

    docstring: str
    imports: list[str] = field(default_factory=list)
    body: list[Node] = field(default_factory=list)

    def render(self) -> str:
        lines = ['"""', *self.docstring.splitlines(), '"""', ""]
        lines.append("from __future__ import annotations")
        if self.imports:
            lines.append("")
            lines.extend(self.imports)
        if self.body:
            lines.extend(["", ""])
            lines.extend(render_body(self.body, 0, 2))
        return "\n".join(line.rstrip() for line in lines) + "\n"
