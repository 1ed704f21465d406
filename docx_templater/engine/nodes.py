"""Parse tree of the template language.

Every node knows the line it started on and renders back to template
source through ``str()``; execution errors quote that source.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(eq=False)
class Node:
    line: int


@dataclass(eq=False)
class ListNode(Node):
    nodes: List[Node] = field(default_factory=list)

    def append(self, node: Node) -> None:
        self.nodes.append(node)

    def is_blank(self) -> bool:
        """True when the list holds nothing but whitespace text."""
        return all(isinstance(node, TextNode) and not node.text.strip() for node in self.nodes)

    def __str__(self) -> str:
        return "".join(str(node) for node in self.nodes)


@dataclass(eq=False)
class TextNode(Node):
    text: str = ""

    def __str__(self) -> str:
        return self.text


@dataclass(eq=False)
class DotNode(Node):
    def __str__(self) -> str:
        return "."


@dataclass(eq=False)
class NilNode(Node):
    def __str__(self) -> str:
        return "nil"


@dataclass(eq=False)
class BoolNode(Node):
    value: bool = False

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(eq=False)
class NumberNode(Node):
    text: str = ""
    value: Union[int, float] = 0

    def __str__(self) -> str:
        return self.text


@dataclass(eq=False)
class StringNode(Node):
    quoted: str = ""
    text: str = ""

    def __str__(self) -> str:
        return self.quoted


@dataclass(eq=False)
class IdentifierNode(Node):
    name: str = ""

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class FieldNode(Node):
    """``.A.B`` relative to dot; ``ident`` holds ``["A", "B"]``."""

    ident: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return "".join("." + name for name in self.ident)


@dataclass(eq=False)
class VariableNode(Node):
    """``$x.A``; ``ident[0]`` is the variable name including the ``$``."""

    ident: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return ".".join(self.ident)


@dataclass(eq=False)
class ChainNode(Node):
    """A field chain applied to a non-field term, like ``(index .A 0).Name``."""

    node: Optional[Node] = None
    fields: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        base = str(self.node)
        if isinstance(self.node, PipeNode):
            base = f"({base})"
        return base + "".join("." + name for name in self.fields)


@dataclass(eq=False)
class CommandNode(Node):
    args: List[Node] = field(default_factory=list)

    def __str__(self) -> str:
        rendered = []
        for arg in self.args:
            text = str(arg)
            rendered.append(f"({text})" if isinstance(arg, PipeNode) else text)
        return " ".join(rendered)


@dataclass(eq=False)
class PipeNode(Node):
    is_assign: bool = False
    decl: List[VariableNode] = field(default_factory=list)
    cmds: List[CommandNode] = field(default_factory=list)

    def __str__(self) -> str:
        text = ""
        if self.decl:
            text = ", ".join(str(variable) for variable in self.decl)
            text += " = " if self.is_assign else " := "
        return text + " | ".join(str(cmd) for cmd in self.cmds)


@dataclass(eq=False)
class ActionNode(Node):
    pipe: Optional[PipeNode] = None

    def __str__(self) -> str:
        return "{{" + str(self.pipe) + "}}"


@dataclass(eq=False)
class BranchNode(Node):
    pipe: Optional[PipeNode] = None
    body: Optional[ListNode] = None
    else_body: Optional[ListNode] = None

    keyword = ""

    def __str__(self) -> str:
        text = "{{" + self.keyword + " " + str(self.pipe) + "}}" + str(self.body)
        if self.else_body is not None:
            text += "{{else}}" + str(self.else_body)
        return text + "{{end}}"


@dataclass(eq=False)
class IfNode(BranchNode):
    keyword = "if"


@dataclass(eq=False)
class RangeNode(BranchNode):
    keyword = "range"


@dataclass(eq=False)
class WithNode(BranchNode):
    keyword = "with"


@dataclass(eq=False)
class BreakNode(Node):
    def __str__(self) -> str:
        return "{{break}}"


@dataclass(eq=False)
class ContinueNode(Node):
    def __str__(self) -> str:
        return "{{continue}}"


@dataclass(eq=False)
class TemplateNode(Node):
    name: str = ""
    pipe: Optional[PipeNode] = None

    def __str__(self) -> str:
        if self.pipe is None:
            return '{{template "%s"}}' % self.name
        return '{{template "%s" %s}}' % (self.name, self.pipe)


@dataclass(eq=False)
class EndNode(Node):
    """Marker returned by the parser for ``{{end}}``; never part of a tree."""

    def __str__(self) -> str:
        return "{{end}}"


@dataclass(eq=False)
class ElseNode(Node):
    """Marker returned by the parser for ``{{else}}``; never part of a tree."""

    def __str__(self) -> str:
        return "{{else}}"
