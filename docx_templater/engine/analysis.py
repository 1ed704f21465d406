"""Static analysis of parsed templates: which data fields do they read?

Field paths are tuples of names. Two markers describe how the dot moved to
reach a field: ``"[]"`` steps into every element of a ``range`` and ``"?"``
enters a ``with`` block, which only runs when its value is truthy.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from docx_templater.engine.nodes import (
    ActionNode,
    ChainNode,
    DotNode,
    FieldNode,
    IfNode,
    ListNode,
    Node,
    PipeNode,
    RangeNode,
    TemplateNode,
    VariableNode,
    WithNode,
)
from docx_templater.engine.values import is_true

EACH = "[]"
WHEN = "?"

Path = Tuple[str, ...]


@dataclass(frozen=True)
class FieldRef:
    path: Path
    source: str
    line: int

    @property
    def dotted(self) -> str:
        """``("Items", "[]", "Name")`` -> ``Items[].Name``."""
        text = ""
        for step in self.path:
            if step == WHEN:
                continue
            if step == EACH:
                text += EACH
            else:
                text += ("." if text else "") + step
        return text


class _Collector:
    def __init__(self, trees: Mapping[str, ListNode]) -> None:
        self.trees = trees
        self.refs: List[FieldRef] = []
        self.seen: Set[Path] = set()
        self.visiting: Set[Tuple[str, Optional[Path]]] = set()

    def record(self, path: Path, node: Node) -> None:
        if path in self.seen:
            return
        self.seen.add(path)
        self.refs.append(FieldRef(path=path, source=str(node), line=node.line))

    def pipe_path(self, pipe: PipeNode, dot: Optional[Path], scope: Dict[str, Optional[Path]]) -> Optional[Path]:
        if len(pipe.cmds) != 1 or len(pipe.cmds[0].args) != 1:
            return None
        arg = pipe.cmds[0].args[0]
        if isinstance(arg, DotNode):
            return dot
        if isinstance(arg, FieldNode):
            return None if dot is None else dot + tuple(arg.ident)
        if isinstance(arg, VariableNode):
            base = scope.get(arg.ident[0])
            return None if base is None else base + tuple(arg.ident[1:])
        return None

    def visit_arg(self, node: Node, dot: Optional[Path], scope: Dict[str, Optional[Path]]) -> None:
        if isinstance(node, FieldNode):
            if dot is not None:
                self.record(dot + tuple(node.ident), node)
        elif isinstance(node, VariableNode):
            base = scope.get(node.ident[0])
            if base is not None and len(node.ident) > 1:
                self.record(base + tuple(node.ident[1:]), node)
        elif isinstance(node, PipeNode):
            self.visit_pipe(node, dot, scope)
        elif isinstance(node, ChainNode) and node.node is not None:
            self.visit_arg(node.node, dot, scope)

    def visit_pipe(self, pipe: Optional[PipeNode], dot: Optional[Path], scope: Dict[str, Optional[Path]]) -> None:
        if pipe is None:
            return
        for cmd in pipe.cmds:
            for arg in cmd.args:
                self.visit_arg(arg, dot, scope)

    def visit(self, node: Optional[Node], dot: Optional[Path], scope: Dict[str, Optional[Path]]) -> None:
        if node is None:
            return
        if isinstance(node, ListNode):
            for child in node.nodes:
                self.visit(child, dot, scope)
        elif isinstance(node, ActionNode):
            self.visit_pipe(node.pipe, dot, scope)
            for variable in node.pipe.decl:
                scope[variable.ident[0]] = self.pipe_path(node.pipe, dot, scope)
        elif isinstance(node, IfNode):
            self.visit_pipe(node.pipe, dot, scope)
            self.visit(node.body, dot, dict(scope))
            self.visit(node.else_body, dot, dict(scope))
        elif isinstance(node, WithNode):
            self.visit_pipe(node.pipe, dot, scope)
            path = self.pipe_path(node.pipe, dot, scope)
            inner = None if path is None else path + (WHEN,)
            body_scope = dict(scope)
            for variable in node.pipe.decl:
                body_scope[variable.ident[0]] = inner
            self.visit(node.body, inner, body_scope)
            self.visit(node.else_body, dot, dict(scope))
        elif isinstance(node, RangeNode):
            self.visit_pipe(node.pipe, dot, scope)
            path = self.pipe_path(node.pipe, dot, scope)
            element = None if path is None else path + (EACH,)
            body_scope = dict(scope)
            decl = node.pipe.decl
            if len(decl) == 1:
                body_scope[decl[0].ident[0]] = element
            elif len(decl) == 2:
                body_scope[decl[0].ident[0]] = None
                body_scope[decl[1].ident[0]] = element
            self.visit(node.body, element, body_scope)
            self.visit(node.else_body, dot, dict(scope))
        elif isinstance(node, TemplateNode):
            self.visit_pipe(node.pipe, dot, scope)
            inner = self.pipe_path(node.pipe, dot, scope) if node.pipe is not None else None
            key = (node.name, inner)
            tree = self.trees.get(node.name)
            if tree is None or key in self.visiting:
                return
            self.visiting.add(key)
            self.visit(tree, inner, {"$": inner})
            self.visiting.discard(key)


def field_references(trees: Mapping[str, ListNode], name: str) -> List[FieldRef]:
    """Return the field paths read by template ``name``, in source order."""
    collector = _Collector(trees)
    collector.visit(trees.get(name), (), {"$": ()})
    return collector.refs


def resolves(value: Any, path: Path) -> bool:
    """Return True when ``path`` can be followed through ``value``."""
    if not path:
        return True
    head, rest = path[0], path[1:]
    if head == WHEN:
        return not is_true(value) or resolves(value, rest)
    if head == EACH:
        if isinstance(value, (list, tuple)):
            return all(resolves(item, rest) for item in value)
        if isinstance(value, dict):
            return all(resolves(item, rest) for item in value.values())
        if value is None:
            return True
        return isinstance(value, int) and not isinstance(value, bool) and not rest
    if isinstance(value, Mapping):
        return head in value and resolves(value[head], rest)
    if value is None or head.startswith("_") or isinstance(value, (str, int, float, list, tuple)):
        return False
    return hasattr(value, head) and resolves(getattr(value, head), rest)
