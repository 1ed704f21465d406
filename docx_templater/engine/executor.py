"""Tree-walking interpreter for parsed templates."""
from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, List, Mapping, NoReturn, Optional, Sequence, Tuple

from docx_templater.engine.errors import TemplateEngineError, TemplateExecError
from docx_templater.engine.nodes import (
    ActionNode,
    BoolNode,
    BranchNode,
    BreakNode,
    ChainNode,
    CommandNode,
    ContinueNode,
    DotNode,
    FieldNode,
    IdentifierNode,
    IfNode,
    ListNode,
    NilNode,
    Node,
    NumberNode,
    PipeNode,
    RangeNode,
    StringNode,
    TemplateNode,
    TextNode,
    VariableNode,
    WithNode,
)
from docx_templater.engine.values import MISSING, format_value, is_missing, is_true, sort_key, to_python

MAX_TEMPLATE_DEPTH = 100

_NO_FINAL = object()


class _Break(Exception):
    pass


class _Continue(Exception):
    pass


class _State:
    """Execution state for one template invocation."""

    def __init__(self, executor: "Executor", name: str, dot: Any, depth: int) -> None:
        self.executor = executor
        self.name = name
        self.depth = depth
        self.vars: List[Tuple[str, Any]] = [("$", dot)]
        self.node: Optional[Node] = None

    # ------------------------------------------------------------------
    def error(self, message: str) -> NoReturn:
        node = self.node
        line = node.line if node is not None else 0
        context = str(node) if node is not None else ""
        raise TemplateExecError(self.executor.name, line, context, message, executing=self.name)

    def mark(self) -> int:
        return len(self.vars)

    def pop(self, mark: int) -> None:
        del self.vars[mark:]

    def push(self, name: str, value: Any) -> None:
        self.vars.append((name, value))

    def set_var(self, name: str, value: Any) -> None:
        for index in range(len(self.vars) - 1, -1, -1):
            if self.vars[index][0] == name:
                self.vars[index] = (name, value)
                return
        self.error(f"undefined variable: {name}")

    def set_top_var(self, offset: int, value: Any) -> None:
        name = self.vars[-offset][0]
        self.vars[-offset] = (name, value)

    def var_value(self, name: str) -> Any:
        for index in range(len(self.vars) - 1, -1, -1):
            if self.vars[index][0] == name:
                return self.vars[index][1]
        self.error(f"undefined variable: {name}")

    # ------------------------------------------------------------------
    # Statements
    def walk(self, dot: Any, node: Node, out: List[str]) -> None:
        self.node = node
        if isinstance(node, ActionNode):
            value = self.eval_pipeline(dot, node.pipe)
            if not node.pipe.decl:
                out.append(self.print_value(node, value))
        elif isinstance(node, TextNode):
            out.append(node.text)
        elif isinstance(node, ListNode):
            for child in node.nodes:
                self.walk(dot, child, out)
        elif isinstance(node, (IfNode, WithNode)):
            self.walk_if_or_with(dot, node, out)
        elif isinstance(node, RangeNode):
            self.walk_range(dot, node, out)
        elif isinstance(node, TemplateNode):
            self.walk_template(dot, node, out)
        elif isinstance(node, BreakNode):
            raise _Break()
        elif isinstance(node, ContinueNode):
            raise _Continue()
        else:
            self.error(f"unknown node: {node}")

    def print_value(self, node: Node, value: Any) -> str:
        if callable(value) and not isinstance(value, type):
            self.node = node
            self.error(f"can't print {node} of type func")
        return format_value(value)

    def walk_if_or_with(self, dot: Any, node: BranchNode, out: List[str]) -> None:
        mark = self.mark()
        value = self.eval_pipeline(dot, node.pipe)
        if is_true(value):
            self.walk(value if isinstance(node, WithNode) else dot, node.body, out)
        elif node.else_body is not None:
            self.walk(dot, node.else_body, out)
        self.pop(mark)

    def _iterate(self, value: Any) -> List[Tuple[Any, Any]]:
        if is_missing(value):
            return []
        if isinstance(value, bool):
            self.error(f"range can't iterate over {format_value(value)}")
        if isinstance(value, int):
            if value < 0:
                return []
            return [(index, index) for index in range(value)]
        if isinstance(value, (list, tuple)):
            return list(enumerate(value))
        if isinstance(value, dict):
            return [(key, value[key]) for key in sorted(value, key=sort_key)]
        self.error(f"range can't iterate over {format_value(value)}")

    def walk_range(self, dot: Any, node: RangeNode, out: List[str]) -> None:
        outer = self.mark()
        value = self.eval_pipeline(dot, node.pipe)
        decl = node.pipe.decl
        mark = self.mark()
        iterations = self._iterate(value)
        for index, element in iterations:
            if decl:
                if node.pipe.is_assign:
                    self.set_var(decl[0].ident[0], index if len(decl) > 1 else element)
                else:
                    self.set_top_var(1, element)
            if len(decl) > 1:
                if node.pipe.is_assign:
                    self.set_var(decl[1].ident[0], element)
                else:
                    self.set_top_var(2, index)
            try:
                self.walk(element, node.body, out)
            except _Continue:
                pass
            except _Break:
                self.pop(mark)
                break
            self.pop(mark)
        if not iterations and node.else_body is not None:
            self.walk(dot, node.else_body, out)
        self.pop(outer)

    def walk_template(self, dot: Any, node: TemplateNode, out: List[str]) -> None:
        tree = self.executor.trees.get(node.name)
        if tree is None:
            self.error(f'template "{node.name}" not defined')
        if self.depth >= MAX_TEMPLATE_DEPTH:
            self.error(f"exceeded maximum template depth ({MAX_TEMPLATE_DEPTH})")
        new_dot = self.eval_pipeline(dot, node.pipe) if node.pipe is not None else MISSING
        state = _State(self.executor, node.name, new_dot, self.depth + 1)
        state.walk(new_dot, tree, out)

    # ------------------------------------------------------------------
    # Expressions
    def eval_pipeline(self, dot: Any, pipe: PipeNode) -> Any:
        value: Any = _NO_FINAL
        for cmd in pipe.cmds:
            value = self.eval_command(dot, cmd, value)
        for variable in pipe.decl:
            if pipe.is_assign:
                self.set_var(variable.ident[0], value)
            else:
                self.push(variable.ident[0], value)
        return value

    def not_a_function(self, args: Sequence[Node], final: Any) -> None:
        if len(args) > 1 or final is not _NO_FINAL:
            self.error(f"can't give argument to non-function {args[0]}")

    def eval_command(self, dot: Any, cmd: CommandNode, final: Any) -> Any:
        first = cmd.args[0]
        self.node = cmd
        if isinstance(first, FieldNode):
            return self.eval_field_chain(dot, dot, first, first.ident, cmd.args, final)
        if isinstance(first, ChainNode):
            return self.eval_chain(dot, first, cmd.args, final)
        if isinstance(first, IdentifierNode):
            return self.eval_function(dot, first, cmd, cmd.args, final)
        if isinstance(first, PipeNode):
            self.not_a_function(cmd.args, final)
            return self.eval_pipeline(dot, first)
        if isinstance(first, VariableNode):
            return self.eval_variable(dot, first, cmd.args, final)
        self.not_a_function(cmd.args, final)
        if isinstance(first, BoolNode):
            return first.value
        if isinstance(first, DotNode):
            return dot
        if isinstance(first, NilNode):
            self.error("nil is not a command")
        if isinstance(first, NumberNode):
            return first.value
        if isinstance(first, StringNode):
            return first.text
        self.error(f"can't evaluate command {first}")

    def eval_arg(self, dot: Any, node: Node) -> Any:
        self.node = node
        if isinstance(node, DotNode):
            return dot
        if isinstance(node, NilNode):
            return None
        if isinstance(node, FieldNode):
            return self.eval_field_chain(dot, dot, node, node.ident, [node], _NO_FINAL)
        if isinstance(node, VariableNode):
            return self.eval_variable(dot, node, [node], _NO_FINAL)
        if isinstance(node, PipeNode):
            return self.eval_pipeline(dot, node)
        if isinstance(node, IdentifierNode):
            return self.eval_function(dot, node, node, [node], _NO_FINAL)
        if isinstance(node, ChainNode):
            return self.eval_chain(dot, node, [node], _NO_FINAL)
        if isinstance(node, BoolNode):
            return node.value
        if isinstance(node, NumberNode):
            return node.value
        if isinstance(node, StringNode):
            return node.text
        self.error(f"can't handle {node} for arg")

    def eval_variable(self, dot: Any, node: VariableNode, args: Sequence[Node], final: Any) -> Any:
        value = self.var_value(node.ident[0])
        if len(node.ident) == 1:
            self.not_a_function(args, final)
            return value
        return self.eval_field_chain(dot, value, node, node.ident[1:], args, final)

    def eval_chain(self, dot: Any, chain: ChainNode, args: Sequence[Node], final: Any) -> Any:
        if not chain.fields:
            self.error("internal error: no fields in eval_chain")
        if isinstance(chain.node, NilNode):
            self.error(f"indirection through explicit nil in {chain}")
        receiver = self.eval_arg(dot, chain.node)
        return self.eval_field_chain(dot, receiver, chain, chain.fields, args, final)

    def eval_field_chain(
        self, dot: Any, receiver: Any, node: Node, ident: Sequence[str], args: Sequence[Node], final: Any
    ) -> Any:
        for name in ident[:-1]:
            receiver = self.eval_field(dot, name, node, (), _NO_FINAL, receiver)
        return self.eval_field(dot, ident[-1], node, args, final, receiver)

    def eval_field(
        self, dot: Any, name: str, node: Node, args: Sequence[Node], final: Any, receiver: Any
    ) -> Any:
        if is_missing(receiver):
            return MISSING
        has_args = len(args) > 1 or final is not _NO_FINAL
        if isinstance(receiver, Mapping):
            value = receiver.get(name, MISSING)
            if callable(value) and not isinstance(value, type):
                return self.call(name, value, self.collect_args(dot, args, final), node)
            if has_args:
                self.error(f"{name} is not a method but has arguments")
            return value
        if name.startswith("_") or isinstance(receiver, (list, tuple, str, int, float)):
            self.error(f"can't evaluate field {name} in type {type(receiver).__name__}")
        try:
            value = getattr(receiver, name)
        except AttributeError:
            self.error(f"can't evaluate field {name} in type {type(receiver).__name__}")
        if callable(value) and not isinstance(value, type):
            return self.call(name, value, self.collect_args(dot, args, final), node)
        if has_args:
            self.error(f"{name} is not a method but has arguments")
        return value

    def collect_args(self, dot: Any, args: Sequence[Node], final: Any) -> List[Any]:
        values = [self.eval_arg(dot, arg) for arg in args[1:]]
        if final is not _NO_FINAL:
            values.append(final)
        return values

    def eval_function(
        self, dot: Any, ident: IdentifierNode, node: Node, args: Sequence[Node], final: Any
    ) -> Any:
        function = self.executor.funcs.get(ident.name)
        if function is None:
            self.error(f'"{ident.name}" is not a defined function')
        return self.call(ident.name, function, self.collect_args(dot, args, final), node)

    def call(self, name: str, function: Callable, values: List[Any], node: Node) -> Any:
        arguments = [to_python(value) for value in values]
        self.node = node
        try:
            signature = inspect.signature(function)
        except (TypeError, ValueError):
            signature = None
        if signature is not None:
            try:
                signature.bind(*arguments)
            except TypeError:
                self.error(f"wrong number of args for {name}: got {len(arguments)}")
        try:
            return function(*arguments)
        except (TemplateEngineError, _Break, _Continue):
            raise
        except Exception as exc:
            self.node = node
            context = str(node)
            error = TemplateExecError(
                self.executor.name, node.line, context, f"error calling {name}: {exc}", executing=self.name
            )
            raise error from exc


class Executor:
    """Runs a set of parsed trees against data."""

    def __init__(self, name: str, trees: Dict[str, ListNode], funcs: Mapping[str, Callable]) -> None:
        self.name = name
        self.trees = trees
        self.funcs = funcs

    def execute(self, data: Any, template: Optional[str] = None) -> str:
        name = template or self.name
        tree = self.trees.get(name)
        if tree is None:
            raise TemplateExecError(self.name, 0, "", f'no template "{name}" associated with template "{self.name}"')
        out: List[str] = []
        state = _State(self, name, data, 0)
        try:
            state.walk(data, tree, out)
        except RecursionError as exc:
            raise TemplateExecError(self.name, 0, "", "template nesting too deep", executing=name) from exc
        return "".join(out)
