"""Recursive-descent parser producing the trees in :mod:`nodes`."""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, NoReturn, Optional, Tuple

from docx_templater.engine.errors import TemplateSyntaxError
from docx_templater.engine.lexer import LexError, Token, TokenKind, tokenize
from docx_templater.engine.nodes import (
    ActionNode,
    BoolNode,
    BreakNode,
    ChainNode,
    CommandNode,
    ContinueNode,
    DotNode,
    ElseNode,
    EndNode,
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

_OPERAND_START = frozenset(
    [
        TokenKind.BOOL,
        TokenKind.CHAR_CONSTANT,
        TokenKind.DOT,
        TokenKind.FIELD,
        TokenKind.IDENTIFIER,
        TokenKind.NUMBER,
        TokenKind.NIL,
        TokenKind.RAW_STRING,
        TokenKind.STRING,
        TokenKind.VARIABLE,
        TokenKind.LEFT_PAREN,
    ]
)
_NON_EXECUTABLE = (BoolNode, DotNode, NilNode, NumberNode, StringNode)

_ESCAPE_RE = re.compile(r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-7]{3}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
    "'": "'",
}
_OCTAL_INT_RE = re.compile(r"[+-]?0[0-7]+")


def _replace_escape(match: "re.Match[str]") -> str:
    body = match.group(1)
    if body[0] in "xuU":
        return chr(int(body[1:], 16))
    if body[0].isdigit():
        return chr(int(body, 8))
    if body in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[body]
    raise ValueError(f"invalid escape \\{body}")


def unquote(literal: str) -> str:
    """Decode a double-quoted, single-quoted or back-quoted literal."""
    if literal.startswith("`"):
        return literal[1:-1].replace("\r", "")
    return _ESCAPE_RE.sub(_replace_escape, literal[1:-1])


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class Parser:
    """Parses one template source into a set of named trees.

    ``funcs`` lists the function names callable from the template; any other
    identifier is rejected while parsing.
    """

    def __init__(self, name: str, funcs: Iterable[str]) -> None:
        self.name = name
        self.funcs = frozenset(funcs)
        self.tokens: List[Token] = []
        self.index = 0
        self.trees: Dict[str, ListNode] = {}
        self.vars: List[str] = ["$"]
        self.range_depth = 0

    def parse(self, text: str) -> Dict[str, ListNode]:
        try:
            self.tokens = tokenize(text)
        except LexError as exc:
            raise TemplateSyntaxError(self.name, exc.line, exc.message) from exc
        self.index = 0
        self.trees = {}
        root = ListNode(line=1)
        while self.peek().kind is not TokenKind.EOF:
            if self.peek().kind is TokenKind.LEFT_DELIM:
                mark = self.index
                self.next()
                token = self.next_non_space()
                if token.kind is TokenKind.KEYWORD and token.value == "define":
                    self.parse_definition()
                    continue
                self.index = mark
            node = self.text_or_action()
            if isinstance(node, (EndNode, ElseNode)):
                self.error(f"unexpected {node}")
            root.append(node)
        self.add_tree(self.name, root)
        return self.trees

    # ------------------------------------------------------------------
    # Token navigation
    def peek(self) -> Token:
        return self.tokens[min(self.index, len(self.tokens) - 1)]

    def next(self) -> Token:
        token = self.peek()
        self.index += 1
        return token

    def backup(self) -> None:
        self.index -= 1

    def next_non_space(self) -> Token:
        token = self.next()
        while token.kind is TokenKind.SPACE:
            token = self.next()
        return token

    def peek_non_space(self) -> Token:
        token = self.next_non_space()
        self.backup()
        return token

    def expect(self, kind: TokenKind, context: str) -> Token:
        token = self.next_non_space()
        if token.kind is not kind:
            self.unexpected(token, context)
        return token

    def error(self, message: str) -> NoReturn:
        line = self.tokens[max(0, min(self.index, len(self.tokens)) - 1)].line if self.tokens else 1
        raise TemplateSyntaxError(self.name, line, message)

    def unexpected(self, token: Token, context: str) -> NoReturn:
        self.error(f"unexpected {token} in {context}")

    # ------------------------------------------------------------------
    # Template set
    def add_tree(self, name: str, root: ListNode) -> None:
        existing = self.trees.get(name)
        if existing is None or existing.is_blank():
            self.trees[name] = root
            return
        if not root.is_blank():
            self.error(f"template: multiple definition of template {_quote(name)}")

    def parse_template_name(self, token: Token, context: str) -> str:
        if token.kind in (TokenKind.STRING, TokenKind.RAW_STRING):
            try:
                return unquote(token.value)
            except ValueError as exc:
                self.error(str(exc))
        self.unexpected(token, context)

    def parse_definition(self) -> None:
        token = self.next_non_space()
        name = self.parse_template_name(token, "define clause")
        self.expect(TokenKind.RIGHT_DELIM, "define clause")
        saved = self.vars, self.range_depth
        self.vars, self.range_depth = ["$"], 0
        body, end = self.item_list()
        if not isinstance(end, EndNode):
            self.error(f"unexpected {end} in define clause")
        self.vars, self.range_depth = saved
        self.add_tree(name, body)

    # ------------------------------------------------------------------
    # Lists and actions
    def item_list(self) -> Tuple[ListNode, Node]:
        body = ListNode(line=self.peek_non_space().line)
        while self.peek_non_space().kind is not TokenKind.EOF:
            node = self.text_or_action()
            if isinstance(node, (EndNode, ElseNode)):
                return body, node
            body.append(node)
        self.error("unexpected EOF")

    def text_or_action(self) -> Node:
        token = self.next_non_space()
        if token.kind is TokenKind.TEXT:
            return TextNode(line=token.line, text=token.value)
        if token.kind is TokenKind.LEFT_DELIM:
            return self.action()
        self.unexpected(token, "input")

    def action(self) -> Node:
        token = self.next_non_space()
        if token.kind is TokenKind.KEYWORD:
            keyword = token.value
            if keyword == "block":
                return self.block_control()
            if keyword in ("break", "continue"):
                return self.loop_control(token)
            if keyword == "else":
                return self.else_control()
            if keyword == "end":
                return EndNode(line=self.expect(TokenKind.RIGHT_DELIM, "end").line)
            if keyword == "if":
                return self.if_control()
            if keyword == "range":
                return self.range_control()
            if keyword == "template":
                return self.template_control()
            if keyword == "with":
                return self.with_control()
            self.unexpected(token, "command")
        self.backup()
        return ActionNode(line=token.line, pipe=self.pipeline("command", TokenKind.RIGHT_DELIM))

    def loop_control(self, keyword: Token) -> Node:
        token = self.next_non_space()
        if token.kind is not TokenKind.RIGHT_DELIM:
            self.unexpected(token, "{{" + keyword.value + "}}")
        if self.range_depth == 0:
            self.error("{{%s}} outside {{range}}" % keyword.value)
        if keyword.value == "break":
            return BreakNode(line=keyword.line)
        return ContinueNode(line=keyword.line)

    def else_control(self) -> Node:
        peek = self.peek_non_space()
        if peek.kind is TokenKind.KEYWORD and peek.value in ("if", "with"):
            return ElseNode(line=peek.line)
        return ElseNode(line=self.expect(TokenKind.RIGHT_DELIM, "else").line)

    def parse_control(self, context: str) -> Tuple[PipeNode, ListNode, Optional[ListNode]]:
        vars_len = len(self.vars)
        pipe = self.pipeline(context, TokenKind.RIGHT_DELIM)
        if context == "range":
            self.range_depth += 1
        body, end = self.item_list()
        if context == "range":
            self.range_depth -= 1
        else_body: Optional[ListNode] = None
        if isinstance(end, ElseNode):
            upcoming = self.peek()
            if context in ("if", "with") and upcoming.kind is TokenKind.KEYWORD and upcoming.value == context:
                # "else if" chains share the closing {{end}} of the outer block.
                self.next()
                else_body = ListNode(line=end.line)
                else_body.append(self.if_control() if context == "if" else self.with_control())
            else:
                else_body, end = self.item_list()
                if not isinstance(end, EndNode):
                    self.error(f"expected end; found {end}")
        del self.vars[vars_len:]
        return pipe, body, else_body

    def if_control(self) -> IfNode:
        pipe, body, else_body = self.parse_control("if")
        return IfNode(line=pipe.line, pipe=pipe, body=body, else_body=else_body)

    def range_control(self) -> RangeNode:
        pipe, body, else_body = self.parse_control("range")
        return RangeNode(line=pipe.line, pipe=pipe, body=body, else_body=else_body)

    def with_control(self) -> WithNode:
        pipe, body, else_body = self.parse_control("with")
        return WithNode(line=pipe.line, pipe=pipe, body=body, else_body=else_body)

    def template_control(self) -> TemplateNode:
        token = self.next_non_space()
        name = self.parse_template_name(token, "template clause")
        pipe = None
        if self.next_non_space().kind is not TokenKind.RIGHT_DELIM:
            self.backup()
            pipe = self.pipeline("template clause", TokenKind.RIGHT_DELIM)
        return TemplateNode(line=token.line, name=name, pipe=pipe)

    def block_control(self) -> TemplateNode:
        token = self.next_non_space()
        name = self.parse_template_name(token, "block clause")
        pipe = self.pipeline("block clause", TokenKind.RIGHT_DELIM)
        saved = self.vars, self.range_depth
        self.vars, self.range_depth = ["$"], 0
        body, end = self.item_list()
        if not isinstance(end, EndNode):
            self.error(f"unexpected {end} in block clause")
        self.vars, self.range_depth = saved
        self.add_tree(name, body)
        return TemplateNode(line=token.line, name=name, pipe=pipe)

    # ------------------------------------------------------------------
    # Pipelines
    def pipeline(self, context: str, end: TokenKind) -> PipeNode:
        pipe = PipeNode(line=self.peek_non_space().line)
        while self.peek_non_space().kind is TokenKind.VARIABLE:
            mark = self.index
            variable = self.next()
            following = self.peek_non_space()
            if following.kind in (TokenKind.ASSIGN, TokenKind.DECLARE):
                self.next_non_space()
                pipe.is_assign = following.kind is TokenKind.ASSIGN
                pipe.decl.append(VariableNode(line=variable.line, ident=[variable.value]))
                self.vars.append(variable.value)
                break
            if following.kind is TokenKind.COMMA:
                self.next_non_space()
                pipe.decl.append(VariableNode(line=variable.line, ident=[variable.value]))
                self.vars.append(variable.value)
                if context == "range" and len(pipe.decl) < 2:
                    if self.peek_non_space().kind is TokenKind.VARIABLE:
                        continue
                    self.error("range can only initialize variables")
                self.error(f"too many declarations in {context}")
            self.index = mark
            break

        while True:
            token = self.next_non_space()
            if token.kind is end:
                self.check_pipeline(pipe, context)
                return pipe
            if token.kind in _OPERAND_START:
                self.backup()
                pipe.cmds.append(self.command())
            else:
                self.unexpected(token, context)

    def check_pipeline(self, pipe: PipeNode, context: str) -> None:
        if not pipe.cmds:
            self.error(f"missing value for {context}")
        for stage, cmd in enumerate(pipe.cmds[1:], start=2):
            if isinstance(cmd.args[0], _NON_EXECUTABLE):
                self.error(f"non executable command in pipeline stage {stage}")

    def command(self) -> CommandNode:
        cmd = CommandNode(line=self.peek_non_space().line)
        while True:
            self.peek_non_space()
            operand = self.operand()
            if operand is not None:
                cmd.args.append(operand)
            token = self.next()
            if token.kind is TokenKind.SPACE:
                continue
            if token.kind in (TokenKind.RIGHT_DELIM, TokenKind.RIGHT_PAREN):
                self.backup()
            elif token.kind is not TokenKind.PIPE:
                self.unexpected(token, "operand")
            break
        if not cmd.args:
            self.error("empty command")
        return cmd

    def operand(self) -> Optional[Node]:
        node = self.term()
        if node is None:
            return None
        if self.peek().kind is TokenKind.FIELD:
            fields: List[str] = []
            while self.peek().kind is TokenKind.FIELD:
                fields.append(self.next().value[1:])
            if isinstance(node, FieldNode):
                return FieldNode(line=node.line, ident=node.ident + fields)
            if isinstance(node, VariableNode):
                return VariableNode(line=node.line, ident=node.ident + fields)
            if isinstance(node, _NON_EXECUTABLE):
                self.error(f"unexpected . after term {_quote(str(node))}")
            return ChainNode(line=node.line, node=node, fields=fields)
        return node

    def term(self) -> Optional[Node]:
        token = self.next_non_space()
        kind = token.kind
        if kind is TokenKind.IDENTIFIER:
            if token.value not in self.funcs:
                self.error(f"function {_quote(token.value)} not defined")
            return IdentifierNode(line=token.line, name=token.value)
        if kind is TokenKind.DOT:
            return DotNode(line=token.line)
        if kind is TokenKind.NIL:
            return NilNode(line=token.line)
        if kind is TokenKind.VARIABLE:
            if token.value not in self.vars:
                self.error(f"undefined variable {_quote(token.value)}")
            return VariableNode(line=token.line, ident=[token.value])
        if kind is TokenKind.FIELD:
            return FieldNode(line=token.line, ident=[token.value[1:]])
        if kind is TokenKind.BOOL:
            return BoolNode(line=token.line, value=token.value == "true")
        if kind in (TokenKind.NUMBER, TokenKind.CHAR_CONSTANT):
            return self.number(token)
        if kind is TokenKind.LEFT_PAREN:
            return self.pipeline("parenthesized pipeline", TokenKind.RIGHT_PAREN)
        if kind in (TokenKind.STRING, TokenKind.RAW_STRING):
            try:
                text = unquote(token.value)
            except ValueError as exc:
                self.error(str(exc))
            return StringNode(line=token.line, quoted=token.value, text=text)
        self.backup()
        return None

    def number(self, token: Token) -> NumberNode:
        literal = token.value
        if token.kind is TokenKind.CHAR_CONSTANT:
            try:
                char = unquote(literal)
            except ValueError as exc:
                self.error(str(exc))
            if len(char) != 1:
                self.error(f"malformed character constant: {literal}")
            return NumberNode(line=token.line, text=literal, value=ord(char))
        clean = literal.replace("_", "")
        try:
            if _OCTAL_INT_RE.fullmatch(clean):
                value = int(clean, 8)
            elif clean.lower().lstrip("+-").startswith("0x") and ("." in clean or "p" in clean.lower()):
                value = float.fromhex(clean)
            else:
                try:
                    value = int(clean, 0)
                except ValueError:
                    value = float(clean)
        except ValueError:
            self.error(f"illegal number syntax: {_quote(literal)}")
        return NumberNode(line=token.line, text=literal, value=value)


def parse(name: str, text: str, funcs: Iterable[str]) -> Dict[str, ListNode]:
    """Parse ``text`` and return every template it defines, keyed by name."""
    return Parser(name, funcs).parse(text)
