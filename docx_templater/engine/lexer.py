"""Tokenizer for the ``{{ … }}`` template language."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List

LEFT_DELIM = "{{"
RIGHT_DELIM = "}}"
LEFT_COMMENT = "/*"
RIGHT_COMMENT = "*/"
TRIM_MARKER = "-"
_SPACE_CHARS = " \t\r\n"


class TokenKind(Enum):
    TEXT = "text"
    LEFT_DELIM = "left delim"
    RIGHT_DELIM = "right delim"
    SPACE = "space"
    IDENTIFIER = "identifier"
    FIELD = "field"
    VARIABLE = "variable"
    DOT = "dot"
    STRING = "string"
    RAW_STRING = "raw string"
    CHAR_CONSTANT = "char constant"
    NUMBER = "number"
    BOOL = "bool"
    NIL = "nil"
    PIPE = "pipe"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    ASSIGN = "="
    DECLARE = ":="
    COMMA = ","
    KEYWORD = "keyword"
    EOF = "EOF"


KEYWORDS = frozenset(
    ["block", "break", "continue", "define", "else", "end", "if", "range", "template", "with"]
)

_NUMBER_RE = re.compile(
    r"[+-]?(?:0[xX][0-9a-fA-F_]+(?:\.[0-9a-fA-F_]*)?(?:[pP][+-]?\d+)?"
    r"|0[bB][01_]+"
    r"|0[oO][0-7_]+"
    r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?)"
)
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ALNUM_RE = re.compile(r"[A-Za-z0-9_]*")


class LexError(Exception):
    """Raised for malformed input; carries the line where it happened."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(message)
        self.message = message
        self.line = line


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: str
    pos: int
    line: int

    def __str__(self) -> str:
        if self.kind is TokenKind.EOF:
            return "EOF"
        if self.kind is TokenKind.KEYWORD:
            return f"<{self.value}>"
        if len(self.value) > 10:
            return '"' + self.value[:10] + '"...'
        return '"' + self.value + '"'


def _at_right_delim(text: str, pos: int) -> tuple:
    """Return ``(is_delim, trims)`` for a right delimiter at ``pos``."""
    if text[pos : pos + 1] in _SPACE_CHARS and text[pos : pos + 1] and text.startswith(
        TRIM_MARKER + RIGHT_DELIM, pos + 1
    ):
        return True, True
    if text.startswith(RIGHT_DELIM, pos):
        return True, False
    return False, False


def _has_left_trim(text: str, pos: int) -> bool:
    return text.startswith(TRIM_MARKER, pos) and text[pos + 1 : pos + 2] != "" and text[pos + 1] in _SPACE_CHARS


class Lexer:
    """Splits template source into tokens.

    Text outside actions becomes one ``TEXT`` token per chunk, with trim
    markers already applied. Comments produce no tokens.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens: List[Token] = []
        self.line = 1
        self.paren_depth = 0

    def _emit(self, kind: TokenKind, start: int, end: int) -> None:
        value = self.text[start:end]
        self.tokens.append(Token(kind, value, start, self.line))
        self.line += value.count("\n")

    def _advance_lines(self, start: int, end: int) -> None:
        self.line += self.text.count("\n", start, end)

    def tokenize(self) -> List[Token]:
        text = self.text
        pos = 0
        trim_next = False
        while True:
            delim = text.find(LEFT_DELIM, pos)
            chunk_end = len(text) if delim < 0 else delim
            chunk_start = pos
            if trim_next:
                while chunk_start < chunk_end and text[chunk_start] in _SPACE_CHARS:
                    chunk_start += 1
                self._advance_lines(pos, chunk_start)
            trims_left = delim >= 0 and _has_left_trim(text, delim + len(LEFT_DELIM))
            trimmed_end = chunk_end
            if trims_left:
                while trimmed_end > chunk_start and text[trimmed_end - 1] in _SPACE_CHARS:
                    trimmed_end -= 1
            if trimmed_end > chunk_start:
                self._emit(TokenKind.TEXT, chunk_start, trimmed_end)
            self._advance_lines(trimmed_end, chunk_end)
            if delim < 0:
                break
            pos, trim_next = self._lex_action(delim, trims_left)
        self.tokens.append(Token(TokenKind.EOF, "", len(text), self.line))
        return self.tokens

    # ------------------------------------------------------------------
    def _lex_action(self, delim: int, trims_left: bool) -> tuple:
        text = self.text
        pos = delim + len(LEFT_DELIM)
        if trims_left:
            self._advance_lines(pos, pos + 2)
            pos += 2
        if text.startswith(LEFT_COMMENT, pos):
            return self._lex_comment(pos)

        self._emit(TokenKind.LEFT_DELIM, delim, delim + len(LEFT_DELIM))
        self.paren_depth = 0
        while True:
            at_delim, trims = _at_right_delim(text, pos)
            if at_delim and self.paren_depth == 0:
                start = pos + 2 if trims else pos
                self._advance_lines(pos, start)
                self._emit(TokenKind.RIGHT_DELIM, start, start + len(RIGHT_DELIM))
                return start + len(RIGHT_DELIM), trims
            if at_delim:
                raise LexError("unclosed left paren", self.line)
            if pos >= len(text):
                raise LexError("unclosed action", self.line)
            pos = self._lex_inside(pos)

    def _lex_comment(self, pos: int) -> tuple:
        text = self.text
        end = text.find(RIGHT_COMMENT, pos + len(LEFT_COMMENT))
        if end < 0:
            raise LexError("unclosed comment", self.line)
        end += len(RIGHT_COMMENT)
        at_delim, trims = _at_right_delim(text, end)
        if not at_delim:
            raise LexError("comment ends before closing delimiter", self.line)
        self._advance_lines(pos, end)
        close = end + (2 if trims else 0)
        return close + len(RIGHT_DELIM), trims

    def _lex_inside(self, pos: int) -> int:
        text = self.text
        char = text[pos]
        if char in _SPACE_CHARS:
            end = pos
            while end < len(text) and text[end] in _SPACE_CHARS:
                if _at_right_delim(text, end)[1]:
                    break
                end += 1
            if end == pos:
                end += 1
            self._emit(TokenKind.SPACE, pos, end)
            return end
        if char == "|":
            self._emit(TokenKind.PIPE, pos, pos + 1)
            return pos + 1
        if char == "(":
            self.paren_depth += 1
            self._emit(TokenKind.LEFT_PAREN, pos, pos + 1)
            return pos + 1
        if char == ")":
            self.paren_depth -= 1
            if self.paren_depth < 0:
                raise LexError("unexpected right paren", self.line)
            self._emit(TokenKind.RIGHT_PAREN, pos, pos + 1)
            return pos + 1
        if char == ",":
            self._emit(TokenKind.COMMA, pos, pos + 1)
            return pos + 1
        if text.startswith(":=", pos):
            self._emit(TokenKind.DECLARE, pos, pos + 2)
            return pos + 2
        if char == "=":
            self._emit(TokenKind.ASSIGN, pos, pos + 1)
            return pos + 1
        if char == '"':
            return self._lex_quote(pos, '"', TokenKind.STRING)
        if char == "'":
            return self._lex_quote(pos, "'", TokenKind.CHAR_CONSTANT)
        if char == "`":
            end = text.find("`", pos + 1)
            if end < 0:
                raise LexError("unterminated raw quoted string", self.line)
            self._emit(TokenKind.RAW_STRING, pos, end + 1)
            return end + 1
        if char == "$":
            end = _ALNUM_RE.match(text, pos + 1).end()
            self._emit(TokenKind.VARIABLE, pos, end)
            return end
        if char == ".":
            following = text[pos + 1 : pos + 2]
            if following.isdigit():
                return self._lex_number(pos)
            end = _ALNUM_RE.match(text, pos + 1).end()
            self._emit(TokenKind.FIELD if end > pos + 1 else TokenKind.DOT, pos, end)
            return end
        if char.isdigit() or (char in "+-" and text[pos + 1 : pos + 2].isdigit()):
            return self._lex_number(pos)
        match = _IDENT_RE.match(text, pos)
        if match is not None:
            word = match.group()
            if word in KEYWORDS:
                kind = TokenKind.KEYWORD
            elif word in ("true", "false"):
                kind = TokenKind.BOOL
            elif word == "nil":
                kind = TokenKind.NIL
            else:
                kind = TokenKind.IDENTIFIER
            self._emit(kind, pos, match.end())
            return match.end()
        raise LexError(f"unrecognized character in action: {char!r}", self.line)

    def _lex_quote(self, pos: int, quote: str, kind: TokenKind) -> int:
        text = self.text
        index = pos + 1
        while index < len(text):
            char = text[index]
            if char == "\\":
                index += 2
                continue
            if char == "\n":
                break
            if char == quote:
                self._emit(kind, pos, index + 1)
                return index + 1
            index += 1
        label = "quoted string" if quote == '"' else "character constant"
        raise LexError(f"unterminated {label}", self.line)

    def _lex_number(self, pos: int) -> int:
        match = _NUMBER_RE.match(self.text, pos)
        end = match.end() if match else pos
        if end == pos or _ALNUM_RE.match(self.text, end).end() > end:
            bad_end = _ALNUM_RE.match(self.text, max(end, pos + 1)).end()
            raise LexError(f"bad number syntax: {self.text[pos:bad_end]!r}", self.line)
        self._emit(TokenKind.NUMBER, pos, end)
        return end


def tokenize(text: str) -> List[Token]:
    return Lexer(text).tokenize()
