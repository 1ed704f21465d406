"""The builtin functions every Go template can call."""
from __future__ import annotations

from typing import Any, Callable
from urllib.parse import quote_plus

from docx_templater.engine.values import sprint, sprintf, sprintln

_HTML_ESCAPES = {
    "\0": "\ufffd",
    '"': "&#34;",
    "'": "&#39;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
}

_JS_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "<": "\\u003C",
    ">": "\\u003E",
    "&": "\\u0026",
    "=": "\\u003D",
}


def print_(*args: Any) -> str:
    return sprint(args)


def printf(layout: str, *args: Any) -> str:
    return sprintf(layout, args)


def println(*args: Any) -> str:
    return sprintln(args)


def html(*args: Any) -> str:
    return "".join(_HTML_ESCAPES.get(char, char) for char in sprint(args))


def _js_char(char: str) -> str:
    if char in _JS_ESCAPES:
        return _JS_ESCAPES[char]
    if ord(char) < 0x20:
        return f"\\u{ord(char):04X}"
    return char


def js(*args: Any) -> str:
    return "".join(_js_char(char) for char in sprint(args))


def urlquery(*args: Any) -> str:
    return quote_plus(sprint(args))


def call(function: Callable, *args: Any) -> Any:
    if function is None:
        raise TypeError("call of nil")
    if not callable(function):
        raise TypeError(f"non-function of type {type(function).__name__}")
    return function(*args)


FUNCTIONS = {
    "print": print_,
    "printf": printf,
    "println": println,
    "html": html,
    "js": js,
    "urlquery": urlquery,
    "call": call,
}
