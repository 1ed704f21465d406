"""String helpers: case conversion, trimming and splitting.

Values reaching these helpers are usually XML-escaped already, so case
conversion leaves entities (``&amp;``) and markup (``<w:br/>``) untouched.
"""
from __future__ import annotations

import re
from typing import Any, Callable, List

from docx_templater.engine.values import format_value

_PROTECTED_RE = re.compile(r"(<[^>]*>|&(?:#[0-9]+|#x[0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);)")
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def as_text(value: Any) -> str:
    if value is None:
        return ""
    return format_value(value)


def map_plain(value: Any, convert: Callable[[str], str]) -> str:
    """Apply ``convert`` to the text between entities and markup."""
    pieces = _PROTECTED_RE.split(as_text(value))
    return "".join(piece if index % 2 else convert(piece) for index, piece in enumerate(pieces))


def _words(value: Any) -> List[str]:
    text = _PROTECTED_RE.sub(" ", as_text(value))
    return _WORD_RE.findall(text)


def upper(value: Any) -> str:
    return map_plain(value, str.upper)


def lower(value: Any) -> str:
    return map_plain(value, str.lower)


def _title_piece(text: str) -> str:
    return re.sub(r"(^|[^\w'])(\w)", lambda match: match.group(1) + match.group(2).upper(), text)


def title(value: Any) -> str:
    """Upper-case the first letter of every word, leaving the rest alone."""
    return map_plain(value, _title_piece)


def capitalize(value: Any) -> str:
    text = as_text(value)
    if not text:
        return ""
    return text[0].upper() + text[1:]


def camel_case(value: Any) -> str:
    words = [word.lower() for word in _words(value)]
    if not words:
        return ""
    return words[0] + "".join(word.capitalize() for word in words[1:])


def snake_case(value: Any) -> str:
    return "_".join(word.lower() for word in _words(value))


def kebab_case(value: Any) -> str:
    return "-".join(word.lower() for word in _words(value))


def trim(value: Any) -> str:
    return as_text(value).strip()


def trim_prefix(value: Any, prefix: Any) -> str:
    text, prefix = as_text(value), as_text(prefix)
    return text[len(prefix) :] if prefix and text.startswith(prefix) else text


def trim_suffix(value: Any, suffix: Any) -> str:
    text, suffix = as_text(value), as_text(suffix)
    return text[: -len(suffix)] if suffix and text.endswith(suffix) else text


def replace(value: Any, old: Any, new: Any) -> str:
    return as_text(value).replace(as_text(old), as_text(new))


def repeat(value: Any, count: int) -> str:
    count = int(count)
    if count < 0:
        raise ValueError("negative repeat count")
    return as_text(value) * count


def split(value: Any, separator: Any) -> List[str]:
    text = as_text(value)
    if not text:
        return []
    separator = as_text(separator)
    if not separator:
        return list(text)
    return text.split(separator)


def concat(*values: Any) -> str:
    return "".join(as_text(value) for value in values)


FUNCTIONS = {
    "upper": upper,
    "lower": lower,
    "title": title,
    "capitalize": capitalize,
    "camelCase": camel_case,
    "snakeCase": snake_case,
    "kebabCase": kebab_case,
    "trim": trim,
    "trimPrefix": trim_prefix,
    "trimSuffix": trim_suffix,
    "replace": replace,
    "repeat": repeat,
    "split": split,
    "concat": concat,
}
