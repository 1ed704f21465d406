"""Small utilities: uuid, pluralize, truncate, wordwrap."""
from __future__ import annotations

import textwrap
import uuid as uuid_module
from typing import Any

from docx_templater.functions.math_functions import to_number
from docx_templater.functions.text import as_text


def uuid() -> str:
    return str(uuid_module.uuid4())


def pluralize(count: Any, singular: Any, plural: Any) -> str:
    """``pluralize 1 "item" "items"`` -> ``item``."""
    return as_text(singular) if abs(to_number(count)) == 1 else as_text(plural)


def truncate(value: Any, length: int, suffix: Any = "...") -> str:
    """Cut ``value`` to ``length`` characters and append ``suffix`` when cut."""
    text = as_text(value)
    limit = max(0, int(length))
    if len(text) <= limit:
        return text
    return text[:limit] + as_text(suffix)


def wordwrap(value: Any, width: int) -> str:
    text = as_text(value)
    if int(width) <= 0:
        return text
    return "\n".join(
        textwrap.fill(paragraph, width=int(width), break_long_words=False, break_on_hyphens=False)
        for paragraph in text.split("\n")
    )


FUNCTIONS = {
    "uuid": uuid,
    "pluralize": pluralize,
    "truncate": truncate,
    "wordwrap": wordwrap,
}
