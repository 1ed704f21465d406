"""Comparison and boolean helpers."""
from __future__ import annotations

import datetime as dt
from typing import Any

from docx_templater.engine.values import is_true


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _equal(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return float(left) == float(right)
    if type(left) is not type(right) and not (
        isinstance(left, dt.date) and isinstance(right, dt.date)
    ):
        return False
    return left == right


def _ordered(left: Any, right: Any) -> tuple:
    if _is_number(left) and _is_number(right):
        return float(left), float(right)
    if isinstance(left, str) and isinstance(right, str):
        return left, right
    if isinstance(left, dt.datetime) and isinstance(right, dt.datetime):
        return left, right
    if isinstance(left, dt.date) and isinstance(right, dt.date):
        return left, right
    raise TypeError(f"incompatible types for comparison: {type(left).__name__} and {type(right).__name__}")


def eq(left: Any, *others: Any) -> bool:
    """True when ``left`` equals any of ``others``."""
    if not others:
        raise TypeError("missing argument for comparison")
    return any(_equal(left, other) for other in others)


def ne(left: Any, right: Any) -> bool:
    return not _equal(left, right)


def lt(left: Any, right: Any) -> bool:
    a, b = _ordered(left, right)
    return a < b


def le(left: Any, right: Any) -> bool:
    a, b = _ordered(left, right)
    return a <= b


def gt(left: Any, right: Any) -> bool:
    a, b = _ordered(left, right)
    return a > b


def ge(left: Any, right: Any) -> bool:
    a, b = _ordered(left, right)
    return a >= b


def and_(first: Any, *rest: Any) -> bool:
    return all(is_true(value) for value in (first,) + rest)


def or_(first: Any, *rest: Any) -> bool:
    return any(is_true(value) for value in (first,) + rest)


def not_(value: Any) -> bool:
    return not is_true(value)


def default(fallback: Any, value: Any = None) -> Any:
    """``{{ .Name | default "N/A" }}``: the fallback when ``value`` is falsy."""
    return value if is_true(value) else fallback


def coalesce(*values: Any) -> Any:
    for value in values:
        if is_true(value):
            return value
    return None


def ternary(when_true: Any, when_false: Any, condition: Any) -> Any:
    return when_true if is_true(condition) else when_false


FUNCTIONS = {
    "eq": eq,
    "ne": ne,
    "lt": lt,
    "le": le,
    "gt": gt,
    "ge": ge,
    "and": and_,
    "or": or_,
    "not": not_,
    "default": default,
    "coalesce": coalesce,
    "ternary": ternary,
}
