"""Arithmetic helpers.

Integers stay integers; a float on either side makes the result a float.
Integer division truncates toward zero and ``mod`` takes the sign of the
dividend. Dividing by zero yields 0 unless the helpers are built strict.
"""
from __future__ import annotations

import math
from typing import Any, Callable, Dict, Union

Number = Union[int, float]


def to_number(value: Any) -> Number:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return float(text)
    raise TypeError(f"expected a number, got {type(value).__name__}")


def add(left: Any, right: Any) -> Any:
    if isinstance(left, str) and isinstance(right, str):
        try:
            return to_number(left) + to_number(right)
        except ValueError:
            return left + right
    return to_number(left) + to_number(right)


def sub(left: Any, right: Any) -> Number:
    return to_number(left) - to_number(right)


def mul(left: Any, right: Any) -> Number:
    return to_number(left) * to_number(right)


def _divide(left: Any, right: Any, strict: bool) -> Number:
    dividend, divisor = to_number(left), to_number(right)
    if divisor == 0:
        if strict:
            raise ZeroDivisionError("division by zero")
        return 0
    if isinstance(dividend, int) and isinstance(divisor, int):
        quotient = abs(dividend) // abs(divisor)
        return quotient if (dividend >= 0) == (divisor >= 0) else -quotient
    return dividend / divisor


def _modulo(left: Any, right: Any, strict: bool) -> Number:
    dividend, divisor = to_number(left), to_number(right)
    if divisor == 0:
        if strict:
            raise ZeroDivisionError("modulo by zero")
        return 0
    if isinstance(dividend, int) and isinstance(divisor, int):
        remainder = abs(dividend) % abs(divisor)
        return remainder if dividend >= 0 else -remainder
    return math.fmod(dividend, divisor)


def functions(strict: bool = False) -> Dict[str, Callable]:
    def div(left: Any, right: Any) -> Number:
        return _divide(left, right, strict)

    def mod(left: Any, right: Any) -> Number:
        return _modulo(left, right, strict)

    return {"add": add, "sub": sub, "mul": mul, "div": div, "mod": mod}
