"""Value semantics shared by the executor and the helper functions.

Printing follows the ``%v`` verb of Go's fmt package, which is what template
authors coming from Go expect: ``true``/``false`` for booleans, ``2`` for
the float 2.0, ``[a b]`` for lists and ``map[k:v]`` for mappings.
"""
from __future__ import annotations

import datetime as dt
import math
import re
from decimal import Decimal
from typing import Any, Iterable, List


class _Missing:
    """Result of reading an absent key or walking through a nil value."""

    _instance = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "<no value>"

    __str__ = __repr__


MISSING = _Missing()
NO_VALUE = "<no value>"
_SHORTEST_EXPONENT_LIMIT = 6


def is_missing(value: Any) -> bool:
    return value is MISSING or value is None


def to_python(value: Any) -> Any:
    """Replace the missing marker with ``None`` before handing values to helpers."""
    return None if value is MISSING else value


def is_true(value: Any) -> bool:
    """Truthiness of the template language.

    False, zero, the empty string, nil/missing and empty collections are
    false; every other value is true.
    """
    if is_missing(value):
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) > 0
    return True


def format_float(value: float) -> str:
    """Shortest representation using Go's ``%v`` exponent thresholds."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    sign, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
    mantissa = "".join(str(digit) for digit in digits)
    point = len(mantissa) + exponent
    decimal_exponent = point - 1
    prefix = "-" if sign else ""
    if decimal_exponent < -4 or decimal_exponent >= _SHORTEST_EXPONENT_LIMIT:
        head, tail = mantissa[0], mantissa[1:]
        body = head + ("." + tail if tail else "")
        exp_sign = "-" if decimal_exponent < 0 else "+"
        return f"{prefix}{body}e{exp_sign}{abs(decimal_exponent):02d}"
    if point <= 0:
        return f"{prefix}0.{'0' * -point}{mantissa}"
    if point >= len(mantissa):
        return prefix + mantissa + "0" * (point - len(mantissa))
    return f"{prefix}{mantissa[:point]}.{mantissa[point:]}"


def format_value(value: Any) -> str:
    """Render ``value`` the way the template engine prints it."""
    if is_missing(value):
        return NO_VALUE
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, Decimal):
        return format_float(float(value))
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(format_value(item) for item in value) + "]"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda item: sort_key(item[0]))
        return "map[" + " ".join(f"{format_value(key)}:{format_value(item)}" for key, item in items) + "]"
    if isinstance(value, dt.datetime):
        return value.isoformat(sep=" ")
    return str(value)


def sort_key(value: Any) -> tuple:
    """Key ordering mixed scalars: numbers before strings, then by value."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, "")
    return (1, 0, str(value))


# ----------------------------------------------------------------------
# fmt.Sprint / Sprintln / Sprintf
def sprint(args: Iterable[Any]) -> str:
    """Operands are separated by a space when neither side is a string."""
    out: List[str] = []
    previous_is_string = True
    for index, arg in enumerate(args):
        is_string = isinstance(arg, str)
        if index > 0 and not is_string and not previous_is_string:
            out.append(" ")
        out.append(format_value(arg))
        previous_is_string = is_string
    return "".join(out)


def sprintln(args: Iterable[Any]) -> str:
    return " ".join(format_value(arg) for arg in args) + "\n"


_VERB_RE = re.compile(r"%([-+# 0]*)(\d+|\*)?(?:\.(\d+|\*)?)?([a-zA-Z%])")


def _quote_go(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\t", "\\t")
    return '"' + escaped + '"'


def _format_verb(verb: str, flags: str, width: str, precision: str, arg: Any) -> str:
    spec_flags = "+" if "+" in flags else (" " if " " in flags else "")
    if verb == "v":
        text = format_value(arg)
    elif verb == "s":
        text = format_value(arg)
        if precision:
            text = text[: int(precision)]
    elif verb == "q":
        text = _quote_go(format_value(arg))
    elif verb == "t":
        text = format_value(bool(arg)) if isinstance(arg, bool) else f"%!t({format_value(arg)})"
    elif verb == "d":
        if isinstance(arg, bool) or not isinstance(arg, int):
            return f"%!d({format_value(arg)})"
        text = format(arg, f"{spec_flags}")
    elif verb in "xXob":
        if isinstance(arg, str):
            text = arg.encode("utf-8").hex()
            text = text.upper() if verb == "X" else text
        elif isinstance(arg, int) and not isinstance(arg, bool):
            text = format(arg, verb)
            if "#" in flags and verb in "xX":
                text = ("0" + verb) + text
        else:
            return f"%!{verb}({format_value(arg)})"
    elif verb in "feEgG":
        if isinstance(arg, bool) or not isinstance(arg, (int, float)):
            return f"%!{verb}({format_value(arg)})"
        digits = precision if precision else ("6" if verb in "feE" else "")
        if verb in "gG" and not precision:
            text = format_float(float(arg))
        else:
            text = format(float(arg), f"{spec_flags}.{digits}{verb}")
    elif verb == "c":
        text = chr(arg) if isinstance(arg, int) else f"%!c({format_value(arg)})"
    elif verb == "T":
        text = type(arg).__name__
    else:
        return f"%!{verb}({format_value(arg)})"
    if width:
        size = int(width)
        if "-" in flags:
            text = text.ljust(size)
        elif "0" in flags and verb not in "sqvT":
            sign = text[0] if text[:1] in "+-" else ""
            text = sign + text[len(sign) :].rjust(size - len(sign), "0")
        else:
            text = text.rjust(size)
    return text


def sprintf(layout: str, args: Iterable[Any]) -> str:
    """A subset of Go's ``fmt.Sprintf`` covering the common verbs."""
    pending = list(args)
    position = 0

    def replace(match: "re.Match[str]") -> str:
        nonlocal position
        flags, width, precision, verb = match.groups()
        if verb == "%":
            return "%"
        if width == "*":
            width = str(pending[position]) if position < len(pending) else ""
            position += 1
        if precision == "*":
            precision = str(pending[position]) if position < len(pending) else ""
            position += 1
        if position >= len(pending):
            return f"%!{verb}(MISSING)"
        arg = pending[position]
        position += 1
        return _format_verb(verb, flags or "", width or "", precision or "", arg)

    result = _VERB_RE.sub(replace, layout)
    if position < len(pending):
        extra = ", ".join(f"{type(arg).__name__}={format_value(arg)}" for arg in pending[position:])
        result += f"%!(EXTRA {extra})"
    return result
