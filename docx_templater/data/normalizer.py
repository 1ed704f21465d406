"""Turn arbitrary user data into the plain tree the template engine walks.

The engine only understands ``dict``, ``list`` and scalars. Records (dataclass
instances, named tuples, plain objects) are flattened to dicts of their public
fields, numbers are widened to ``int``/``float`` and mapping inputs are deep
copied so that the caller may keep mutating its own objects during a render.
"""
from __future__ import annotations

import datetime as dt
import enum
import functools
import numbers
import types
from collections.abc import Mapping, Set
from dataclasses import fields, is_dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Tuple

from docx_templater.model.errors import ErrorCode, TemplateError

_CALLABLE_TYPES = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    functools.partial,
)
_TEMPORAL_TYPES = (dt.date, dt.datetime, dt.time, dt.timedelta)


class DataConversionError(TemplateError):
    """Raised when user data cannot be turned into a template data tree."""

    def __init__(self, message: str) -> None:
        super().__init__(
            ErrorCode.DATA_CONVERSION,
            message,
            suggestions=["Pass a dict, a dataclass instance or an object with public attributes"],
        )


def _is_record(value: Any) -> bool:
    if isinstance(value, type) or isinstance(value, (types.ModuleType,) + _CALLABLE_TYPES):
        return False
    if is_dataclass(value):
        return True
    if isinstance(value, tuple) and hasattr(value, "_asdict"):
        return True
    return hasattr(value, "__dict__") or hasattr(type(value), "__slots__")


def _record_items(value: Any) -> Iterable[Tuple[str, Any]]:
    if is_dataclass(value):
        return ((item.name, getattr(value, item.name)) for item in fields(value))
    if isinstance(value, tuple) and hasattr(value, "_asdict"):
        return value._asdict().items()
    if hasattr(value, "__dict__"):
        return vars(value).items()
    names: List[str] = []
    for klass in type(value).__mro__:
        slots = getattr(klass, "__slots__", ())
        names.extend([slots] if isinstance(slots, str) else slots)
    return ((name, getattr(value, name)) for name in names if hasattr(value, name))


def _key_to_string(key: Any) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, enum.Enum):
        return _key_to_string(key.value)
    if isinstance(key, numbers.Integral):
        return str(int(key))
    return str(key)


class _Normalizer:
    def __init__(self) -> None:
        self._active: set = set()

    def _enter(self, value: Any, path: str) -> None:
        if id(value) in self._active:
            raise DataConversionError(f"cyclic reference at {path or 'top level'}")
        self._active.add(id(value))

    def mapping(self, value: Mapping, path: str) -> Dict[str, Any]:
        self._enter(value, path)
        try:
            result: Dict[str, Any] = {}
            for key, item in value.items():
                name = _key_to_string(key)
                result[name] = self.value(item, f"{path}.{name}")
            return result
        finally:
            self._active.discard(id(value))

    def record(self, value: Any, path: str) -> Dict[str, Any]:
        self._enter(value, path)
        try:
            return {
                name: self.value(item, f"{path}.{name}")
                for name, item in _record_items(value)
                if not name.startswith("_")
            }
        finally:
            self._active.discard(id(value))

    def sequence(self, value: Iterable, path: str) -> List[Any]:
        self._enter(value, path)
        try:
            items = list(value)
            if isinstance(value, Set):
                items.sort(key=repr)
            converted = [self.value(item, f"{path}[{index}]") for index, item in enumerate(items)]
            if items and (isinstance(items[0], Mapping) or _is_record(items[0])):
                return [item if isinstance(item, dict) else {"Value": item} for item in converted]
            return converted
        finally:
            self._active.discard(id(value))

    def value(self, value: Any, path: str) -> Any:
        if value is None or isinstance(value, (bool, str)):
            return value
        if isinstance(value, enum.Enum):
            return self.value(value.value, path)
        if isinstance(value, numbers.Integral):
            return int(value)
        if isinstance(value, (Decimal, numbers.Real)):
            return float(value)
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8", errors="replace")
        if isinstance(value, _TEMPORAL_TYPES + _CALLABLE_TYPES):
            return value
        if isinstance(value, Mapping):
            return self.mapping(value, path)
        if isinstance(value, (list, tuple, Set)) and not hasattr(value, "_asdict"):
            return self.sequence(value, path)
        if _is_record(value):
            return self.record(value, path)
        return value


def normalize_data(data: Any) -> Dict[str, Any]:
    """Convert ``data`` into a dict of plain values.

    Raises :class:`DataConversionError` when the top level is not a mapping or
    a record, or when the data contains a reference cycle.
    """
    if data is None:
        raise DataConversionError("data is None")
    normalizer = _Normalizer()
    if isinstance(data, Mapping):
        return normalizer.mapping(data, "")
    if isinstance(data, enum.Enum) or isinstance(data, (str, bytes, numbers.Number) + _TEMPORAL_TYPES):
        raise DataConversionError(f"expected a mapping or a record, got {type(data).__name__}")
    if isinstance(data, (list, set, frozenset)) or not _is_record(data):
        raise DataConversionError(f"expected a mapping or a record, got {type(data).__name__}")
    return normalizer.record(data, "")
