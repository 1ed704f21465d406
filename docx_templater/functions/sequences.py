"""Collection helpers: len, first, last, index, slice, join, contains."""
from __future__ import annotations

from typing import Any, Optional

from docx_templater.functions.text import as_text


def _sized(value: Any, name: str) -> Any:
    if value is None:
        return []
    if isinstance(value, (str, list, tuple, dict, set, frozenset)):
        return value
    raise TypeError(f"{name} of type {type(value).__name__}")


def length(value: Any) -> int:
    return len(_sized(value, "len"))


def first(value: Any) -> Any:
    items = _sized(value, "first")
    if isinstance(items, dict) or not items:
        return None
    return items[0]


def last(value: Any) -> Any:
    items = _sized(value, "last")
    if isinstance(items, dict) or not items:
        return None
    return items[-1]


def index(collection: Any, *keys: Any) -> Any:
    """``index .Map "k"`` or ``index .List 0 1``; out of range gives nil."""
    item = collection
    for key in keys:
        if item is None:
            return None
        if isinstance(item, dict):
            item = item.get(key if isinstance(key, str) else as_text(key))
        elif isinstance(item, (list, tuple, str)):
            if isinstance(key, bool) or not isinstance(key, int):
                raise TypeError(f"cannot index slice/array with type {type(key).__name__}")
            if key < 0 or key >= len(item):
                return None
            item = item[key]
        else:
            raise TypeError(f"can't index item of type {type(item).__name__}")
    return item


def slice_(value: Any, start: int = 0, end: Optional[int] = None) -> Any:
    items = _sized(value, "slice")
    if isinstance(items, (dict, set, frozenset)):
        raise TypeError(f"can't slice item of type {type(value).__name__}")
    size = len(items)
    stop = size if end is None else min(int(end), size)
    begin = max(0, min(int(start), stop))
    return items[begin:stop]


def join(value: Any, separator: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return as_text(separator).join(as_text(item) for item in _sized(value, "join"))


def contains(collection: Any, element: Any) -> bool:
    if collection is None:
        return False
    if isinstance(collection, str):
        return as_text(element) in collection
    if isinstance(collection, dict):
        return element in collection
    if isinstance(collection, (list, tuple, set, frozenset)):
        return element in collection
    raise TypeError(f"contains on type {type(collection).__name__}")


FUNCTIONS = {
    "len": length,
    "first": first,
    "last": last,
    "index": index,
    "slice": slice_,
    "join": join,
    "contains": contains,
}
