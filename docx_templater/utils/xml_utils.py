"""Helper functions to work with XML namespaces, parsing and escaping."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict
from xml.etree import ElementTree as ET


@dataclass(frozen=True)
class Namespaces:
    """Common OpenXML namespace prefixes used across parsers."""

    WORD: Dict[str, str] = None  # type: ignore[assignment]
    RELS: Dict[str, str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:  # pragma: no cover
        raise RuntimeError("Namespaces should not be instantiated")


Namespaces.WORD = {  # type: ignore[attr-defined]
    "w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main",
}
Namespaces.RELS = {  # type: ignore[attr-defined]
    "rel": "http://schemas.openxmlformats.org/package/2006/relationships",
}

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'

_TEXT_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&#34;",
    "'": "&#39;",
    "\t": "&#x9;",
    "\r": "&#xD;",
}

_ATTR_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
}

WORD_LINE_BREAK = "</w:t><w:br/><w:t>"


def parse_xml(data: bytes) -> ET.ElementTree:
    """Parse XML from raw bytes with sane defaults."""
    return ET.ElementTree(ET.fromstring(data))


def strip_namespace(tag: str) -> str:
    """Return the local name of a Clark-notation tag."""
    return tag.split("}", 1)[-1]


def escape_text(value: str) -> str:
    """Escape character data for WordprocessingML text.

    Newlines become Word line breaks that close and reopen the surrounding
    ``<w:t>`` element.
    """
    escaped = "".join(_TEXT_ESCAPES.get(char, char) for char in value)
    return escaped.replace("\n", WORD_LINE_BREAK)


def escape_attribute(value: str) -> str:
    """Escape a value for use inside a double-quoted XML attribute."""
    return "".join(_ATTR_ESCAPES.get(char, char) for char in value)
