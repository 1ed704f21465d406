"""Helpers that splice formatted runs and structural breaks into a text run.

Each helper closes the ``<w:t>``/``<w:r>`` it is called from, emits its own
markup and reopens a plain run, so the placeholder can sit anywhere inside a
text element. Empty runs left behind are removed after rendering.
"""
from __future__ import annotations

import html
import re
from typing import Any, Callable, Dict

from docx_templater.functions.text import as_text
from docx_templater.utils.xml_utils import escape_attribute

_BARE_AMPERSAND_RE = re.compile(r"&(?!(?:#[0-9]+|#x[0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);)")

HYPERLINK_COLOR = "0563C1"


def _payload(value: Any) -> str:
    return _BARE_AMPERSAND_RE.sub("&amp;", as_text(value))


def _unescaped(value: Any) -> str:
    """Text of ``value`` with the XML escaping of the data tree undone."""
    return html.unescape(as_text(value))


def _hex(value: Any) -> str:
    return escape_attribute(_unescaped(value).lstrip("#"))


def formatted_run(properties: str, value: Any) -> str:
    """Wrap ``value`` in a run carrying ``properties`` (``<w:rPr>`` children)."""
    return f"</w:t></w:r><w:r><w:rPr>{properties}</w:rPr><w:t>{_payload(value)}</w:t></w:r><w:r><w:t>"


def _toggle(element: str) -> Callable[[Any], str]:
    def helper(value: Any) -> str:
        return formatted_run(element, value)

    helper.__name__ = element
    return helper


def color(hex_color: Any, value: Any) -> str:
    return formatted_run(f'<w:color w:val="{_hex(hex_color)}"/>', value)


def bg_color(hex_color: Any, value: Any) -> str:
    return formatted_run(f'<w:shd w:val="clear" w:color="auto" w:fill="{_hex(hex_color)}"/>', value)


def highlight(name: Any, value: Any) -> str:
    return formatted_run(f'<w:highlight w:val="{escape_attribute(_unescaped(name))}"/>', value)


def _size(half_points: Any) -> str:
    size = escape_attribute(_unescaped(half_points))
    return f'<w:sz w:val="{size}"/><w:szCs w:val="{size}"/>'


def _fonts(name: Any) -> str:
    family = escape_attribute(_unescaped(name))
    return f'<w:rFonts w:ascii="{family}" w:hAnsi="{family}" w:cs="{family}"/>'


def font_size(half_points: Any, value: Any) -> str:
    return formatted_run(_size(half_points), value)


def font_family(name: Any, value: Any) -> str:
    return formatted_run(_fonts(name), value)


def font(name: Any, half_points: Any, hex_color: Any, value: Any) -> str:
    properties = _fonts(name) + f'<w:color w:val="{_hex(hex_color)}"/>' + _size(half_points)
    return formatted_run(properties, value)


def line_break() -> str:
    return "</w:t><w:br/><w:t>"


def tab() -> str:
    return "</w:t><w:tab/><w:t>"


def page_break() -> str:
    return '</w:t></w:r><w:r><w:br w:type="page"/></w:r><w:r><w:t>'


def section_break() -> str:
    """End the current paragraph, insert a next-page section break, reopen."""
    return (
        "</w:t></w:r></w:p>"
        '<w:p><w:pPr><w:sectPr><w:type w:val="nextPage"/></w:sectPr></w:pPr></w:p>'
        "<w:p><w:r><w:t>"
    )


def hyperlink_markup(r_id: str, value: Any) -> str:
    return (
        f'</w:t></w:r><w:hyperlink r:id="{escape_attribute(r_id)}" w:history="1">'
        '<w:r><w:rPr><w:rStyle w:val="Hyperlink"/>'
        f'<w:color w:val="{HYPERLINK_COLOR}"/><w:u w:val="single"/></w:rPr>'
        f"<w:t>{_payload(value)}</w:t></w:r></w:hyperlink><w:r><w:t>"
    )


def make_link(register: Callable[[str], str]) -> Callable[[Any, Any], str]:
    """Build the ``link`` helper; ``register`` maps a URL to its relationship id."""

    def link(url: Any, value: Any) -> str:
        target = _unescaped(url)
        if not target:
            raise ValueError("link needs a URL")
        return hyperlink_markup(register(target), value)

    return link


FUNCTIONS: Dict[str, Callable] = {
    "bold": _toggle("<w:b/>"),
    "italic": _toggle("<w:i/>"),
    "underline": _toggle('<w:u w:val="single"/>'),
    "strikethrough": _toggle("<w:strike/>"),
    "doubleStrike": _toggle("<w:dstrike/>"),
    "subscript": _toggle('<w:vertAlign w:val="subscript"/>'),
    "superscript": _toggle('<w:vertAlign w:val="superscript"/>'),
    "smallCaps": _toggle("<w:smallCaps/>"),
    "allCaps": _toggle("<w:caps/>"),
    "shadow": _toggle("<w:shadow/>"),
    "outline": _toggle("<w:outline/>"),
    "emboss": _toggle("<w:emboss/>"),
    "imprint": _toggle("<w:imprint/>"),
    "color": color,
    "bgColor": bg_color,
    "highlight": highlight,
    "fontSize": font_size,
    "fontFamily": font_family,
    "font": font,
    "br": line_break,
    "tab": tab,
    "pageBreak": page_break,
    "sectionBreak": section_break,
}
