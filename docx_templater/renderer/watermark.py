"""VML watermarks: ``<v:textpath string="DRAFT">`` in headers and footers."""
from __future__ import annotations

import re
from typing import Callable, Collection, List, Optional

from docx_templater.tags.entities import decode_entities_in_tags
from docx_templater.tags.tag_finder import contains_tags

TEXTPATH_RE = re.compile(r'(<v:textpath[^>]*\sstring=")([^"]*)("[^>]*>)')


def watermarks(xml: str) -> List[str]:
    return [match.group(2) for match in TEXTPATH_RE.finditer(xml)]


def replace_watermark(xml: str, old: str, new: str) -> str:
    """Swap every watermark whose text is exactly ``old``."""

    def swap(match: "re.Match[str]") -> str:
        if match.group(2) != old:
            return match.group(0)
        return match.group(1) + new + match.group(3)

    return TEXTPATH_RE.sub(swap, xml)


def templated_watermarks(xml: str) -> List[str]:
    return [text for text in watermarks(xml) if contains_tags(text)]


def render_watermarks(xml: str, render: Callable[[str], str], sources: Optional[Collection[str]] = None) -> str:
    """Run ``render`` over each watermark text that holds placeholders.

    With ``sources`` only texts listed there are rendered, so placeholders
    that arrived through data are never executed.
    """

    def apply(match: "re.Match[str]") -> str:
        text = match.group(2)
        if not contains_tags(text) or (sources is not None and text not in sources):
            return match.group(0)
        return match.group(1) + render(decode_entities_in_tags(text)) + match.group(3)

    return TEXTPATH_RE.sub(apply, xml)
