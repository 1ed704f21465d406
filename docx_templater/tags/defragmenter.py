"""Reassemble placeholders that Word split across several ``<w:t>`` elements.

Word stores a run of text in a new ``<w:t>`` element whenever formatting,
spell-check state or revision marks change, so ``{{.FirstName}}`` regularly
arrives as ``<w:t>{{.First</w:t>…<w:t>Name}}</w:t>``. The defragmenter moves
the whole placeholder into the first text element and leaves the elements it
consumed empty; the markup around them is not touched.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

TEXT_ELEMENT_RE = re.compile(r"(<w:t(?:\s[^>]*)?(?<!/)>)([^<]*)(</w:t>)")


@dataclass(slots=True)
class TextSpan:
    """Position of one ``<w:t>`` element inside the part."""

    start: int
    end: int
    content_start: int
    content_end: int
    content: str


def _find_spans(xml: str) -> List[TextSpan]:
    return [
        TextSpan(
            start=match.start(),
            end=match.end(),
            content_start=match.start(2),
            content_end=match.end(2),
            content=match.group(2),
        )
        for match in TEXT_ELEMENT_RE.finditer(xml)
    ]


def has_incomplete_open(text: str) -> bool:
    """Return True when ``text`` opens a placeholder it does not close."""
    opens = text.count("{{")
    closes = text.count("}}")
    if opens > closes:
        return True
    if text.rfind("{{") > text.rfind("}}"):
        return True
    if text.endswith("{") and not text.endswith("{{"):
        return True
    if text.endswith("}") and not text.endswith("}}") and opens > 0:
        return True
    if text.endswith("-"):
        before = text[:-1]
        if before.count("{{") > before.count("}}"):
            return True
    return False


def is_balanced(text: str) -> bool:
    """Return True when ``text`` holds at least one tag and every tag is closed."""
    opens = text.count("{{")
    if opens == 0 or opens != text.count("}}"):
        return False
    return not text.rstrip(" \t\r\n").endswith("{")


def defragment(xml: str) -> str:
    """Merge fragmented placeholders so each sits inside a single text element."""
    spans = _find_spans(xml)
    if not spans:
        return xml

    chunks: List[str] = []
    last_end = 0
    index = 0
    merged = 0
    while index < len(spans):
        span = spans[index]
        if not has_incomplete_open(span.content):
            index += 1
            continue

        accumulated = span.content
        stop = index + 1
        while stop < len(spans) and not is_balanced(accumulated):
            accumulated += spans[stop].content
            stop += 1

        if not is_balanced(accumulated):
            LOGGER.warning("Unbalanced placeholder left as-is near %r", span.content[:40])
            index += 1
            continue

        chunks.append(xml[last_end : span.content_start])
        chunks.append(accumulated)
        for previous, consumed in zip(spans[index : stop - 1], spans[index + 1 : stop]):
            # Markup between the two elements, then the consumed element emptied.
            chunks.append(xml[previous.content_end : consumed.content_start])
        chunks.append(xml[spans[stop - 1].content_end : spans[stop - 1].end])
        last_end = spans[stop - 1].end
        merged += stop - index - 1
        index = stop

    if last_end == 0:
        return xml
    chunks.append(xml[last_end:])
    LOGGER.debug("Merged %d fragmented text elements", merged)
    return "".join(chunks)
