"""Decode character entities inside placeholders, and only there."""
from __future__ import annotations

import html
from typing import List


def _placeholder_end(xml: str, start: int) -> int:
    """Return the index just past the ``}}`` closing the tag opened at ``start``, or -1."""
    index = start + 2
    depth = 1
    length = len(xml)
    while index < length and depth > 0:
        pair = xml[index : index + 2]
        if pair == "{{":
            depth += 1
            index += 2
        elif pair == "}}":
            depth -= 1
            index += 2
        else:
            index += 1
    return index if depth == 0 else -1


def decode_entities_in_tags(xml: str) -> str:
    """Unescape ``&quot;``, ``&#34;``, ``&amp;`` and friends within ``{{ … }}``.

    Word escapes the quotes authors type into string literals; the template
    language needs them raw. Text outside placeholders is left untouched.
    """
    chunks: List[str] = []
    position = 0
    start = xml.find("{{")
    while start >= 0:
        end = _placeholder_end(xml, start)
        if end < 0:
            break
        chunks.append(xml[position:start])
        chunks.append(html.unescape(xml[start:end]))
        position = end
        start = xml.find("{{", position)
    if not chunks:
        return xml
    chunks.append(xml[position:])
    return "".join(chunks)
