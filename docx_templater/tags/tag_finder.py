"""Locating and classifying ``{{ … }}`` placeholders in text."""
from __future__ import annotations

import re
from typing import List, Optional

TAG_RE = re.compile(r"\{\{.*?\}\}", re.DOTALL)

BLOCK_KEYWORDS = ("if", "else", "end", "range", "with", "define", "template", "block")
BLOCK_START_KEYWORDS = ("if", "range", "with", "block", "define")
ROW_MARKER_KEYWORDS = ("range", "if", "with", "else", "end")


def find_all_tags(text: str) -> List[str]:
    """Return every placeholder in ``text``, in order of appearance."""
    return TAG_RE.findall(text)


def contains_tags(text: str) -> bool:
    return TAG_RE.search(text) is not None


def extract_tag_content(tag: str) -> str:
    """Strip delimiters and trim markers: ``{{- .Name -}}`` -> ``.Name``."""
    content = tag
    if content.startswith("{{"):
        content = content[2:]
    if content.endswith("}}"):
        content = content[:-2]
    content = content.strip()
    if content.startswith("-"):
        content = content[1:]
    if content.endswith("-"):
        content = content[:-1]
    return content.strip()


def tag_keyword(tag: str) -> Optional[str]:
    """Return the control keyword a tag starts with, if any."""
    content = extract_tag_content(tag)
    for keyword in BLOCK_KEYWORDS:
        if content == keyword or content.startswith((keyword + " ", keyword + "\t", keyword + "\n")):
            return keyword
    return None


def unique_tags(tags: List[str]) -> List[str]:
    """Remove duplicates while preserving order."""
    return list(dict.fromkeys(tags))
