"""Lift block markers that occupy a whole table row out of that row.

A ``{{range .Items}}`` typed into its own table row must end up between the
``<w:tr>`` elements, otherwise each iteration would emit a fragment of a row
and the part would no longer be well-formed XML.
"""
from __future__ import annotations

import re
import time
from typing import List, Optional

from docx_templater.model.errors import ErrorCode, TemplateError
from docx_templater.model.render_options import DEFAULT_ROW_REWRITE_TIMEOUT
from docx_templater.tags.tag_finder import ROW_MARKER_KEYWORDS, find_all_tags, tag_keyword
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

ROW_OPEN_RE = re.compile(r"<w:tr(?=[\s>])")
ROW_CLOSE = "</w:tr>"


def row_marker(row_xml: str) -> Optional[str]:
    """Return the block marker a row consists of, or ``None``."""
    tags = find_all_tags(row_xml)
    if len(tags) != 1:
        return None
    if tag_keyword(tags[0]) in ROW_MARKER_KEYWORDS:
        return tags[0]
    return None


def _rewrite_pass(xml: str, deadline: float) -> str:
    chunks: List[str] = []
    position = 0
    search_from = 0
    while True:
        if time.monotonic() > deadline:
            raise TemplateError(
                ErrorCode.SYNTAX_ERROR,
                "table row rewrite timed out",
                suggestions=["Simplify the tables holding {{range}} rows"],
            )
        opening = ROW_OPEN_RE.search(xml, search_from)
        if opening is None:
            break
        close_at = xml.find(ROW_CLOSE, opening.end())
        if close_at < 0:
            break
        nested = ROW_OPEN_RE.search(xml, opening.end(), close_at)
        if nested is not None:
            search_from = nested.start()
            continue

        row_end = close_at + len(ROW_CLOSE)
        marker = row_marker(xml[opening.start() : row_end])
        if marker is not None:
            chunks.append(xml[position : opening.start()])
            chunks.append(marker)
            position = row_end
        search_from = row_end

    if not chunks:
        return xml
    chunks.append(xml[position:])
    return "".join(chunks)


def rewrite_row_ranges(xml: str, timeout: float = DEFAULT_ROW_REWRITE_TIMEOUT) -> str:
    """Replace every row whose only placeholder is a block marker by that marker.

    Passes repeat until the part stops changing. ``timeout`` bounds the total
    wall time in seconds.
    """
    deadline = time.monotonic() + timeout
    passes = 0
    while True:
        rewritten = _rewrite_pass(xml, deadline)
        passes += 1
        if rewritten == xml:
            break
        xml = rewritten
    LOGGER.debug("Row rewrite finished after %d pass(es)", passes)
    return xml
