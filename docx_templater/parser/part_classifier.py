"""Decide which package parts take part in templating."""
from __future__ import annotations

import re

from docx_templater.model.part_model import PartRole

DOCUMENT_XML_PATH = "word/document.xml"
FOOTNOTES_XML_PATH = "word/footnotes.xml"
ENDNOTES_XML_PATH = "word/endnotes.xml"
CORE_PROPS_PATH = "docProps/core.xml"
APP_PROPS_PATH = "docProps/app.xml"

_HEADER_RE = re.compile(r"^word/header[0-9]+\.xml$")
_FOOTER_RE = re.compile(r"^word/footer[0-9]+\.xml$")

_EXACT_ROLES = {
    DOCUMENT_XML_PATH: PartRole.BODY,
    FOOTNOTES_XML_PATH: PartRole.FOOTNOTES,
    ENDNOTES_XML_PATH: PartRole.ENDNOTES,
    CORE_PROPS_PATH: PartRole.PROPS,
    APP_PROPS_PATH: PartRole.PROPS,
}


def classify_part(path: str) -> PartRole:
    """Return the templating role of the part stored at ``path``."""
    role = _EXACT_ROLES.get(path)
    if role is not None:
        return role
    if _HEADER_RE.match(path):
        return PartRole.HEADER
    if _FOOTER_RE.match(path):
        return PartRole.FOOTER
    if path.endswith(".rels"):
        return PartRole.RELATIONSHIP
    return PartRole.OTHER


def is_header_or_footer(path: str) -> bool:
    return classify_part(path) in (PartRole.HEADER, PartRole.FOOTER)
