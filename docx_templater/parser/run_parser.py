"""Parse WordprocessingML paragraphs into runs for plain-text extraction."""
from __future__ import annotations

from typing import List, Optional
from xml.etree import ElementTree as ET

from docx_templater.model.elements import (
    BreakChild,
    DrawingChild,
    FieldCharChild,
    NoteReferenceChild,
    Paragraph,
    RawChild,
    Run,
    RunChild,
    TabChild,
    TextChild,
)
from docx_templater.utils.logger import get_logger
from docx_templater.utils.xml_utils import Namespaces, parse_xml, strip_namespace

LOGGER = get_logger(__name__)

_W = "{" + Namespaces.WORD["w"] + "}"
_XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"
_R_EMBED = "{http://schemas.openxmlformats.org/officeDocument/2006/relationships}embed"

# Containers whose runs belong to the enclosing paragraph.
_RUN_CONTAINERS = {"hyperlink", "smartTag", "ins", "fldSimple", "customXml", "sdtContent", "sdt"}


class RunParser:
    """Collects paragraphs in document order from body, header or footer XML."""

    def parse(self, payload: bytes) -> List[Paragraph]:
        root = parse_xml(payload).getroot()
        return [self._parse_paragraph(paragraph_el) for paragraph_el in root.iter(f"{_W}p")]

    def _parse_paragraph(self, paragraph_el: ET.Element) -> Paragraph:
        style_el = paragraph_el.find("w:pPr/w:pStyle", Namespaces.WORD)
        paragraph = Paragraph(style_id=style_el.get(f"{_W}val") if style_el is not None else None)
        self._collect_runs(paragraph_el, paragraph.runs)
        return paragraph

    def _collect_runs(self, parent: ET.Element, runs: List[Run]) -> None:
        for child in parent:
            tag = strip_namespace(child.tag)
            if tag == "r":
                runs.append(self._parse_run(child))
            elif tag in _RUN_CONTAINERS:
                self._collect_runs(child, runs)

    def _parse_run(self, run_el: ET.Element) -> Run:
        style_el = run_el.find("w:rPr/w:rStyle", Namespaces.WORD)
        run = Run(style_id=style_el.get(f"{_W}val") if style_el is not None else None)
        for child in run_el:
            parsed = self._parse_child(child)
            if parsed is not None:
                run.children.append(parsed)
        return run

    def _parse_child(self, child: ET.Element) -> Optional[RunChild]:
        tag = strip_namespace(child.tag)
        if tag == "rPr":
            return None
        if tag == "t":
            return TextChild(text=child.text or "", preserve_space=child.get(_XML_SPACE) == "preserve")
        if tag in ("br", "cr"):
            return BreakChild(kind=child.get(f"{_W}type"))
        if tag == "tab":
            return TabChild()
        if tag == "drawing":
            blip = next((el for el in child.iter() if strip_namespace(el.tag) == "blip"), None)
            doc_pr = next((el for el in child.iter() if strip_namespace(el.tag) == "docPr"), None)
            return DrawingChild(
                r_id=blip.get(_R_EMBED) if blip is not None else None,
                description=doc_pr.get("descr") if doc_pr is not None else None,
            )
        if tag == "fldChar":
            return FieldCharChild(kind=child.get(f"{_W}fldCharType", "begin"))
        if tag in ("footnoteReference", "endnoteReference"):
            return NoteReferenceChild(note_type=tag[: -len("Reference")], note_id=int(child.get(f"{_W}id", "0")))
        LOGGER.debug("Keeping unmodelled run child: %s", tag)
        return RawChild(tag=tag)


def extract_text(payload: bytes) -> str:
    """Plain text of a part: tabs as ``\\t``, breaks as ``\\n``, one line per paragraph."""
    return "\n".join(paragraph.plain_text() for paragraph in RunParser().parse(payload))
