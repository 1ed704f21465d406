"""Load a DOCX template, render it with data and save the result."""
from __future__ import annotations

from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Mapping, Optional, Union

from docx_templater.data.escaping import escape_data
from docx_templater.data.normalizer import normalize_data
from docx_templater.functions.registry import FunctionRegistry, default_functions
from docx_templater.functions.richtext import make_link
from docx_templater.model.errors import TemplateError
from docx_templater.model.part_model import Part
from docx_templater.model.render_options import RenderOptions
from docx_templater.parser.docx_loader import DocxPackage
from docx_templater.parser.part_classifier import is_header_or_footer
from docx_templater.parser.rels_parser import Relationships
from docx_templater.parser.run_parser import extract_text
from docx_templater.renderer.hyperlinks import HyperlinkRegistry, hyperlink_sidecars
from docx_templater.renderer.part_renderer import PartRenderer, prepare_xml
from docx_templater.renderer.watermark import replace_watermark, watermarks
from docx_templater.tags.tag_finder import find_all_tags, unique_tags
from docx_templater.utils.logger import get_logger
from docx_templater.validation.validator import ValidationResult, Validator

LOGGER = get_logger(__name__)


class RenderedDocument:
    """Output of :meth:`DocxTemplate.render`; nothing is written until :meth:`save`."""

    def __init__(self, package: DocxPackage) -> None:
        self.package = package

    def part(self, name: str) -> Optional[bytes]:
        return self.package.get(name)

    def get_text(self) -> str:
        return extract_text(self.package.require_document_xml())

    def to_bytes(self) -> bytes:
        return self.package.to_bytes()

    def save(self, target: Union[str, Path, BinaryIO]) -> None:
        self.package.write(target)
        LOGGER.info("Saved rendered document to %s", target if isinstance(target, (str, Path)) else "stream")


class DocxTemplate:
    """A DOCX file whose parts hold ``{{ … }}`` placeholders.

    >>> template = DocxTemplate.from_file("invoice.docx")
    >>> template.render({"Customer": "Ada"}).save("out.docx")

    The template itself is never modified by rendering, so one instance can
    render any number of documents.
    """

    def __init__(self, package: DocxPackage, options: Optional[RenderOptions] = None) -> None:
        self._package = package
        self.options = options or RenderOptions()
        self._custom = FunctionRegistry()

    @classmethod
    def from_file(cls, path: Union[str, Path], options: Optional[RenderOptions] = None) -> "DocxTemplate":
        return cls(DocxPackage.load(path), options)

    @classmethod
    def from_bytes(cls, payload: bytes, options: Optional[RenderOptions] = None) -> "DocxTemplate":
        return cls(DocxPackage.from_bytes(payload), options)

    # ------------------------------------------------------------------
    # Helpers
    def register_function(self, name: str, function: Callable) -> None:
        """Add or override a helper; custom helpers win over the built-in ones."""
        self._custom.register(name, function)

    def register_functions(self, functions: Mapping[str, Callable]) -> None:
        self._custom.update(functions)

    def functions(self, hyperlinks: Optional[HyperlinkRegistry] = None) -> FunctionRegistry:
        link = make_link(hyperlinks.register) if hyperlinks is not None else None
        registry = default_functions(strict_math=self.options.strict_math, link=link)
        registry.update(self._custom.as_dict())
        return registry

    # ------------------------------------------------------------------
    # Inspection
    def processable_parts(self) -> List[Part]:
        return [part for part in self._package.iter_parts() if part.role.processable]

    def placeholders(self) -> List[str]:
        """Every distinct placeholder, after split tags have been merged."""
        tags: List[str] = []
        for part in self.processable_parts():
            tags.extend(find_all_tags(prepare_xml(part.text(), timeout=self.options.row_rewrite_timeout)))
        return unique_tags(tags)

    def get_text(self) -> str:
        return extract_text(self._package.require_document_xml())

    def watermarks(self) -> List[str]:
        texts: List[str] = []
        for part in self.processable_parts():
            if is_header_or_footer(part.path):
                texts.extend(watermarks(part.text()))
        return texts

    def replace_watermark(self, old: str, new: str) -> None:
        """Swap a literal watermark text; call before :meth:`render`."""
        replacements: Dict[str, bytes] = {}
        for part in self.processable_parts():
            if is_header_or_footer(part.path):
                replacements[part.path] = replace_watermark(part.text(), old, new).encode("utf-8")
        self._package = self._package.with_parts(replacements)

    def validate(self) -> ValidationResult:
        return Validator(self.functions().as_dict(), self.options).validate(self.processable_parts())

    def validate_data(self, data: Any) -> ValidationResult:
        return Validator(self.functions().as_dict(), self.options).validate_data(self.processable_parts(), data)

    # ------------------------------------------------------------------
    # Rendering
    def render(self, data: Any) -> RenderedDocument:
        """Render every processable part with ``data``.

        Raises :class:`TemplateError` on the first failure; no output exists
        in that case.
        """
        tree = normalize_data(data)
        if self.options.escape_values:
            tree = escape_data(tree)

        parts = self.processable_parts()
        hyperlinks = HyperlinkRegistry()
        hyperlinks.reserve(Relationships.from_package(self._package.raw_parts).ids_for(part.path for part in parts))
        renderer = PartRenderer(self.functions(hyperlinks).as_dict(), self.options)

        replacements: Dict[str, bytes] = {}
        for part in parts:
            hyperlinks.begin_part(part.path)
            try:
                replacements[part.path] = renderer.render(part, tree)
            except TemplateError as exc:
                if not exc.location:
                    exc.with_location(part.location)
                raise
        hyperlinks.begin_part(None)

        replacements.update(hyperlink_sidecars(self._package.raw_parts, hyperlinks))
        LOGGER.info("Rendered %d parts (%d hyperlinks)", len(parts), len(hyperlinks))
        return RenderedDocument(self._package.with_parts(replacements))


def load_template(source: Union[str, Path, bytes], options: Optional[RenderOptions] = None) -> DocxTemplate:
    if isinstance(source, bytes):
        return DocxTemplate.from_bytes(source, options)
    return DocxTemplate.from_file(source, options)
