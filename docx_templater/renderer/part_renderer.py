"""Template rendering of a single package part."""
from __future__ import annotations

import re
from typing import Any, Callable, Mapping, Optional

from docx_templater.engine.errors import TemplateEngineError, TemplateExecError, TemplateSyntaxError
from docx_templater.engine.template import Template
from docx_templater.model.errors import ErrorCode, TemplateError
from docx_templater.model.part_model import Part, PartRole
from docx_templater.model.render_options import DEFAULT_ROW_REWRITE_TIMEOUT, RenderOptions
from docx_templater.renderer.post_fixer import fix_rendered_xml
from docx_templater.renderer.watermark import render_watermarks, templated_watermarks
from docx_templater.tags.defragmenter import defragment
from docx_templater.tags.entities import decode_entities_in_tags
from docx_templater.tags.row_ranges import rewrite_row_ranges
from docx_templater.tags.tag_finder import find_all_tags
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

_UNDEFINED_FUNCTION_RE = re.compile(r'function "([^"]+)" not defined')
_QUOTED_FRAGMENT_RE = re.compile(r'"([^"]*)"')


def prepare_xml(xml: str, timeout: float = DEFAULT_ROW_REWRITE_TIMEOUT) -> str:
    """Make part XML parseable as a template: merge split tags, lift row markers, decode entities."""
    xml = defragment(xml)
    xml = rewrite_row_ranges(xml, timeout=timeout)
    return decode_entities_in_tags(xml)


def undefined_function(exc: TemplateEngineError) -> Optional[str]:
    match = _UNDEFINED_FUNCTION_RE.search(exc.message)
    return match.group(1) if match else None


def _placeholder_for(source: str, exc: TemplateEngineError) -> str:
    """Best guess at the placeholder an engine error points to."""
    needle = ""
    if isinstance(exc, TemplateExecError):
        needle = exc.context.rstrip(".")
    else:
        name = undefined_function(exc)
        if name:
            needle = name
        else:
            match = _QUOTED_FRAGMENT_RE.search(exc.message)
            needle = match.group(1) if match else ""
    if not needle:
        return ""
    for tag in find_all_tags(source):
        if needle in tag:
            return tag
    return ""


def to_template_error(exc: TemplateEngineError, location: str, source: str = "") -> TemplateError:
    """Translate an engine failure into a :class:`TemplateError` for ``location``."""
    placeholder = _placeholder_for(source, exc) if source else ""
    if isinstance(exc, TemplateSyntaxError):
        name = undefined_function(exc)
        if name:
            error = TemplateError.invalid_function(name)
            error.message = str(exc)
        else:
            error = TemplateError.syntax(str(exc))
    else:
        error = TemplateError(
            ErrorCode.EXECUTION_ERROR,
            str(exc),
            suggestions=["Check that the data has the shape the template expects"],
        )
    error.line_number = exc.line
    error.with_location(location).with_placeholder(placeholder).with_cause(exc)
    return error


class PartRenderer:
    """Runs the per-part pipeline with one set of helpers and options."""

    def __init__(self, funcs: Mapping[str, Callable], options: Optional[RenderOptions] = None) -> None:
        self.funcs = funcs
        self.options = options or RenderOptions()

    def render_text(self, source: str, data: Any, location: str) -> str:
        try:
            return Template(self.options.template_name, self.funcs).parse(source).execute(data)
        except TemplateEngineError as exc:
            raise to_template_error(exc, location, source) from exc

    def render(self, part: Part, data: Any) -> bytes:
        location = part.location
        xml = part.text()
        if part.role is PartRole.PROPS:
            # Property parts have no runs to defragment.
            prepared = decode_entities_in_tags(xml)
        else:
            prepared = prepare_xml(xml, timeout=self.options.row_rewrite_timeout)
        LOGGER.debug("Rendering %s (%s)", part.path, location)
        rendered = fix_rendered_xml(self.render_text(prepared, data, location))
        if self.options.process_watermarks and part.role in (PartRole.HEADER, PartRole.FOOTER):
            sources = set(templated_watermarks(xml))
            rendered = render_watermarks(rendered, lambda text: self.render_text(text, data, location), sources)
        return rendered.encode("utf-8")
