"""Static checks of template parts, and of data against the fields they read."""
from __future__ import annotations

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Callable, Iterable, List, Mapping, Optional

from docx_templater.data.normalizer import normalize_data
from docx_templater.engine.analysis import FieldRef, field_references, resolves
from docx_templater.engine.errors import TemplateSyntaxError
from docx_templater.engine.parser import parse
from docx_templater.model.errors import ErrorCode, TemplateError
from docx_templater.model.part_model import Part, PartRole
from docx_templater.model.render_options import RenderOptions
from docx_templater.renderer.part_renderer import prepare_xml, to_template_error
from docx_templater.tags.tag_finder import BLOCK_START_KEYWORDS, find_all_tags, tag_keyword
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class Diagnostic:
    """One problem found in a template."""

    code: ErrorCode
    location: str
    message: str
    placeholder: str = ""
    field: str = ""
    suggestions: List[str] = dataclass_field(default_factory=list)

    @classmethod
    def from_error(cls, error: TemplateError, field_name: str = "") -> "Diagnostic":
        return cls(
            code=error.code,
            location=error.location,
            message=error.message,
            placeholder=error.placeholder,
            field=field_name,
            suggestions=list(error.suggestions),
        )

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


@dataclass(slots=True)
class ValidationResult:
    diagnostics: List[Diagnostic] = dataclass_field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.diagnostics

    def has_errors(self) -> bool:
        return bool(self.diagnostics)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        self.diagnostics.extend(diagnostics)

    def by_location(self, location: str) -> List[Diagnostic]:
        return [item for item in self.diagnostics if item.location == location]

    def by_code(self, code: ErrorCode) -> List[Diagnostic]:
        return [item for item in self.diagnostics if item.code == code]

    def __str__(self) -> str:
        return "; ".join(str(item) for item in self.diagnostics)


def _prepared(part: Part, options: RenderOptions) -> str:
    text = part.text()
    if part.role is PartRole.PROPS:
        return text
    return prepare_xml(text, timeout=options.row_rewrite_timeout)


class Validator:
    """Finds template defects without executing anything.

    >>> result = Validator(functions).validate(parts)
    >>> result.by_code(ErrorCode.UNMATCHED_END)
    """

    def __init__(self, funcs: Mapping[str, Callable], options: Optional[RenderOptions] = None) -> None:
        self.funcs = funcs
        self.options = options or RenderOptions()

    def validate(self, parts: Iterable[Part]) -> ValidationResult:
        result = ValidationResult()
        for part in parts:
            if not part.role.processable:
                continue
            try:
                source = _prepared(part, self.options)
            except TemplateError as exc:
                result.extend([Diagnostic.from_error(exc.with_location(part.location))])
                continue
            result.extend(self.check_source(source, part.location))
        LOGGER.debug("Validation found %d problem(s)", len(result.diagnostics))
        return result

    def check_source(self, source: str, location: str) -> List[Diagnostic]:
        diagnostics = self._check_delimiters(source, location)
        diagnostics.extend(self._check_blocks(source, location))
        if not diagnostics:
            diagnostics.extend(self._check_parse(source, location))
        return diagnostics

    def _check_delimiters(self, source: str, location: str) -> List[Diagnostic]:
        opened, closed = source.count("{{"), source.count("}}")
        if opened == closed:
            return []
        error = TemplateError.unclosed_tag(location)
        error.message = f"unclosed template tag detected ({opened} {{{{ vs {closed} }}}})"
        return [Diagnostic.from_error(error.with_placeholder("{{...}}"))]

    def _check_blocks(self, source: str, location: str) -> List[Diagnostic]:
        diagnostics: List[Diagnostic] = []
        depth = 0
        for tag in find_all_tags(source):
            keyword = tag_keyword(tag)
            if keyword in BLOCK_START_KEYWORDS:
                depth += 1
            elif keyword == "end":
                depth -= 1
                if depth < 0:
                    diagnostics.append(Diagnostic.from_error(TemplateError.unmatched_end(tag, location)))
                    depth = 0
        if depth > 0:
            diagnostics.append(
                Diagnostic(
                    code=ErrorCode.UNCLOSED_BLOCK,
                    location=location,
                    message=f"missing {depth} {{{{end}}}} tag(s)",
                    suggestions=["Close every {{if}}, {{range}}, {{with}}, {{block}} and {{define}} with {{end}}"],
                )
            )
        return diagnostics

    def _check_parse(self, source: str, location: str) -> List[Diagnostic]:
        try:
            parse(self.options.template_name, source, self.funcs)
        except TemplateSyntaxError as exc:
            return [Diagnostic.from_error(to_template_error(exc, location, source))]
        return []

    def validate_data(self, parts: Iterable[Part], data: Any) -> ValidationResult:
        """Report every field the templates read that ``data`` does not provide.

        Inside ``range`` every element must provide the field. Parts that do
        not parse are skipped; :meth:`validate` reports them.
        """
        result = ValidationResult()
        tree = normalize_data(data)
        for part in parts:
            if not part.role.processable:
                continue
            try:
                trees = parse(self.options.template_name, _prepared(part, self.options), self.funcs)
            except (TemplateSyntaxError, TemplateError) as exc:
                LOGGER.debug("Skipping data check of %s: %s", part.path, exc)
                continue
            for ref in field_references(trees, self.options.template_name):
                if not resolves(tree, ref.path):
                    result.extend([self._undefined(ref, part.location)])
        return result

    @staticmethod
    def _undefined(ref: FieldRef, location: str) -> Diagnostic:
        error = TemplateError.undefined_field(ref.dotted, location)
        error.placeholder = "{{" + ref.source + "}}"
        return Diagnostic.from_error(error, field_name=ref.dotted)

