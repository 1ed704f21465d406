"""Entry-point for the DOCX templating pipeline."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

from docx_templater.model.errors import TemplateError
from docx_templater.model.render_options import DEFAULT_ROW_REWRITE_TIMEOUT, RenderOptions
from docx_templater.renderer.document_template import DocxTemplate, load_template
from docx_templater.validation.validator import ValidationResult
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)


def render_docx(template_path: str, data: Any, output_path: str, options: Optional[RenderOptions] = None) -> None:
    """Load ``template_path``, render it with ``data`` and write ``output_path``."""
    template = DocxTemplate.from_file(Path(template_path).resolve(), options)
    LOGGER.info("Rendering %s", Path(template_path).name)
    template.render(data).save(Path(output_path))


def validate_docx(template_path: str, data: Any = None, options: Optional[RenderOptions] = None) -> ValidationResult:
    """Check the template, and the data against it when ``data`` is given."""
    template = DocxTemplate.from_file(Path(template_path).resolve(), options)
    result = template.validate()
    if data is not None:
        result.extend(template.validate_data(data).diagnostics)
    return result


def _load_data(path: Optional[str]) -> Any:
    if path is None:
        return None
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as handle:
        return json.load(handle)


def _options(args: argparse.Namespace) -> RenderOptions:
    return RenderOptions(
        strict_math=args.strict_math,
        row_rewrite_timeout=args.row_timeout,
        escape_values=not args.raw_values,
        process_watermarks=not args.skip_watermarks,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docx-templater", description="Fill DOCX templates written with {{ }} placeholders")
    parser.add_argument("--strict-math", action="store_true", help="Fail on division by zero instead of printing 0")
    parser.add_argument(
        "--row-timeout",
        type=float,
        default=DEFAULT_ROW_REWRITE_TIMEOUT,
        help="Seconds allowed for rewriting table row loops",
    )
    parser.add_argument("--raw-values", action="store_true", help="Do not XML-escape strings in the data")
    parser.add_argument("--skip-watermarks", action="store_true", help="Leave watermark text untouched")
    commands = parser.add_subparsers(dest="command", required=True)

    render = commands.add_parser("render", help="Render a template with JSON data")
    render.add_argument("template", help="Path to the .docx template")
    render.add_argument("data", help="JSON file with the template data, or - for stdin")
    render.add_argument("-o", "--output", help="Where to write the rendered document")

    validate = commands.add_parser("validate", help="Report template problems")
    validate.add_argument("template", help="Path to the .docx template")
    validate.add_argument("--data", help="Also check that this JSON file provides every field")

    placeholders = commands.add_parser("placeholders", help="List the placeholders of a template")
    placeholders.add_argument("template", help="Path to the .docx template")

    text = commands.add_parser("text", help="Print the plain text of the document body")
    text.add_argument("template", help="Path to the .docx template")
    return parser


def cli(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    options = _options(args)
    try:
        if args.command == "render":
            output = args.output or str(Path(args.template).with_name(Path(args.template).stem + "-rendered.docx"))
            render_docx(args.template, _load_data(args.data), output, options)
            print(output)
            return 0
        if args.command == "validate":
            result = validate_docx(args.template, _load_data(args.data), options)
            lines: List[str] = [f"{item.code.value} {item}" for item in result.diagnostics]
            print("\n".join(lines) if lines else "OK")
            return 0 if result.valid else 1
        template = load_template(args.template, options)
        if args.command == "placeholders":
            print("\n".join(template.placeholders()))
        else:
            print(template.get_text())
        return 0
    except TemplateError as exc:
        LOGGER.error("%s", exc)
        print(exc.describe(), file=sys.stderr)
        return 2
    except (OSError, json.JSONDecodeError) as exc:
        LOGGER.error("Cannot read template data: %s", exc)
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(cli())
