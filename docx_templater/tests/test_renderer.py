"""Tests for post-processing, watermarks and per-part rendering."""
import unittest

from docx_templater.functions.registry import default_functions
from docx_templater.model.errors import ErrorCode, TemplateError
from docx_templater.model.part_model import Part, PartRole
from docx_templater.model.render_options import RenderOptions
from docx_templater.renderer.part_renderer import PartRenderer, prepare_xml
from docx_templater.renderer.post_fixer import fix_rendered_xml
from docx_templater.renderer.watermark import render_watermarks, replace_watermark, watermarks
from docx_templater.tests.docx_factory import document_xml, header_xml, paragraph, watermark


class PostFixerTest(unittest.TestCase):
    def test_cleans_execution_leftovers(self) -> None:
        xml = (
            "<w:p><w:r><w:t>a<no value>b</w:t></w:r>"
            "<w:r><w:t></w:t></w:r>"
            '<w:r><w:t xml:space="preserve"></w:t></w:r>'
            "<w:r><w:t><w:drawing>img</w:drawing></w:t></w:r></w:p>"
        )
        fixed = fix_rendered_xml(xml)
        self.assertEqual(fixed, "<w:p><w:r><w:t>ab</w:t></w:r><w:r><w:drawing>img</w:drawing></w:r></w:p>")
        self.assertEqual(fix_rendered_xml(fixed), fixed)

    def test_keeps_runs_with_properties(self) -> None:
        xml = "<w:r><w:rPr><w:b/></w:rPr><w:t>x</w:t></w:r>"
        self.assertEqual(fix_rendered_xml(xml), xml)


class WatermarkTest(unittest.TestCase):
    def setUp(self) -> None:
        self.xml = header_xml(watermark("DRAFT") + watermark("{{.Status}}"))

    def test_lists_watermark_texts(self) -> None:
        self.assertEqual(watermarks(self.xml), ["DRAFT", "{{.Status}}"])

    def test_replace_matches_exact_text_only(self) -> None:
        replaced = replace_watermark(self.xml, "DRAFT", "FINAL")
        self.assertEqual(watermarks(replaced), ["FINAL", "{{.Status}}"])
        self.assertEqual(replace_watermark(self.xml, "DRA", "X"), self.xml)

    def test_render_only_touches_templated_text(self) -> None:
        calls = []

        def render(text: str) -> str:
            calls.append(text)
            return "APPROVED"

        rendered = render_watermarks(self.xml, render)
        self.assertEqual(calls, ["{{.Status}}"])
        self.assertEqual(watermarks(rendered), ["DRAFT", "APPROVED"])

    def test_entities_inside_watermark_tags_are_decoded(self) -> None:
        calls = []

        def render(text: str) -> str:
            calls.append(text)
            return "DRAFT"

        xml = header_xml(watermark("{{.Status | default &quot;DRAFT&quot;}}"))
        rendered = render_watermarks(xml, render)
        self.assertEqual(calls, ['{{.Status | default "DRAFT"}}'])
        self.assertEqual(watermarks(rendered), ["DRAFT"])

    def test_only_listed_sources_are_rendered(self) -> None:
        rendered = render_watermarks(self.xml, lambda text: "X", sources=["{{.Other}}"])
        self.assertEqual(rendered, self.xml)


class PartRendererTest(unittest.TestCase):
    def setUp(self) -> None:
        self.renderer = PartRenderer(default_functions().as_dict(), RenderOptions())

    def body(self, *paragraphs: str) -> Part:
        xml = document_xml("".join(paragraphs))
        return Part(path="word/document.xml", data=xml.encode("utf-8"), role=PartRole.BODY)

    def test_renders_fragmented_placeholder(self) -> None:
        part = self.body(paragraph("Hello {{.Na", "me}}!"))
        rendered = self.renderer.render(part, {"Name": "Ada"}).decode("utf-8")
        self.assertIn("Hello Ada!", rendered)
        self.assertNotIn("{{", rendered)

    def test_missing_values_disappear(self) -> None:
        rendered = self.renderer.render(self.body(paragraph("[{{.Missing}}]")), {}).decode("utf-8")
        self.assertIn("<w:t>[]</w:t>", rendered)
        self.assertNotIn("no value", rendered)

    def test_prepare_decodes_entities_in_tags_only(self) -> None:
        xml = paragraph("&quot;{{.A | default &quot;x&quot;}}")
        prepared = prepare_xml(xml)
        self.assertIn('&quot;{{.A | default "x"}}', prepared)

    def test_undefined_function_maps_to_invalid_function(self) -> None:
        with self.assertRaises(TemplateError) as ctx:
            self.renderer.render(self.body(paragraph("{{shout .Name}}")), {"Name": "x"})
        error = ctx.exception
        self.assertEqual(error.code, ErrorCode.INVALID_FUNCTION)
        self.assertEqual(error.location, "document body")
        self.assertEqual(error.placeholder, "{{shout .Name}}")

    def test_parse_errors_map_to_syntax_error(self) -> None:
        with self.assertRaises(TemplateError) as ctx:
            self.renderer.render(self.body(paragraph("{{if .A}}open")), {"A": True})
        self.assertEqual(ctx.exception.code, ErrorCode.SYNTAX_ERROR)
        self.assertIn("unexpected EOF", ctx.exception.message)

    def test_execution_errors_keep_the_cause(self) -> None:
        with self.assertRaises(TemplateError) as ctx:
            self.renderer.render(self.body(paragraph("{{.Name.First}}")), {"Name": "Ada"})
        error = ctx.exception
        self.assertEqual(error.code, ErrorCode.EXECUTION_ERROR)
        self.assertEqual(error.placeholder, "{{.Name.First}}")
        self.assertIsNotNone(error.cause)
        self.assertIn("can't evaluate field First", str(error))

    def test_property_parts_are_rendered_verbatim(self) -> None:
        xml = "<cp:coreProperties><dc:title>{{.Title}}</dc:title></cp:coreProperties>"
        part = Part(path="docProps/core.xml", data=xml.encode("utf-8"), role=PartRole.PROPS)
        rendered = self.renderer.render(part, {"Title": "Report"}).decode("utf-8")
        self.assertEqual(rendered, "<cp:coreProperties><dc:title>Report</dc:title></cp:coreProperties>")

    def test_header_watermarks_follow_options(self) -> None:
        xml = header_xml(watermark("{{.Status}}"))
        part = Part(path="word/header1.xml", data=xml.encode("utf-8"), role=PartRole.HEADER)
        rendered = self.renderer.render(part, {"Status": "FINAL"}).decode("utf-8")
        self.assertEqual(watermarks(rendered), ["FINAL"])

    def test_placeholders_from_data_are_not_executed_in_watermarks(self) -> None:
        xml = header_xml(watermark("{{.Mark}}"))
        part = Part(path="word/header1.xml", data=xml.encode("utf-8"), role=PartRole.HEADER)
        rendered = self.renderer.render(part, {"Mark": "{{oops}}"}).decode("utf-8")
        self.assertEqual(watermarks(rendered), ["{{oops}}"])

    def test_footer_watermark_with_quoted_default(self) -> None:
        xml = header_xml(watermark("{{.Status | default &quot;DRAFT&quot;}}"))
        part = Part(path="word/footer1.xml", data=xml.encode("utf-8"), role=PartRole.FOOTER)
        rendered = self.renderer.render(part, {}).decode("utf-8")
        self.assertEqual(watermarks(rendered), ["DRAFT"])
