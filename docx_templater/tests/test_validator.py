"""Tests for template and data validation."""
import unittest

from docx_templater.functions.registry import default_functions
from docx_templater.model.errors import ErrorCode
from docx_templater.model.part_model import Part, PartRole
from docx_templater.validation.validator import Diagnostic, ValidationResult, Validator
from docx_templater.tests.docx_factory import document_xml, header_xml, paragraph


def body_part(*paragraphs: str) -> Part:
    return Part(path="word/document.xml", data=document_xml("".join(paragraphs)).encode("utf-8"), role=PartRole.BODY)


def header_part(*paragraphs: str) -> Part:
    return Part(path="word/header1.xml", data=header_xml("".join(paragraphs)).encode("utf-8"), role=PartRole.HEADER)


class DiagnosticTest(unittest.TestCase):
    def test_field_and_suggestions_are_independent(self) -> None:
        first = Diagnostic(code=ErrorCode.UNDEFINED_FIELD, location="header", message="m", field="Name")
        second = Diagnostic(code=ErrorCode.UNDEFINED_FIELD, location="header", message="m")
        first.suggestions.append("add it")
        self.assertEqual(first.field, "Name")
        self.assertEqual(second.field, "")
        self.assertEqual(second.suggestions, [])
        self.assertEqual(str(first), "header: m")

    def test_results_start_empty(self) -> None:
        self.assertEqual(ValidationResult().diagnostics, [])
        self.assertIsNot(ValidationResult().diagnostics, ValidationResult().diagnostics)


class TemplateValidationTest(unittest.TestCase):
    """Structural checks of template parts."""

    def setUp(self) -> None:
        self.validator = Validator(default_functions().as_dict())

    def test_clean_template_is_valid(self) -> None:
        result = self.validator.validate([body_part(paragraph("{{if .A}}{{.B}}{{end}}"))])
        self.assertTrue(result.valid)
        self.assertFalse(result.has_errors())

    def test_extra_end_reports_one_unmatched_end(self) -> None:
        result = self.validator.validate([body_part(paragraph("{{if .A}}x{{end}}"), paragraph("{{end}}"))])
        self.assertEqual(len(result.diagnostics), 1)
        diagnostic = result.diagnostics[0]
        self.assertEqual(diagnostic.code, ErrorCode.UNMATCHED_END)
        self.assertEqual(diagnostic.location, "document body")
        self.assertEqual(diagnostic.placeholder, "{{end}}")

    def test_missing_closing_braces(self) -> None:
        result = self.validator.validate([body_part(paragraph("Dear {{.Name"))])
        diagnostics = result.by_code(ErrorCode.UNCLOSED_TAG)
        self.assertEqual(len(diagnostics), 1)
        self.assertEqual(diagnostics[0].placeholder, "{{...}}")

    def test_missing_end_reports_unclosed_block(self) -> None:
        result = self.validator.validate([body_part(paragraph("{{range .L}}{{if .X}}"), paragraph("row{{end}}"))])
        diagnostics = result.by_code(ErrorCode.UNCLOSED_BLOCK)
        self.assertEqual(len(diagnostics), 1)
        self.assertIn("missing 1 {{end}}", diagnostics[0].message)

    def test_unknown_function(self) -> None:
        result = self.validator.validate([body_part(paragraph("{{shout .Name}}"))])
        self.assertEqual([item.code for item in result.diagnostics], [ErrorCode.INVALID_FUNCTION])
        self.assertEqual(result.diagnostics[0].placeholder, "{{shout .Name}}")

    def test_custom_functions_are_known(self) -> None:
        funcs = default_functions().as_dict()
        funcs["shout"] = str.upper
        result = Validator(funcs).validate([body_part(paragraph("{{shout .Name}}"))])
        self.assertTrue(result.valid)

    def test_problems_are_grouped_by_part(self) -> None:
        result = self.validator.validate(
            [body_part(paragraph("{{.A}}")), header_part(paragraph("{{end}}"))]
        )
        self.assertEqual(result.by_location("document body"), [])
        self.assertEqual([item.code for item in result.by_location("header")], [ErrorCode.UNMATCHED_END])

    def test_relationship_parts_are_ignored(self) -> None:
        rels = Part(path="word/_rels/document.xml.rels", data=b"{{end}}", role=PartRole.RELATIONSHIP)
        self.assertTrue(self.validator.validate([rels]).valid)


class DataValidationTest(unittest.TestCase):
    """Checks of data against the fields a template reads."""

    def setUp(self) -> None:
        self.validator = Validator(default_functions().as_dict())
        self.parts = [
            body_part(
                paragraph("{{.Customer}}"),
                paragraph("{{range .Items}}{{.Name}}{{end}}"),
            )
        ]

    def test_complete_data_is_valid(self) -> None:
        data = {"Customer": "Ada", "Items": [{"Name": "Pen"}]}
        self.assertTrue(self.validator.validate_data(self.parts, data).valid)

    def test_missing_top_level_field(self) -> None:
        result = self.validator.validate_data(self.parts, {"Items": []})
        self.assertEqual([item.field for item in result.diagnostics], ["Customer"])
        self.assertEqual(result.diagnostics[0].code, ErrorCode.UNDEFINED_FIELD)
        self.assertEqual(result.diagnostics[0].location, "document body")

    def test_every_range_element_must_provide_the_field(self) -> None:
        data = {"Customer": "Ada", "Items": [{"Name": "Pen"}, {"Price": 2}]}
        result = self.validator.validate_data(self.parts, data)
        self.assertEqual([item.field for item in result.diagnostics], ["Items[].Name"])

    def test_unparseable_parts_are_skipped(self) -> None:
        parts = [body_part(paragraph("{{if .A}}"))]
        self.assertTrue(self.validator.validate_data(parts, {}).valid)
