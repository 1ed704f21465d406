"""Tests for placeholder discovery, defragmentation, row lifting and entity decoding."""
import re
import unittest

from docx_templater.model.errors import ErrorCode, TemplateError
from docx_templater.tags.defragmenter import defragment, has_incomplete_open, is_balanced
from docx_templater.tags.entities import decode_entities_in_tags
from docx_templater.tags.row_ranges import rewrite_row_ranges, row_marker
from docx_templater.tags.tag_finder import extract_tag_content, find_all_tags, tag_keyword, unique_tags
from docx_templater.tests.docx_factory import paragraph, table, table_row

TEXT_RE = re.compile(r"<w:t(?:\s[^>]*)?>(.*?)</w:t>", re.DOTALL)

FRAGMENT_LAYOUTS = [
    ("{{- .A", " -}}"),
    ("{", "{.A}", "}"),
    ("{{.A", "", "", "}}"),
    ("}}x {{.", "B}}"),
    ("Hello {{.First", "Name}}!", " and {{.Last}}"),
    ("{{if .Show}}a", "{{el", "se}}b{{end}}"),
]


def visible_text(xml: str) -> str:
    return "".join(TEXT_RE.findall(xml))


class TagFinderTest(unittest.TestCase):
    def test_find_all_tags_in_order(self) -> None:
        text = "<w:t>{{.A}} and {{- .B -}}</w:t><w:t>{{end}}</w:t>"
        self.assertEqual(find_all_tags(text), ["{{.A}}", "{{- .B -}}", "{{end}}"])

    def test_extract_tag_content_strips_trim_markers(self) -> None:
        self.assertEqual(extract_tag_content("{{- .Name -}}"), ".Name")
        self.assertEqual(extract_tag_content("{{ range .Items }}"), "range .Items")

    def test_tag_keyword(self) -> None:
        self.assertEqual(tag_keyword("{{range .Items}}"), "range")
        self.assertEqual(tag_keyword("{{- end}}"), "end")
        self.assertEqual(tag_keyword("{{else if .X}}"), "else")
        self.assertIsNone(tag_keyword("{{.ending}}"))
        self.assertIsNone(tag_keyword("{{iffy .X}}"))

    def test_unique_tags_preserves_first_occurrence(self) -> None:
        self.assertEqual(unique_tags(["{{.B}}", "{{.A}}", "{{.B}}"]), ["{{.B}}", "{{.A}}"])


class DefragmenterTest(unittest.TestCase):
    def test_incomplete_open_detection(self) -> None:
        self.assertTrue(has_incomplete_open("Hello {{.First"))
        self.assertTrue(has_incomplete_open("Hello {"))
        self.assertFalse(has_incomplete_open("Hello {{.First}}"))
        self.assertFalse(has_incomplete_open("plain text"))

    def test_is_balanced(self) -> None:
        self.assertTrue(is_balanced("{{.A}} {{.B}}"))
        self.assertFalse(is_balanced("{{.A"))
        self.assertFalse(is_balanced("no tags"))

    def test_merges_tag_split_across_runs(self) -> None:
        xml = (
            "<w:p><w:r><w:t>Hello {{.First</w:t></w:r>"
            '<w:r><w:rPr><w:b/></w:rPr><w:t xml:space="preserve">Name</w:t></w:r>'
            "<w:r><w:t>}}!</w:t></w:r></w:p>"
        )
        merged = defragment(xml)
        self.assertIn("<w:t>Hello {{.FirstName}}!</w:t>", merged)
        self.assertIn('<w:rPr><w:b/></w:rPr><w:t xml:space="preserve"></w:t>', merged)
        self.assertEqual(merged.count("<w:r>"), 3)

    def test_leaves_complete_tags_alone(self) -> None:
        xml = "<w:p><w:r><w:t>{{.A}}</w:t></w:r><w:r><w:t>{{.B}}</w:t></w:r></w:p>"
        self.assertEqual(defragment(xml), xml)

    def test_unbalanced_tail_is_left_as_is(self) -> None:
        xml = "<w:p><w:r><w:t>{{.Broken</w:t></w:r><w:r><w:t>text</w:t></w:r></w:p>"
        with self.assertLogs("docx_templater.tags.defragmenter", level="WARNING"):
            self.assertEqual(defragment(xml), xml)


    def test_defragment_is_idempotent_and_keeps_text(self) -> None:
        for layout in FRAGMENT_LAYOUTS:
            with self.subTest(layout=layout):
                xml = paragraph(*layout)
                once = defragment(xml)
                self.assertEqual(defragment(once), once)
                self.assertEqual(visible_text(once), visible_text(xml))

    def test_balanced_layouts_end_up_in_one_element(self) -> None:
        for layout in FRAGMENT_LAYOUTS[:3]:
            with self.subTest(layout=layout):
                texts = TEXT_RE.findall(defragment(paragraph(*layout)))
                self.assertEqual([text for text in texts if text], ["".join(layout)])


class RowRangesTest(unittest.TestCase):
    def test_row_marker_requires_a_single_block_tag(self) -> None:
        self.assertEqual(row_marker(table_row("{{range .Items}}")), "{{range .Items}}")
        self.assertEqual(row_marker(table_row("{{end}}")), "{{end}}")
        self.assertIsNone(row_marker(table_row("{{.Name}}")))
        self.assertIsNone(row_marker(table_row("{{range .Items}}", "{{.Name}}")))

    def test_lifts_marker_rows_out_of_the_table(self) -> None:
        xml = "<w:tbl>" + table_row("{{range .Items}}") + table_row("{{.Name}}") + table_row("{{end}}") + "</w:tbl>"
        rewritten = rewrite_row_ranges(xml)
        self.assertEqual(rewritten, "<w:tbl>{{range .Items}}" + table_row("{{.Name}}") + "{{end}}</w:tbl>")

    def test_rows_with_attributes_are_recognised(self) -> None:
        xml = '<w:tbl><w:tr w:rsidR="00A1"><w:tc><w:p><w:r><w:t>{{if .Show}}</w:t></w:r></w:p></w:tc></w:tr></w:tbl>'
        self.assertEqual(rewrite_row_ranges(xml), "<w:tbl>{{if .Show}}</w:tbl>")

    def test_timeout_raises_template_error(self) -> None:
        xml = "<w:tbl>" + table_row("{{range .Items}}") + "</w:tbl>"
        with self.assertRaises(TemplateError) as ctx:
            rewrite_row_ranges(xml, timeout=-1)
        self.assertEqual(ctx.exception.code, ErrorCode.SYNTAX_ERROR)


    def test_rewrite_is_idempotent(self) -> None:
        xml = table(
            table_row("{{range .Items}}"),
            table_row("{{.Name}}"),
            table_row("{{if .Total}}"),
            table_row("{{.Total}}"),
            table_row("{{else}}"),
            table_row("none"),
            table_row("{{end}}"),
            table_row("{{end}}"),
        )
        once = rewrite_row_ranges(xml)
        self.assertEqual(rewrite_row_ranges(once), once)
        self.assertEqual(once.count("<w:tr>"), 3)


class EntityDecodingTest(unittest.TestCase):
    def test_decodes_only_inside_placeholders(self) -> None:
        xml = "<w:t>&quot;{{.X | default &quot;N/A&quot;}}&amp;</w:t>"
        self.assertEqual(decode_entities_in_tags(xml), '<w:t>&quot;{{.X | default "N/A"}}&amp;</w:t>')

    def test_numeric_entities(self) -> None:
        self.assertEqual(decode_entities_in_tags("{{eq .A &#34;x&#34;}}"), '{{eq .A "x"}}')

    def test_text_without_tags_is_unchanged(self) -> None:
        self.assertEqual(decode_entities_in_tags("a &amp; b"), "a &amp; b")

    def test_unclosed_placeholder_stops_decoding(self) -> None:
        xml = "<w:t>{{.A &amp; b</w:t><w:t>&quot;x&quot;</w:t>"
        self.assertEqual(decode_entities_in_tags(xml), xml)
        xml = "<w:t>{{eq .A &#34;a&#34;}} {{.B &amp;</w:t><w:t>&lt;</w:t>"
        self.assertEqual(decode_entities_in_tags(xml), '<w:t>{{eq .A "a"}} {{.B &amp;</w:t><w:t>&lt;</w:t>')
