"""Tests for the built-in helper functions."""
import datetime as dt
import unittest

from docx_templater.functions import dates, formatting, logic, misc, printing, richtext, sequences, text
from docx_templater.functions.math_functions import add, functions as math_functions, mul, sub
from docx_templater.functions.registry import FunctionRegistry, default_functions


class RegistryTest(unittest.TestCase):
    def test_default_set_contains_every_family(self) -> None:
        registry = default_functions()
        for name in ("upper", "bold", "link", "eq", "len", "default", "add", "formatMoney", "formatDate", "uuid", "printf"):
            self.assertIn(name, registry)

    def test_register_rejects_non_identifiers(self) -> None:
        registry = FunctionRegistry()
        with self.assertRaises(ValueError):
            registry.register("not-valid", str.upper)
        with self.assertRaises(ValueError):
            registry.register("ok", "not callable")

    def test_copy_is_independent(self) -> None:
        registry = FunctionRegistry({"a": str.upper})
        clone = registry.copy()
        clone.register("b", str.lower)
        self.assertEqual(registry.names(), ["a"])
        self.assertEqual(clone.names(), ["a", "b"])


class TextTest(unittest.TestCase):
    def test_case_helpers(self) -> None:
        self.assertEqual(text.upper("abc"), "ABC")
        self.assertEqual(text.title("hello world"), "Hello World")
        self.assertEqual(text.capitalize("hello world"), "Hello world")
        self.assertEqual(text.camel_case("hello big world"), "helloBigWorld")
        self.assertEqual(text.snake_case("HelloBigWorld"), "hello_big_world")
        self.assertEqual(text.kebab_case("hello big world"), "hello-big-world")

    def test_case_helpers_leave_entities_alone(self) -> None:
        self.assertEqual(text.upper("a &amp; b"), "A &amp; B")

    def test_string_utilities(self) -> None:
        self.assertEqual(text.trim("  x  "), "x")
        self.assertEqual(text.trim_prefix("prefix-x", "prefix-"), "x")
        self.assertEqual(text.trim_suffix("x.docx", ".docx"), "x")
        self.assertEqual(text.replace("a-b-c", "-", "+"), "a+b+c")
        self.assertEqual(text.repeat("ab", 3), "ababab")
        self.assertEqual(text.split("a,b", ","), ["a", "b"])
        self.assertEqual(text.split("", ","), [])
        self.assertEqual(text.concat("a", 1, True), "a1true")


class RichTextTest(unittest.TestCase):
    def test_formatted_run_pattern(self) -> None:
        self.assertEqual(
            richtext.FUNCTIONS["bold"]("Hi"),
            "</w:t></w:r><w:r><w:rPr><w:b/></w:rPr><w:t>Hi</w:t></w:r><w:r><w:t>",
        )

    def test_color_and_font(self) -> None:
        self.assertIn('<w:color w:val="FF0000"/>', richtext.color("#FF0000", "x"))
        self.assertIn('<w:sz w:val="28"/>', richtext.font_size(28, "x"))
        self.assertIn('w:ascii="Arial"', richtext.font("Arial", 24, "00FF00", "x"))

    def test_payload_escapes_bare_ampersand(self) -> None:
        self.assertIn("<w:t>A &amp; B &amp; C</w:t>", richtext.FUNCTIONS["italic"]("A & B &amp; C"))

    def test_structure_helpers(self) -> None:
        self.assertIn('<w:br w:type="page"/>', richtext.page_break())
        self.assertIn("<w:sectPr>", richtext.section_break())
        self.assertEqual(richtext.line_break(), "</w:t><w:br/><w:t>")

    def test_attribute_values_are_escaped_once(self) -> None:
        self.assertIn('<w:highlight w:val="a&amp;b"/>', richtext.highlight("a&amp;b", "x"))
        self.assertIn('w:ascii="&quot;Q&quot;"', richtext.font_family("&#34;Q&#34;", "x"))

    def test_link_target_is_unescaped(self) -> None:
        seen = []
        richtext.make_link(lambda url: seen.append(url) or "rIdLink100")("https://x.com/?a=1&amp;b=2", "x")
        self.assertEqual(seen, ["https://x.com/?a=1&b=2"])

    def test_link_registers_url(self) -> None:
        seen = []

        def register(url):
            seen.append(url)
            return "rIdLink100"

        markup = richtext.make_link(register)("https://example.com", "Example")
        self.assertEqual(seen, ["https://example.com"])
        self.assertIn('<w:hyperlink r:id="rIdLink100" w:history="1">', markup)
        self.assertIn("<w:t>Example</w:t>", markup)


class LogicTest(unittest.TestCase):
    def test_comparisons(self) -> None:
        self.assertTrue(logic.eq(1, 1.0))
        self.assertTrue(logic.eq("b", "a", "b"))
        self.assertFalse(logic.eq(1, "1"))
        self.assertTrue(logic.lt(1, 2.5))
        self.assertTrue(logic.ge("b", "a"))
        with self.assertRaises(TypeError):
            logic.lt(1, "a")

    def test_boolean_and_defaults(self) -> None:
        self.assertTrue(logic.and_(1, "x"))
        self.assertFalse(logic.or_(0, ""))
        self.assertTrue(logic.not_([]))
        self.assertEqual(logic.default("d", ""), "d")
        self.assertEqual(logic.default("d", "v"), "v")
        self.assertEqual(logic.coalesce(None, 0, 1), 1)
        self.assertEqual(logic.ternary("yes", "no", True), "yes")


class SequenceTest(unittest.TestCase):
    def test_collection_helpers(self) -> None:
        self.assertEqual(sequences.length([1, 2]), 2)
        self.assertEqual(sequences.first([1, 2]), 1)
        self.assertEqual(sequences.last([1, 2]), 2)
        self.assertIsNone(sequences.first([]))
        self.assertEqual(sequences.index("hello", 1), "e")
        self.assertEqual(sequences.index({"a": [1, 2]}, "a", 1), 2)
        self.assertIsNone(sequences.index([1], 5))
        self.assertEqual(sequences.slice_([1, 2, 3, 4], 1, 3), [2, 3])
        self.assertEqual(sequences.join(["a", "b"], ", "), "a, b")
        self.assertTrue(sequences.contains(["a"], "a"))
        self.assertTrue(sequences.contains("abc", "b"))


class MathTest(unittest.TestCase):
    def test_arithmetic(self) -> None:
        self.assertEqual(add(1, 2), 3)
        self.assertEqual(add(1, 0.5), 1.5)
        self.assertEqual(add("a", "b"), "ab")
        self.assertEqual(sub(5, 7), -2)
        self.assertEqual(mul(2, 2.5), 5.0)

    def test_division_truncates_and_tolerates_zero(self) -> None:
        helpers = math_functions()
        self.assertEqual(helpers["div"](7, 2), 3)
        self.assertEqual(helpers["div"](-7, 2), -3)
        self.assertEqual(helpers["mod"](-7, 2), -1)
        self.assertEqual(helpers["div"](1, 0), 0)
        self.assertEqual(helpers["mod"](1, 0), 0)

    def test_strict_division_raises(self) -> None:
        with self.assertRaises(ZeroDivisionError):
            math_functions(strict=True)["div"](1, 0)


class FormattingTest(unittest.TestCase):
    def test_numbers(self) -> None:
        self.assertEqual(formatting.format_number(1234567.891), "1,234,567.89")
        self.assertEqual(formatting.format_number(1234.4, 0), "1,234")
        self.assertEqual(formatting.format_money(-1234.5, "$"), "-$1,234.50")
        self.assertEqual(formatting.format_percent(0.5, 2), "50.00%")
        self.assertEqual(formatting.format_percent(0.156), "16%")

    def test_number_digits_and_grouping(self) -> None:
        for value, whole in ((1234567.25, "1,234,567"), (-9876.5, "-9,876"), (999, "999"), ("42000", "42,000")):
            for decimals in range(5):
                text = formatting.format_number(value, decimals)
                head, _, tail = text.partition(".")
                self.assertEqual(head, whole, text)
                self.assertEqual(len(tail), decimals, text)
                self.assertTrue(tail.isdigit() or not tail, text)


class DatesTest(unittest.TestCase):
    def test_format_date_with_go_layouts(self) -> None:
        self.assertEqual(dates.format_date("2024-01-15", "January 2, 2006"), "January 15, 2024")
        self.assertEqual(dates.format_date(dt.datetime(2024, 3, 7, 14, 5), "02/01/06 3:04PM"), "07/03/24 2:05PM")
        self.assertEqual(dates.format_date(dt.date(2024, 3, 7), "Mon Jan _2"), "Thu Mar  7")

    def test_format_date_with_strftime_layout(self) -> None:
        self.assertEqual(dates.format_date(dt.date(2024, 3, 7), "%Y/%m/%d"), "2024/03/07")

    def test_unparseable_string_is_returned(self) -> None:
        self.assertEqual(dates.format_date("someday", "2006"), "someday")

    def test_parse_date(self) -> None:
        parsed = dates.parse_date("15 Mar 2024 09:30", "02 Jan 2006 15:04")
        self.assertEqual(parsed, dt.datetime(2024, 3, 15, 9, 30))
        with self.assertRaises(ValueError):
            dates.parse_date("nope", "2006-01-02")

    def test_date_arithmetic(self) -> None:
        self.assertEqual(dates.add_days(dt.date(2024, 2, 28), 2), dt.date(2024, 3, 1))
        self.assertEqual(dates.add_months(dt.date(2024, 1, 15), 2), dt.date(2024, 3, 15))
        self.assertEqual(dates.add_months(dt.date(2023, 1, 31), 1), dt.date(2023, 3, 3))
        self.assertEqual(dates.add_years(dt.date(2024, 2, 29), 1), dt.date(2025, 3, 1))


class MiscTest(unittest.TestCase):
    def test_uuid(self) -> None:
        self.assertEqual(len(misc.uuid()), 36)
        self.assertNotEqual(misc.uuid(), misc.uuid())

    def test_pluralize(self) -> None:
        self.assertEqual(misc.pluralize(1, "item", "items"), "item")
        self.assertEqual(misc.pluralize(-1, "item", "items"), "item")
        self.assertEqual(misc.pluralize(2, "item", "items"), "items")

    def test_truncate_and_wordwrap(self) -> None:
        self.assertEqual(misc.truncate("Hello World", 5), "Hello...")
        self.assertEqual(misc.truncate("Hi", 5), "Hi")
        self.assertEqual(misc.truncate("Hello World", 5, "…"), "Hello…")
        self.assertEqual(misc.truncate("日本語テキスト", 3), "日本語...")
        self.assertEqual(misc.truncate("👍👍👍", 2, ""), "👍👍")
        self.assertEqual(misc.truncate("héllo", 5), "héllo")
        self.assertIn("\n", misc.wordwrap("the quick brown fox", 10))


class PrintingTest(unittest.TestCase):
    def test_print_family(self) -> None:
        self.assertEqual(printing.print_("a", 1, 2, "b"), "a1 2b")
        self.assertEqual(printing.printf("%s-%d", "x", 3), "x-3")
        self.assertEqual(printing.println("a", 1), "a 1\n")

    def test_escapers(self) -> None:
        self.assertEqual(printing.html("<a href='x'>"), "&lt;a href=&#39;x&#39;&gt;")
        self.assertEqual(printing.js("it's <b>"), "it\\'s \\u003Cb\\u003E")
        self.assertEqual(printing.urlquery("a b&c"), "a+b%26c")

    def test_call(self) -> None:
        self.assertEqual(printing.call(lambda x: x * 2, 3), 6)
        with self.assertRaises(TypeError):
            printing.call(None)
