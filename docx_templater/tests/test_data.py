"""Tests for data normalization and escaping."""
import datetime as dt
import enum
import unittest
from collections import namedtuple
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from docx_templater.data.escaping import escape_data
from docx_templater.data.normalizer import DataConversionError, normalize_data
from docx_templater.model.errors import ErrorCode


class Color(enum.Enum):
    RED = "red"


@dataclass
class Item:
    Name: str
    Price: Decimal


@dataclass
class Order:
    Customer: str
    Items: List[Item]
    _secret: str = "hidden"


Point = namedtuple("Point", "X Y")


class NormalizerTest(unittest.TestCase):
    def test_records_become_dicts(self) -> None:
        data = normalize_data(Order(Customer="Ada", Items=[Item("Pen", Decimal("1.50"))]))
        self.assertEqual(data, {"Customer": "Ada", "Items": [{"Name": "Pen", "Price": 1.5}]})

    def test_scalars_are_widened(self) -> None:
        data = normalize_data({"color": Color.RED, "point": Point(1, 2), "when": dt.date(2024, 1, 1), 1: True})
        self.assertEqual(data["color"], "red")
        self.assertEqual(data["point"], {"X": 1, "Y": 2})
        self.assertEqual(data["when"], dt.date(2024, 1, 1))
        self.assertIs(data["1"], True)

    def test_scalar_lists_stay_plain(self) -> None:
        self.assertEqual(normalize_data({"L": (1, 2)}), {"L": [1, 2]})

    def test_mixed_record_lists_wrap_scalars(self) -> None:
        self.assertEqual(normalize_data({"L": [{"A": 1}, 3]}), {"L": [{"A": 1}, {"Value": 3}]})

    def test_input_is_copied(self) -> None:
        source = {"A": {"B": [1]}}
        data = normalize_data(source)
        source["A"]["B"].append(2)
        self.assertEqual(data, {"A": {"B": [1]}})

    def test_rejects_non_mappings(self) -> None:
        for value in (None, "text", 3, [1, 2]):
            with self.assertRaises(DataConversionError) as ctx:
                normalize_data(value)
            self.assertEqual(ctx.exception.code, ErrorCode.DATA_CONVERSION)

    def test_detects_cycles(self) -> None:
        data = {"A": {}}
        data["A"]["Self"] = data
        with self.assertRaises(DataConversionError):
            normalize_data(data)


class EscapingTest(unittest.TestCase):
    def test_strings_are_escaped_recursively(self) -> None:
        data = escape_data({"A": "x < y & z", "L": ["\"q\""], "N": 1})
        self.assertEqual(data, {"A": "x &lt; y &amp; z", "L": ["&#34;q&#34;"], "N": 1})

    def test_newlines_become_breaks(self) -> None:
        self.assertEqual(escape_data("a\nb"), "a</w:t><w:br/><w:t>b")
