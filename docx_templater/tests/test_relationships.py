"""Tests for relationship parsing and the hyperlink registry."""
import unittest

from docx_templater.parser.rels_parser import (
    RELTYPE_HYPERLINK,
    RELTYPE_IMAGE,
    Relationships,
    RelationshipSidecar,
    sidecar_path,
    source_part,
)
from docx_templater.renderer.hyperlinks import HyperlinkRegistry, hyperlink_sidecars


doc_rels_xml = """
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/header" Target="header1.xml"/>
  <Relationship Id="rId3" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/image" Target="media/image1.png"/>
  <Relationship Id="rIdLink100" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/hyperlink" Target="https://old.example" TargetMode="External"/>
</Relationships>
"""

header_rels_xml = """
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/image" Target="../media/image2.png"/>
</Relationships>
"""


class RelationshipsTest(unittest.TestCase):
    """Sidecar lookup, parsing and serialization."""

    def setUp(self) -> None:
        self.parts = {
            "word/_rels/document.xml.rels": doc_rels_xml.encode("utf-8"),
            "word/_rels/header1.xml.rels": header_rels_xml.encode("utf-8"),
        }

    def test_sidecar_paths(self) -> None:
        self.assertEqual(sidecar_path("word/document.xml"), "word/_rels/document.xml.rels")
        self.assertEqual(source_part("word/_rels/header1.xml.rels"), "word/header1.xml")
        self.assertEqual(source_part("_rels/.rels"), "")

    def test_part_lookup(self) -> None:
        relationships = Relationships.from_package(self.parts)
        header = relationships.for_source("word/header1.xml")
        assert header is not None
        self.assertEqual(header.find("rId1").rel_type, RELTYPE_IMAGE)
        self.assertEqual(
            relationships.ids_for(["word/document.xml", "word/header1.xml"]),
            ["rId1", "rId3", "rIdLink100", "rId1"],
        )

    def test_round_trip_keeps_target_mode(self) -> None:
        sidecar = RelationshipSidecar.parse("word/_rels/document.xml.rels", self.parts["word/_rels/document.xml.rels"])
        sidecar.add_hyperlinks([("https://example.com?a=1&b=2", "rIdLink101")])
        xml = sidecar.to_xml().decode("utf-8")
        self.assertTrue(xml.startswith('<?xml version="1.0" encoding="UTF-8"?>'))
        self.assertIn('Target="https://example.com?a=1&amp;b=2" TargetMode="External"/>', xml)
        reparsed = RelationshipSidecar.parse("x", xml.encode("utf-8"))
        self.assertTrue(reparsed.find("rIdLink101").is_external)


class HyperlinkRegistryTest(unittest.TestCase):
    def test_ids_are_sequential_and_idempotent(self) -> None:
        registry = HyperlinkRegistry()
        self.assertEqual(registry.register("https://a"), "rIdLink100")
        self.assertEqual(registry.register("https://b"), "rIdLink101")
        self.assertEqual(registry.register("https://a"), "rIdLink100")
        self.assertEqual(len(registry), 2)

    def test_reserved_ids_are_skipped(self) -> None:
        registry = HyperlinkRegistry()
        registry.reserve(["rIdLink100", "rIdLink101"])
        self.assertEqual(registry.register("https://a"), "rIdLink102")

    def test_links_are_tracked_per_part(self) -> None:
        registry = HyperlinkRegistry()
        registry.begin_part("word/document.xml")
        registry.register("https://b")
        registry.register("https://a")
        registry.begin_part("word/header1.xml")
        registry.register("https://a")
        self.assertEqual(registry.links_for("word/document.xml"), [("https://b", "rIdLink100"), ("https://a", "rIdLink101")])
        self.assertEqual(registry.links_for("word/header1.xml"), [("https://a", "rIdLink101")])

    def test_sidecars_are_extended_or_created(self) -> None:
        parts = {"word/_rels/document.xml.rels": doc_rels_xml.encode("utf-8")}
        registry = HyperlinkRegistry()
        registry.reserve(Relationships.from_package(parts).ids_for(["word/document.xml"]))
        registry.begin_part("word/document.xml")
        registry.register("https://example.com")
        registry.begin_part("word/footer1.xml")
        registry.register("https://example.com")

        with self.assertLogs("docx_templater.renderer.hyperlinks", level="WARNING"):
            sidecars = hyperlink_sidecars(parts, registry)

        document = RelationshipSidecar.parse("d", sidecars["word/_rels/document.xml.rels"])
        self.assertEqual(document.ids(), ["rId1", "rId3", "rIdLink100", "rIdLink101"])
        self.assertEqual(document.find("rIdLink101").rel_type, RELTYPE_HYPERLINK)
        footer = RelationshipSidecar.parse("f", sidecars["word/_rels/footer1.xml.rels"])
        self.assertEqual(footer.ids(), ["rIdLink101"])
