"""Reading and writing Open Packaging Convention relationship sidecars."""
from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional
from xml.etree import ElementTree as ET

from docx_templater.utils.logger import get_logger
from docx_templater.utils.xml_utils import XML_HEADER, Namespaces, escape_attribute, parse_xml

LOGGER = get_logger(__name__)

WORD_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PACKAGE_REL_NS = Namespaces.RELS["rel"]

RELTYPE_IMAGE = f"{WORD_REL_NS}/image"
RELTYPE_HYPERLINK = f"{WORD_REL_NS}/hyperlink"

TARGET_MODE_EXTERNAL = "External"


@dataclass(frozen=True)
class Relationship:
    """Represents a single OPC relationship."""

    r_id: str
    rel_type: str
    target: str
    target_mode: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.target_mode == TARGET_MODE_EXTERNAL


@dataclass
class RelationshipSidecar:
    """The ``.rels`` part owned by one source part."""

    path: str
    relationships: List[Relationship] = field(default_factory=list)

    @classmethod
    def parse(cls, path: str, payload: bytes) -> "RelationshipSidecar":
        tree = parse_xml(payload)
        relationships = [
            Relationship(
                r_id=rel_el.attrib["Id"],
                rel_type=rel_el.attrib.get("Type", ""),
                target=rel_el.attrib.get("Target", ""),
                target_mode=rel_el.attrib.get("TargetMode"),
            )
            for rel_el in tree.findall(".//rel:Relationship", Namespaces.RELS)
        ]
        return cls(path=path, relationships=relationships)

    def ids(self) -> List[str]:
        return [rel.r_id for rel in self.relationships]

    def find(self, r_id: str) -> Optional[Relationship]:
        for rel in self.relationships:
            if rel.r_id == r_id:
                return rel
        return None

    def add(self, relationship: Relationship) -> bool:
        """Append ``relationship`` unless its id is already present."""
        if self.find(relationship.r_id) is not None:
            return False
        self.relationships.append(relationship)
        return True

    def add_hyperlinks(self, links: Iterable[tuple]) -> None:
        """Append external hyperlink relationships for ``(url, r_id)`` pairs."""
        for url, r_id in links:
            self.add(Relationship(r_id=r_id, rel_type=RELTYPE_HYPERLINK, target=url, target_mode=TARGET_MODE_EXTERNAL))

    def to_xml(self) -> bytes:
        lines = [f'<Relationships xmlns="{PACKAGE_REL_NS}">']
        for rel in self.relationships:
            attrs = [
                f'Id="{escape_attribute(rel.r_id)}"',
                f'Type="{escape_attribute(rel.rel_type)}"',
                f'Target="{escape_attribute(rel.target)}"',
            ]
            if rel.target_mode:
                attrs.append(f'TargetMode="{escape_attribute(rel.target_mode)}"')
            lines.append(f"  <Relationship {' '.join(attrs)}/>")
        lines.append("</Relationships>")
        return (XML_HEADER + "\n".join(lines)).encode("utf-8")


def sidecar_path(part_name: str) -> str:
    """Return the sidecar path for a part: ``word/document.xml`` -> ``word/_rels/document.xml.rels``."""
    folder, base = posixpath.split(part_name)
    if folder:
        return f"{folder}/_rels/{base}.rels"
    return f"_rels/{base}.rels"


def source_part(rel_part: str) -> str:
    """Inverse of :func:`sidecar_path`."""
    if rel_part == "_rels/.rels":
        return ""
    if "/_rels/" in rel_part:
        folder, suffix = rel_part.split("/_rels/", 1)
        return f"{folder}/{suffix[:-5]}"
    if rel_part.startswith("_rels/"):
        return rel_part[len("_rels/") : -5]
    return rel_part[:-5]


class Relationships:
    """Relationship sidecars of a package, keyed by their source part."""

    def __init__(self, sidecars: Dict[str, RelationshipSidecar]) -> None:
        self._by_source = sidecars

    @classmethod
    def from_package(cls, parts: Mapping[str, bytes]) -> "Relationships":
        """Collect relationships from all ``.rels`` parts within the package."""
        by_source: Dict[str, RelationshipSidecar] = {}
        for name, payload in parts.items():
            if not name.endswith(".rels"):
                continue
            try:
                by_source[source_part(name)] = RelationshipSidecar.parse(name, payload)
            except ET.ParseError as exc:
                LOGGER.warning("Skipping unreadable relationship part %s: %s", name, exc)
        return cls(by_source)

    def for_source(self, part_name: str) -> Optional[RelationshipSidecar]:
        return self._by_source.get(part_name)

    def ids_for(self, part_names: Iterable[str]) -> List[str]:
        ids: List[str] = []
        for name in part_names:
            sidecar = self._by_source.get(name)
            if sidecar is not None:
                ids.extend(sidecar.ids())
        return ids
