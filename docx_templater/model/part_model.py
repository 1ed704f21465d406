"""Package parts and the roles they play in templating."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PartRole(str, Enum):
    """What a package part holds, as far as templating is concerned."""

    BODY = "body"
    HEADER = "header"
    FOOTER = "footer"
    FOOTNOTES = "footnotes"
    ENDNOTES = "endnotes"
    PROPS = "props"
    RELATIONSHIP = "relationship"
    OTHER = "other"

    @property
    def location(self) -> str:
        """Human-readable location used in diagnostics."""
        return _LOCATIONS.get(self, self.value)

    @property
    def processable(self) -> bool:
        return self not in (PartRole.RELATIONSHIP, PartRole.OTHER)


_LOCATIONS = {
    PartRole.BODY: "document body",
    PartRole.HEADER: "header",
    PartRole.FOOTER: "footer",
    PartRole.FOOTNOTES: "footnotes",
    PartRole.ENDNOTES: "endnotes",
    PartRole.PROPS: "document properties",
}


@dataclass(slots=True)
class Part:
    """A named byte blob inside the DOCX package."""

    path: str
    data: bytes
    role: PartRole = PartRole.OTHER

    @property
    def location(self) -> str:
        if self.role.processable:
            return self.role.location
        return self.path

    def text(self) -> str:
        return self.data.decode("utf-8")
