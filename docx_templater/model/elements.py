"""Paragraph and run content as seen by text extraction."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(slots=True)
class TextChild:
    """Character data of a ``<w:t>`` element."""

    text: str
    preserve_space: bool = False

    @property
    def carries_text(self) -> bool:
        return True

    def plain_text(self) -> str:
        return self.text


@dataclass(slots=True)
class BreakChild:
    """``<w:br>``; ``kind`` is ``page``, ``column`` or ``None`` for a line break."""

    kind: Optional[str] = None

    @property
    def carries_text(self) -> bool:
        return True

    def plain_text(self) -> str:
        return "\n"


@dataclass(slots=True)
class TabChild:
    @property
    def carries_text(self) -> bool:
        return True

    def plain_text(self) -> str:
        return "\t"


@dataclass(slots=True)
class DrawingChild:
    """An inline or anchored drawing; ``r_id`` points at its image relationship."""

    r_id: Optional[str] = None
    description: Optional[str] = None

    @property
    def carries_text(self) -> bool:
        return False

    def plain_text(self) -> str:
        return ""


@dataclass(slots=True)
class FieldCharChild:
    kind: str = "begin"

    @property
    def carries_text(self) -> bool:
        return False

    def plain_text(self) -> str:
        return ""


@dataclass(slots=True)
class NoteReferenceChild:
    """Footnote or endnote reference mark."""

    note_type: str
    note_id: int

    @property
    def carries_text(self) -> bool:
        return False

    def plain_text(self) -> str:
        return ""


@dataclass(slots=True)
class RawChild:
    """Any run child we do not model, kept by local tag name."""

    tag: str

    @property
    def carries_text(self) -> bool:
        return False

    def plain_text(self) -> str:
        return ""


RunChild = TextChild | BreakChild | TabChild | DrawingChild | FieldCharChild | NoteReferenceChild | RawChild


@dataclass(slots=True)
class Run:
    children: List[RunChild] = field(default_factory=list)
    style_id: Optional[str] = None

    def plain_text(self) -> str:
        return "".join(child.plain_text() for child in self.children if child.carries_text)


@dataclass(slots=True)
class Paragraph:
    runs: List[Run] = field(default_factory=list)
    style_id: Optional[str] = None

    def plain_text(self) -> str:
        return "".join(run.plain_text() for run in self.runs)
