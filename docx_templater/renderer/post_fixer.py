"""Clean-up of the markup left behind by template execution."""
from __future__ import annotations

from docx_templater.engine.values import NO_VALUE

_REWRITES = (
    (NO_VALUE, ""),
    ("<w:t><w:drawing>", "<w:drawing>"),
    ("</w:drawing></w:t>", "</w:drawing>"),
    ("<w:t></w:t>", ""),
    ('<w:t xml:space="preserve"></w:t>', ""),
    ("<w:r></w:r>", ""),
    ("<w:r><w:rPr></w:rPr></w:r>", ""),
)


def fix_rendered_xml(xml: str) -> str:
    """Drop ``<no value>`` markers, unwrap drawings and remove empty text and runs.

    Running it twice gives the same result as running it once.
    """
    for old, new in _REWRITES:
        xml = xml.replace(old, new)
    return xml
