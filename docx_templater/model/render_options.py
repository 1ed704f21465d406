"""Configuration knobs for a render."""
from __future__ import annotations

from dataclasses import dataclass

DEFAULT_ROW_REWRITE_TIMEOUT = 0.5


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Options shared by rendering and validation.

    ``strict_math`` makes ``div`` and ``mod`` raise on a zero divisor instead of
    returning 0. ``row_rewrite_timeout`` bounds the table-row scanner, in
    seconds. ``escape_values`` XML-escapes every string of the data tree before
    execution; turn it off only when the data already holds WordprocessingML.
    """

    strict_math: bool = False
    row_rewrite_timeout: float = DEFAULT_ROW_REWRITE_TIMEOUT
    escape_values: bool = True
    process_watermarks: bool = True
    template_name: str = "docx"
