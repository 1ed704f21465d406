"""XML-escape every string of a normalized data tree."""
from __future__ import annotations

from typing import Any

from docx_templater.utils.xml_utils import escape_text


def escape_data(value: Any) -> Any:
    """Return a copy of ``value`` with all strings made safe for ``<w:t>`` content.

    Dict keys are left alone; they are field names, not output.
    """
    if isinstance(value, str):
        return escape_text(value)
    if isinstance(value, dict):
        return {key: escape_data(item) for key, item in value.items()}
    if isinstance(value, list):
        return [escape_data(item) for item in value]
    return value
