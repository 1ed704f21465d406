"""DOCX package reader and writer."""
from __future__ import annotations

import io
import re
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, List, Mapping, Optional, Union

from docx_templater.model.errors import ErrorCode, TemplateError
from docx_templater.model.part_model import Part
from docx_templater.parser.part_classifier import DOCUMENT_XML_PATH, classify_part
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

CONTENT_TYPES_PATH = "[Content_Types].xml"

_RELS_DEFAULT = (
    '<Default Extension="rels" '
    'ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
)
_RELS_DEFAULT_RE = re.compile(r'<Default\s[^>]*Extension="rels"', re.IGNORECASE)
_TYPES_OPEN_RE = re.compile(r"<Types\b[^>]*>")


@dataclass(slots=True)
class DocxPackage:
    """Ordered set of named parts read from a DOCX archive.

    The zip entry metadata of every part is kept so a rewritten package keeps
    the original entry order and compression of the parts it does not touch.
    """

    raw_parts: Dict[str, bytes]
    entries: Dict[str, zipfile.ZipInfo] = field(default_factory=dict)

    @classmethod
    def load(cls, docx_path: Union[str, Path]) -> "DocxPackage":
        """Open a DOCX archive from disk."""
        path = Path(docx_path)
        if not path.exists():
            raise TemplateError(
                ErrorCode.FILE_NOT_FOUND,
                f"DOCX file not found: {path}",
                suggestions=["Check the path passed to the template loader"],
            )
        try:
            payload = path.read_bytes()
        except OSError as exc:
            raise TemplateError(ErrorCode.READ_ERROR, f"failed to read {path}: {exc}").with_cause(exc) from exc
        return cls.from_bytes(payload, name=path.name)

    @classmethod
    def from_bytes(cls, payload: bytes, name: str = "<bytes>") -> "DocxPackage":
        """Open a DOCX archive held in memory."""
        try:
            with zipfile.ZipFile(io.BytesIO(payload)) as docx_zip:
                entries = {info.filename: info for info in docx_zip.infolist() if not info.is_dir()}
                parts = {entry: docx_zip.read(entry) for entry in entries}
        except zipfile.BadZipFile as exc:
            raise TemplateError.file_parse(name, exc) from exc

        if DOCUMENT_XML_PATH not in parts:
            raise TemplateError(
                ErrorCode.INVALID_FILE,
                f"{name} has no {DOCUMENT_XML_PATH} part",
                suggestions=["Verify the file is a Word document and not another Office format"],
            )

        LOGGER.debug("Loaded %d parts from %s", len(parts), name)
        return cls(raw_parts=parts, entries=entries)

    # ------------------------------------------------------------------
    # Public helpers
    def names(self) -> List[str]:
        return list(self.raw_parts)

    def get(self, name: str) -> Optional[bytes]:
        return self.raw_parts.get(name)

    def part(self, name: str) -> Part:
        return Part(path=name, data=self.raw_parts[name], role=classify_part(name))

    def iter_parts(self) -> Iterator[Part]:
        for name in self.raw_parts:
            yield self.part(name)

    def require_document_xml(self) -> bytes:
        data = self.raw_parts.get(DOCUMENT_XML_PATH)
        if data is None:
            raise TemplateError(ErrorCode.INVALID_FILE, "Primary document part missing from package")
        return data

    def with_parts(self, replacements: Mapping[str, bytes]) -> "DocxPackage":
        """Return a copy where ``replacements`` override or extend the parts."""
        parts = dict(self.raw_parts)
        parts.update(replacements)
        if any(name not in self.raw_parts for name in replacements) and CONTENT_TYPES_PATH in parts:
            parts[CONTENT_TYPES_PATH] = ensure_rels_default(parts[CONTENT_TYPES_PATH])
        return DocxPackage(raw_parts=parts, entries=dict(self.entries))

    def write(self, target: Union[str, Path, BinaryIO]) -> None:
        """Write the package to a path or a binary stream.

        The archive is assembled in memory first so that a failure never
        leaves a truncated file behind.
        """
        payload = self.to_bytes()
        try:
            if isinstance(target, (str, Path)):
                Path(target).write_bytes(payload)
            else:
                target.write(payload)
        except OSError as exc:
            raise TemplateError(ErrorCode.WRITE_ERROR, f"failed to write package: {exc}").with_cause(exc) from exc

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as docx_zip:
                for name, data in self.raw_parts.items():
                    info = self.entries.get(name)
                    if info is None:
                        docx_zip.writestr(name, data)
                    else:
                        docx_zip.writestr(info, data)
        except (zipfile.BadZipFile, ValueError) as exc:
            raise TemplateError(ErrorCode.ZIP_ERROR, f"failed to build archive: {exc}").with_cause(exc) from exc
        return buffer.getvalue()


def ensure_rels_default(content_types: bytes) -> bytes:
    """Make sure the content-types manifest declares the ``rels`` extension."""
    text = content_types.decode("utf-8")
    if _RELS_DEFAULT_RE.search(text):
        return content_types
    match = _TYPES_OPEN_RE.search(text)
    if match is None:
        raise TemplateError(ErrorCode.MARSHAL_ERROR, "content types part has no <Types> element")
    LOGGER.warning("Content types manifest had no rels default; adding one")
    patched = text[: match.end()] + _RELS_DEFAULT + text[match.end() :]
    return patched.encode("utf-8")
