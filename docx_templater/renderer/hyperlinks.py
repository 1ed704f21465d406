"""Hyperlink relationships created while rendering."""
from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple
from xml.etree import ElementTree as ET

from docx_templater.model.errors import ErrorCode, TemplateError
from docx_templater.parser.rels_parser import RelationshipSidecar, sidecar_path
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

LINK_ID_PREFIX = "rIdLink"
FIRST_LINK_NUMBER = 100


class HyperlinkRegistry:
    """Hands out one relationship id per URL for the duration of a render.

    Ids count up from ``rIdLink100``; anything passed to :meth:`reserve` is
    skipped. The registry remembers which part asked for which URL so each
    part's sidecar only receives its own links.
    """

    def __init__(self, first_number: int = FIRST_LINK_NUMBER) -> None:
        self._lock = threading.Lock()
        self._ids: Dict[str, str] = {}
        self._reserved: Set[str] = set()
        self._next = first_number
        self._current_part: Optional[str] = None
        self._by_part: Dict[str, List[str]] = {}

    def reserve(self, ids: Iterable[str]) -> None:
        with self._lock:
            self._reserved.update(ids)

    def begin_part(self, path: Optional[str]) -> None:
        """Attribute subsequent registrations to the part at ``path``."""
        with self._lock:
            self._current_part = path

    def register(self, url: str) -> str:
        with self._lock:
            r_id = self._ids.get(url)
            if r_id is None:
                r_id = self._allocate()
                self._ids[url] = r_id
                LOGGER.debug("Registered hyperlink %s as %s", url, r_id)
            if self._current_part is not None:
                urls = self._by_part.setdefault(self._current_part, [])
                if url not in urls:
                    urls.append(url)
            return r_id

    def _allocate(self) -> str:
        while True:
            candidate = f"{LINK_ID_PREFIX}{self._next}"
            self._next += 1
            if candidate not in self._reserved:
                return candidate

    def links(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._ids)

    def links_for(self, part: str) -> List[Tuple[str, str]]:
        """``(url, id)`` pairs used by ``part``, in first-encounter order."""
        with self._lock:
            return [(url, self._ids[url]) for url in self._by_part.get(part, [])]

    def parts(self) -> List[str]:
        with self._lock:
            return list(self._by_part)

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def __bool__(self) -> bool:
        return len(self) > 0


def hyperlink_sidecars(parts: Mapping[str, bytes], registry: HyperlinkRegistry) -> Dict[str, bytes]:
    """Return rewritten or new sidecars for every part that emitted links."""
    replacements: Dict[str, bytes] = {}
    for part in registry.parts():
        links = registry.links_for(part)
        if not links:
            continue
        path = sidecar_path(part)
        payload = parts.get(path)
        if payload is None:
            LOGGER.warning("Part %s has no relationship sidecar; creating %s", part, path)
            sidecar = RelationshipSidecar(path=path)
        else:
            try:
                sidecar = RelationshipSidecar.parse(path, payload)
            except ET.ParseError as exc:
                raise TemplateError(
                    ErrorCode.MARSHAL_ERROR,
                    f"cannot read relationships of {part}: {exc}",
                    location=path,
                ).with_cause(exc) from exc
        sidecar.add_hyperlinks(links)
        replacements[path] = sidecar.to_xml()
        LOGGER.debug("Added %d hyperlink relationships to %s", len(links), path)
    return replacements
