"""Named helper functions callable from placeholders."""
from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from docx_templater.functions import dates, formatting, logic, math_functions, misc, printing, richtext, sequences, text
from docx_templater.renderer.hyperlinks import HyperlinkRegistry
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class FunctionRegistry:
    """Mapping of helper name to callable.

    Names must be identifiers; the template language could not call anything
    else.
    """

    def __init__(self, functions: Optional[Mapping[str, Callable]] = None) -> None:
        self._functions: Dict[str, Callable] = {}
        if functions:
            self.update(functions)

    def register(self, name: str, function: Callable) -> None:
        if not _NAME_RE.match(name or ""):
            raise ValueError(f"invalid function name: {name!r}")
        if not callable(function):
            raise ValueError(f"function {name!r} is not callable")
        if name in self._functions:
            LOGGER.debug("Overriding template function %s", name)
        self._functions[name] = function

    def update(self, functions: Mapping[str, Callable]) -> None:
        for name, function in functions.items():
            self.register(name, function)

    def get(self, name: str) -> Optional[Callable]:
        return self._functions.get(name)

    def names(self) -> List[str]:
        return sorted(self._functions)

    def copy(self) -> "FunctionRegistry":
        clone = FunctionRegistry()
        clone._functions = dict(self._functions)
        return clone

    def as_dict(self) -> Dict[str, Callable]:
        return dict(self._functions)

    def items(self) -> Iterable[Tuple[str, Callable]]:
        return self._functions.items()

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)


def default_functions(strict_math: bool = False, link: Optional[Callable] = None) -> FunctionRegistry:
    """Build the standard helper set.

    ``link`` replaces the hyperlink helper; a render binds it to its own
    hyperlink registry. Without one, links go to a private registry.
    """
    registry = FunctionRegistry()
    for module in (printing, text, richtext, logic, sequences, formatting, dates, misc):
        registry.update(module.FUNCTIONS)
    registry.update(math_functions.functions(strict=strict_math))
    if link is None:
        link = richtext.make_link(HyperlinkRegistry().register)
    registry.register("link", link)
    return registry
