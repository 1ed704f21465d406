"""Public face of the template engine."""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from docx_templater.engine.executor import Executor
from docx_templater.engine.nodes import ListNode
from docx_templater.engine.parser import parse


class Template:
    """A named template bound to a set of callable functions.

    >>> Template("greeting", {"upper": str.upper}).parse("Hi {{upper .Name}}").execute({"Name": "ada"})
    'Hi ADA'
    """

    def __init__(self, name: str, funcs: Optional[Mapping[str, Callable]] = None) -> None:
        self.name = name
        self.funcs: Dict[str, Callable] = dict(funcs or {})
        self.trees: Dict[str, ListNode] = {}

    def parse(self, text: str) -> "Template":
        self.trees = parse(self.name, text, self.funcs)
        return self

    @property
    def root(self) -> Optional[ListNode]:
        return self.trees.get(self.name)

    def defined_templates(self) -> List[str]:
        return sorted(self.trees)

    def execute(self, data: Any, template: Optional[str] = None) -> str:
        return Executor(self.name, self.trees, self.funcs).execute(data, template)


def render_string(text: str, data: Any, funcs: Optional[Mapping[str, Callable]] = None, name: str = "text") -> str:
    """Parse and execute ``text`` in one go."""
    return Template(name, funcs).parse(text).execute(data)
