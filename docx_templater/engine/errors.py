"""Errors raised by the template engine."""
from __future__ import annotations


class TemplateEngineError(Exception):
    """Base class; ``message`` is the bare reason without position prefix."""

    def __init__(self, text: str, name: str, line: int, message: str) -> None:
        super().__init__(text)
        self.name = name
        self.line = line
        self.message = message


class TemplateSyntaxError(TemplateEngineError):
    """Template source could not be parsed."""

    def __init__(self, name: str, line: int, message: str) -> None:
        super().__init__(f"template: {name}:{line}: {message}", name, line, message)


class TemplateExecError(TemplateEngineError):
    """Template failed while executing against data."""

    def __init__(self, name: str, line: int, context: str, message: str, executing: str = "") -> None:
        if len(context) > 20:
            context = context[:20] + "..."
        text = f'template: {name}:{line}: executing "{executing or name}" at <{context}>: {message}'
        super().__init__(text, name, line, message)
        self.context = context
        self.executing = executing or name
