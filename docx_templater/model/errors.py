"""Structured errors raised while loading, validating and rendering templates."""
from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional


class ErrorCode(str, Enum):
    """Programmatic error categories."""

    # Package errors
    INVALID_FILE = "INVALID_FILE"
    CORRUPTED_DOCX = "CORRUPTED_DOCX"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    READ_ERROR = "READ_ERROR"

    # Template errors
    SYNTAX_ERROR = "SYNTAX_ERROR"
    UNCLOSED_TAG = "UNCLOSED_TAG"
    UNMATCHED_END = "UNMATCHED_END"
    UNCLOSED_BLOCK = "UNCLOSED_BLOCK"
    UNDEFINED_FIELD = "UNDEFINED_FIELD"
    INVALID_FUNCTION = "INVALID_FUNCTION"
    EXECUTION_ERROR = "EXECUTION_ERROR"

    # Render errors
    DATA_CONVERSION = "DATA_CONVERSION"
    IMAGE_ERROR = "IMAGE_ERROR"
    MARSHAL_ERROR = "MARSHAL_ERROR"

    # Save errors
    WRITE_ERROR = "WRITE_ERROR"
    ZIP_ERROR = "ZIP_ERROR"

    MERGE_ERROR = "MERGE_ERROR"


class TemplateError(Exception):
    """Error with enough context to tell the template author what to fix."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        location: str = "",
        placeholder: str = "",
        line_number: int = 0,
        cause: Optional[BaseException] = None,
        suggestions: Optional[Iterable[str]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.location = location
        self.placeholder = placeholder
        self.line_number = line_number
        self.cause = cause
        self.suggestions: List[str] = list(suggestions or [])

    def __str__(self) -> str:
        parts = []
        if self.location:
            parts.append(f"[{self.location}]")
        parts.append(self.message)
        if self.placeholder:
            parts.append(f"(at: {self.placeholder})")
        if self.line_number > 0:
            parts.append(f"(line {self.line_number})")
        return " ".join(parts)

    def describe(self) -> str:
        """Return a detailed multi-line description."""
        lines = [
            "Template Error",
            "==============",
            f"Code:     {self.code.value}",
            f"Message:  {self.message}",
        ]
        if self.location:
            lines.append(f"Location: {self.location}")
        if self.placeholder:
            lines.append(f"Tag:      {self.placeholder}")
        if self.line_number > 0:
            lines.append(f"Line:     {self.line_number}")
        if self.cause is not None:
            lines.append(f"Cause:    {self.cause}")
        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            lines.extend(f"  {index}. {text}" for index, text in enumerate(self.suggestions, start=1))
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # Fluent setters
    def with_location(self, location: str) -> "TemplateError":
        self.location = location
        return self

    def with_placeholder(self, placeholder: str) -> "TemplateError":
        self.placeholder = placeholder
        return self

    def with_cause(self, cause: BaseException) -> "TemplateError":
        self.cause = cause
        self.__cause__ = cause
        return self

    def with_suggestions(self, *suggestions: str) -> "TemplateError":
        self.suggestions.extend(suggestions)
        return self

    # ------------------------------------------------------------------
    # Common constructors
    @classmethod
    def syntax(cls, message: str) -> "TemplateError":
        return cls(
            ErrorCode.SYNTAX_ERROR,
            message,
            suggestions=[
                "Check that all template tags use {{ and }} delimiters",
                "Verify function names and arguments are correct",
                "Ensure all strings are properly quoted",
            ],
        )

    @classmethod
    def unclosed_tag(cls, location: str) -> "TemplateError":
        return cls(
            ErrorCode.UNCLOSED_TAG,
            "found {{ without matching }}",
            location=location,
            suggestions=[
                "Check for missing }} in template tags",
                "Ensure tag delimiters are not split across formatting",
            ],
        )

    @classmethod
    def unmatched_end(cls, tag: str, location: str) -> "TemplateError":
        return cls(
            ErrorCode.UNMATCHED_END,
            "{{end}} without matching block start",
            location=location,
            placeholder=tag,
            suggestions=[
                "Ensure every {{end}} has a matching {{if}}, {{range}}, {{with}}, or {{define}}",
                "Check for extra {{end}} tags",
            ],
        )

    @classmethod
    def undefined_field(cls, field: str, location: str) -> "TemplateError":
        return cls(
            ErrorCode.UNDEFINED_FIELD,
            f"field {field!r} not found in template data",
            location=location,
            placeholder="{{." + field + "}}",
            suggestions=[
                f"Add a {field!r} field to your data",
                "Check for typos in the field name",
                "Ensure nested fields use proper dot notation (e.g., .Parent.Child)",
            ],
        )

    @classmethod
    def invalid_function(cls, name: str) -> "TemplateError":
        return cls(
            ErrorCode.INVALID_FUNCTION,
            f"function {name!r} is not defined",
            suggestions=[
                f"Register the function using template.register_function({name!r}, fn)",
                "Check for typos in the function name",
            ],
        )

    @classmethod
    def file_parse(cls, filename: str, cause: BaseException) -> "TemplateError":
        error = cls(
            ErrorCode.CORRUPTED_DOCX,
            f"failed to parse DOCX file: {filename}",
            suggestions=[
                "Verify the file is a valid DOCX document",
                "Try opening and re-saving the file in Word",
                "Check if the file is corrupted or incomplete",
            ],
        )
        return error.with_cause(cause)


class ErrorSummary:
    """Aggregates several template errors."""

    def __init__(self, errors: Optional[Iterable[TemplateError]] = None) -> None:
        self.errors: List[TemplateError] = list(errors or [])

    def add(self, error: TemplateError) -> None:
        self.errors.append(error)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def by_code(self, code: ErrorCode) -> List[TemplateError]:
        return [error for error in self.errors if error.code == code]

    def by_location(self, location: str) -> List[TemplateError]:
        return [error for error in self.errors if error.location == location]

    def __str__(self) -> str:
        if not self.errors:
            return "no errors"
        if len(self.errors) == 1:
            return str(self.errors[0])
        return f"{len(self.errors)} errors occurred (first: {self.errors[0]})"

    def describe(self) -> str:
        if not self.errors:
            return "No errors"
        chunks = [f"Found {len(self.errors)} error(s):\n"]
        for index, error in enumerate(self.errors, start=1):
            chunks.append(f"--- Error {index} ---")
            chunks.append(error.describe())
        return "\n".join(chunks)
