"""
Base exceptions for user-facing errors.

All expected errors that should be displayed to the user
as clean messages (without stack traces) must inherit from CandiUserError.

Programming errors and bugs (e.g. a parser/codegen mismatch) should NOT
inherit from CandiUserError; they propagate with full tracebacks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class CandiUserError(Exception):
    """
    Base class for all user-facing errors in Candi.

    These errors indicate problems that the user can fix:
    template syntax, configuration issues, missing templates, etc.
    """
    pass


@dataclass(frozen=True)
class SourceLocation:
    """Position inside a template source file (1-based line and column)."""
    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


# Placeholder for nodes built by hand (tests, synthesized nodes)
NO_LOCATION = SourceLocation("<unknown>", 0, 0)


class CompileError(CandiUserError):
    """
    Single error kind for lexing and parsing.

    The pipeline is fail-fast: the first CompileError aborts the
    compilation of the template.
    """

    def __init__(self, message: str, location: SourceLocation):
        super().__init__(f"{location}: {message}")
        self.message = message
        self.location = location

    def format_pointer(self, source: Optional[str] = None) -> str:
        """
        Render the error with a caret pointing into the source line.

        Args:
            source: Full text of the file the location refers to

        Returns:
            Error message, optionally followed by the source line and a caret
        """
        text = str(self)
        if source is None or self.location.line <= 0:
            return text

        lines = source.splitlines()
        if self.location.line > len(lines):
            return text

        src_line = lines[self.location.line - 1]
        caret = " " * max(self.location.column - 1, 0) + "^"
        return f"{text}\n    {src_line}\n    {caret}"


class InternalCompilerError(RuntimeError):
    """Code generation met a node it cannot handle (parser/codegen mismatch)."""
    pass


__all__ = [
    "CandiUserError",
    "SourceLocation",
    "NO_LOCATION",
    "CompileError",
    "InternalCompilerError",
]
