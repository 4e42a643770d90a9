"""
Indented Python source builder.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List


class CodeWriter:
    """
    Collects lines of Python source with explicit indentation.

    A block opened with ``block()`` that receives no statements gets a
    ``pass`` so the emitted source always compiles. Comments and blank
    lines are not statements.
    """

    INDENT = "    "

    def __init__(self):
        self._lines: List[str] = []
        self._level = 0
        self._statements = 0

    def line(self, text: str = "") -> None:
        if text:
            self._lines.append(self.INDENT * self._level + text)
            self._statements += 1
        else:
            self._lines.append("")

    def comment(self, text: str) -> None:
        self._lines.append(f"{self.INDENT * self._level}# {text}")

    def indent(self) -> None:
        self._level += 1

    def dedent(self) -> None:
        if self._level == 0:
            raise ValueError("dedent below column zero")
        self._level -= 1

    @contextmanager
    def block(self, header: str) -> Iterator[None]:
        """Emit ``header`` (ending with ':') and indent its suite."""
        self.line(header)
        start = self._statements
        self.indent()
        try:
            yield
        finally:
            if self._statements == start:
                self.line("pass")
            self.dedent()

    def extend(self, other: "CodeWriter") -> None:
        """Append the lines of another writer (already indented)."""
        self._lines.extend(other._lines)
        self._statements += other._statements

    def is_empty(self) -> bool:
        """True when no statement has been written; comments do not count."""
        return self._statements == 0

    def getvalue(self) -> str:
        return "\n".join(self._lines) + "\n"


__all__ = ["CodeWriter"]
