"""
Output sink for rendered HTML.
"""

from __future__ import annotations

import html
from typing import Dict, List, Optional


def escape_html(text: str) -> str:
    """Encode ``& < > " '`` as HTML entities."""
    return html.escape(text, quote=True)


class HtmlOutput:
    """
    Buffered output with two write modes and named stacks.

    ``write`` passes text through unchanged, ``write_escaped`` entity-encodes
    it. Stacks collect pushed fragments in push order until a
    ``render_stack`` flushes them. Child buffers share the stacks of
    their parent.
    """

    def __init__(self, stacks: Optional[Dict[str, List[str]]] = None):
        self._parts: List[str] = []
        self._stacks: Dict[str, List[str]] = {} if stacks is None else stacks

    def write(self, text: str) -> None:
        if text:
            self._parts.append(text)

    def write_escaped(self, text: str) -> None:
        if text:
            self._parts.append(escape_html(text))

    def push_stack(self, name: str, content: str) -> None:
        self._stacks.setdefault(name, []).append(content)

    def render_stack(self, name: str) -> None:
        """Write everything pushed to ``name`` so far, then clear it."""
        self._parts.extend(self._stacks.pop(name, ()))

    def child(self) -> "HtmlOutput":
        return HtmlOutput(self._stacks)

    def getvalue(self) -> str:
        return "".join(self._parts)

    def __len__(self) -> int:
        return sum(len(p) for p in self._parts)

    def __str__(self) -> str:
        return self.getvalue()


__all__ = ["HtmlOutput", "escape_html"]
