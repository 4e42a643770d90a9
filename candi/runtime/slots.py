"""
Slot providers used while rendering a layout.
"""

from __future__ import annotations

from typing import Dict, Protocol

from .output import HtmlOutput


class SlotProvider(Protocol):
    """Supplies page content to a layout's ``content`` and ``slot`` directives."""

    def render_content(self, out: HtmlOutput) -> None:
        ...

    def render_slot(self, name: str, out: HtmlOutput) -> bool:
        """Write the page block for ``name``; False when the page has none."""
        ...


class NoSlots:
    """Provider for templates rendered without a page."""

    def render_content(self, out: HtmlOutput) -> None:
        pass

    def render_slot(self, name: str, out: HtmlOutput) -> bool:
        return False


class RenderedSlots:
    """
    Page body and blocks rendered ahead of the layout.

    Rendering the page first makes its pushes visible to stacks placed
    anywhere in the layout.
    """

    def __init__(self, content: str, blocks: Dict[str, str]):
        self.content = content
        self.blocks = blocks

    def render_content(self, out: HtmlOutput) -> None:
        out.write(self.content)

    def render_slot(self, name: str, out: HtmlOutput) -> bool:
        if name not in self.blocks:
            return False
        out.write(self.blocks[name])
        return True


NO_SLOTS = NoSlots()

__all__ = ["SlotProvider", "NoSlots", "RenderedSlots", "NO_SLOTS"]
