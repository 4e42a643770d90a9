"""
Component rendering collaborators for ``{{ widget "name" key=value }}``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Union


class ComponentRenderer(Protocol):
    """Renders a component from its named arguments to inline HTML."""

    def render(self, params: Mapping[str, Any]) -> str:
        ...


ComponentLike = Union[ComponentRenderer, Callable[[Mapping[str, Any]], str]]


class ComponentRegistry:
    """
    Registered component renderers.

    Accepts objects with a ``render(params)`` method or plain callables.
    """

    def __init__(self):
        self._renderers: Dict[str, Callable[[Mapping[str, Any]], str]] = {}

    def register(self, name: str, renderer: ComponentLike) -> None:
        render = getattr(renderer, "render", None)
        if callable(render):
            self._renderers[name] = render
        elif callable(renderer):
            self._renderers[name] = renderer
        else:
            raise TypeError(f"Component '{name}' must be callable or define render(params)")

    def get(self, name: str) -> Optional[Callable[[Mapping[str, Any]], str]]:
        return self._renderers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._renderers


__all__ = ["ComponentRenderer", "ComponentRegistry"]
