"""
Errors raised while linking and rendering templates.
"""

from __future__ import annotations

from ..errors import CandiUserError


class TemplateNotFoundError(CandiUserError):
    """No template with the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Template not found: {name}")
        self.name = name


class UnknownFilterError(CandiUserError):
    """A template uses a filter that is not registered."""

    def __init__(self, filter_name: str, template: str = ""):
        where = f" (used in {template})" if template else ""
        super().__init__(f"Unknown filter '{filter_name}'{where}")
        self.filter_name = filter_name
        self.template = template


class RenderError(CandiUserError):
    """Failure while executing a compiled template."""
    pass


class FragmentNotFoundError(RenderError):
    """Requested fragment does not exist in the template."""

    def __init__(self, fragment_name: str, template: str = ""):
        where = f" in {template}" if template else ""
        super().__init__(f"Fragment not found: {fragment_name}{where}")
        self.fragment_name = fragment_name


class UnknownComponentError(RenderError):
    """No component renderer and no widget template with the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Unknown widget: {name}")
        self.name = name


__all__ = [
    "TemplateNotFoundError",
    "UnknownFilterError",
    "RenderError",
    "FragmentNotFoundError",
    "UnknownComponentError",
]
