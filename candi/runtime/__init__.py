"""
Runtime for compiled templates.
"""

from __future__ import annotations

from .components import ComponentRegistry, ComponentRenderer
from .environment import Environment
from .errors import (
    FragmentNotFoundError,
    RenderError,
    TemplateNotFoundError,
    UnknownComponentError,
    UnknownFilterError,
)
from .filters import FilterRegistry
from .loader import DictLoader, FileSystemLoader
from .output import HtmlOutput, escape_html
from .slots import NO_SLOTS, SlotProvider
from .template import Template

__all__ = [
    "Environment",
    "Template",
    "FilterRegistry",
    "ComponentRegistry",
    "ComponentRenderer",
    "FileSystemLoader",
    "DictLoader",
    "HtmlOutput",
    "escape_html",
    "SlotProvider",
    "NO_SLOTS",
    "TemplateNotFoundError",
    "UnknownFilterError",
    "RenderError",
    "FragmentNotFoundError",
    "UnknownComponentError",
]
