"""
Environment: template registry, filters, components and globals.
"""

from __future__ import annotations

import logging
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..compiler import CompileOptions, compile_source
from ..compiler.codegen.access import FieldAccessStrategy
from ..compiler.nodes import TemplateKind
from .components import ComponentLike, ComponentRegistry
from .errors import RenderError, TemplateNotFoundError, UnknownComponentError
from .filters import FilterRegistry
from .loader import TemplateLoader
from .template import Template

logger = logging.getLogger(__name__)


class Environment:
    """
    Shared configuration for compiling and rendering templates.

    Templates are compiled lazily through the loader on first use and
    cached by name; ``add_template`` registers a source directly.
    """

    def __init__(
        self,
        loader: Optional[TemplateLoader] = None,
        options: Optional[CompileOptions] = None,
        filters: Optional[FilterRegistry] = None,
        components: Optional[ComponentRegistry] = None,
        globals: Optional[Mapping[str, Any]] = None,
        context_factory: Optional[Callable[[], Any]] = None,
    ):
        self.loader = loader
        self.options = options or CompileOptions()
        self.filters = filters or FilterRegistry()
        self.components = components or ComponentRegistry()
        self.globals: Dict[str, Any] = dict(globals or {})
        self.context_factory = context_factory
        self._templates: Dict[str, Template] = {}

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def compile(self, source: str, name: str = "<template>", kind: Optional[TemplateKind] = None,
                file_name: Optional[str] = None) -> Template:
        """Compile and link a source without registering it."""
        compiled = compile_source(source, file_name or name, self.options, kind)
        return Template(name, compiled, self)

    def add_template(self, name: str, source: str, kind: Optional[TemplateKind] = None,
                     file_name: Optional[str] = None) -> Template:
        template = self.compile(source, name, kind, file_name)
        self._templates[name] = template
        return template

    def get_template(self, name: str) -> Template:
        """
        Cached template by name, loading it on first use.

        Raises:
            TemplateNotFoundError: Not registered and not found by the loader
        """
        template = self._templates.get(name)
        if template is not None:
            return template
        if self.loader is None:
            raise TemplateNotFoundError(name)
        source, file_name = self.loader.get_source(name)
        logger.debug(f"Loading template '{name}' from {file_name}")
        return self.add_template(name, source, file_name=file_name)

    def list_templates(self) -> List[str]:
        names = set(self._templates)
        if self.loader is not None:
            names.update(self.loader.list_templates())
        return sorted(names)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def new_context(self, access: FieldAccessStrategy) -> Any:
        if access == FieldAccessStrategy.MAPPING:
            return {}
        if access == FieldAccessStrategy.ATTRIBUTE:
            return SimpleNamespace()
        if self.context_factory is None:
            raise RenderError("Getter/setter field access requires a context_factory")
        return self.context_factory()

    def render(self, name: str, params: Optional[Mapping[str, Any]] = None) -> str:
        template = self.get_template(name)
        return template.render(template.new_context(params))

    def render_fragment(self, name: str, fragment: str, params: Optional[Mapping[str, Any]] = None) -> str:
        template = self.get_template(name)
        return template.render_fragment(fragment, template.new_context(params))

    def render_component(self, name: str, params: Mapping[str, Any]) -> str:
        """
        Render a widget: a registered component first, else a widget template.

        Raises:
            UnknownComponentError: Neither exists
        """
        renderer = self.components.get(name)
        if renderer is not None:
            return str(renderer(params))
        try:
            template = self.get_template(name)
        except TemplateNotFoundError:
            raise UnknownComponentError(name) from None
        if template.kind != TemplateKind.WIDGET:
            raise RenderError(f"'{name}' is a {template.kind.value}, not a widget")
        return template.render(template.new_context(params))

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def filter(self, name: str, func: Optional[Callable[..., Any]] = None):
        """Register a filter; usable as ``@env.filter("slug")``."""
        return self.filters.register(name, func)

    def component(self, name: str, renderer: ComponentLike) -> None:
        self.components.register(name, renderer)


__all__ = ["Environment"]
