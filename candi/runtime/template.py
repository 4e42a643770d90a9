"""
Linked templates and per-render sessions.
"""

from __future__ import annotations

import logging
from collections import ChainMap
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from ..compiler import CompiledTemplate
from ..compiler.codegen.access import FieldAccessStrategy
from ..compiler.nodes import TemplateKind
from .errors import FragmentNotFoundError, RenderError
from .output import HtmlOutput
from .slots import NO_SLOTS, RenderedSlots, SlotProvider

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)


class RenderSession:
    """
    Services available to generated code as ``_env`` during one render.
    """

    def __init__(self, environment: "Environment", template: "Template", slots: SlotProvider = NO_SLOTS):
        self.environment = environment
        self.template = template
        self.slots = slots

    def filter(self, name: str):
        return self.environment.filters.get(name)

    def global_value(self, name: str) -> Any:
        try:
            return self.environment.globals[name]
        except KeyError:
            raise RenderError(f"Unknown name '{name}' in {self.template.name}") from None

    def render_include(self, name: str, ctx: Any, params: Dict[str, Any], out: HtmlOutput) -> None:
        """Render another template's body into ``out`` with the current context."""
        included = self.environment.get_template(name)
        if params:
            if not isinstance(ctx, Mapping):
                raise RenderError(
                    f"Include parameters for '{name}' require a mapping context"
                )
            ctx = ChainMap(dict(params), ctx)
        included.render_body_into(ctx, out)

    def render_component(self, name: str, params: Dict[str, Any]) -> str:
        return self.environment.render_component(name, params)

    def render_content(self, out: HtmlOutput) -> None:
        self.slots.render_content(out)

    def render_slot(self, name: str, out: HtmlOutput) -> bool:
        return self.slots.render_slot(name, out)


class Template:
    """
    A compiled template linked into an executable module.

    Linking executes the generated module source and verifies that every
    filter the template uses is registered.
    """

    def __init__(self, name: str, compiled: CompiledTemplate, environment: "Environment"):
        self.name = name
        self.compiled = compiled
        self.environment = environment
        self._namespace = self._link()

    def _link(self) -> Dict[str, Any]:
        namespace: Dict[str, Any] = {"__name__": f"candi.templates.{self.name}"}
        code = compile(self.compiled.python_source, f"<candi:{self.compiled.file_name}>", "exec")
        exec(code, namespace)
        self.environment.filters.check(namespace["FILTERS"], self.name)
        logger.debug(
            f"Linked template '{self.name}' ({namespace['KIND']}), "
            f"fragments={list(namespace['FRAGMENTS'])}, blocks={list(namespace['BLOCKS'])}"
        )
        return namespace

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    def kind(self) -> TemplateKind:
        return TemplateKind(self._namespace["KIND"])

    @property
    def layout(self) -> Optional[str]:
        return self._namespace["LAYOUT"]

    @property
    def fragments(self) -> Tuple[str, ...]:
        return self._namespace["FRAGMENTS"]

    @property
    def blocks(self) -> Tuple[str, ...]:
        return self._namespace["BLOCKS"]

    @property
    def field_access(self) -> FieldAccessStrategy:
        return FieldAccessStrategy(self._namespace["FIELD_ACCESS"])

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def new_context(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Fresh render context with ``params`` assigned through set_params."""
        ctx = self.environment.new_context(self.field_access)
        self._namespace["set_params"](ctx, dict(params or {}))
        return ctx

    def render(self, context: Any = None) -> str:
        """
        Render the template, composing it into its layout when it has one.

        Args:
            context: Render context (mapping or object); a fresh one when None
        """
        ctx = self.new_context() if context is None else context
        out = HtmlOutput()

        if self.layout is None:
            self._namespace["render_body"](ctx, out, RenderSession(self.environment, self))
            return out.getvalue()

        layout = self.environment.get_template(self.layout)
        if layout.kind != TemplateKind.LAYOUT:
            raise RenderError(f"'{self.layout}' used by {self.name} is not a layout")

        session = RenderSession(self.environment, self)
        content = out.child()
        self._namespace["render_body"](ctx, content, session)

        blocks: Dict[str, str] = {}
        for block_name, render_block in self._namespace["BLOCK_TABLE"].items():
            buffer = out.child()
            render_block(ctx, buffer, session)
            blocks[block_name] = buffer.getvalue()

        slots = RenderedSlots(content.getvalue(), blocks)
        layout.render_body_into(ctx, out, slots)
        return out.getvalue()

    def render_body_into(self, ctx: Any, out: HtmlOutput, slots: SlotProvider = NO_SLOTS) -> None:
        """Render only the body (no layout composition) into ``out``."""
        self._namespace["render_body"](ctx, out, RenderSession(self.environment, self, slots))

    def render_fragment(self, fragment: str, context: Any = None) -> str:
        """
        Render one fragment on its own.

        Raises:
            FragmentNotFoundError: No fragment with that name
        """
        render_fragment = self._namespace["FRAGMENT_TABLE"].get(fragment)
        if render_fragment is None:
            raise FragmentNotFoundError(fragment, self.name)
        ctx = self.new_context() if context is None else context
        out = HtmlOutput()
        render_fragment(ctx, out, RenderSession(self.environment, self))
        return out.getvalue()

    def __repr__(self) -> str:
        return f"<Template {self.name!r} ({self.compiled.kind.value})>"


__all__ = ["Template", "RenderSession"]
