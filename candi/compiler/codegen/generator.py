"""
Body AST to Python module source.

The generated module is the executable rendering procedure of one template.
It defines:

- ``KIND``, ``LAYOUT``, ``FILTERS``, ``FRAGMENTS``, ``BLOCKS``, ``FIELDS``
  metadata used when the module is linked
- ``render_body(_ctx, _out, _env)``
- ``render_fragment_<name>`` / ``render_block_<name>`` per fragment/block,
  plus ``FRAGMENT_TABLE`` / ``BLOCK_TABLE`` dispatch dicts keyed by name
- ``set_params(_ctx, _params)`` assigning parameters to the context

``_out`` is the output sink, ``_env`` the render session (filters,
includes, components, slots, globals).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ...errors import InternalCompilerError
from ...version import tool_version
from ..expr.model import Expression
from ..nodes import (
    Block,
    Body,
    ComponentCall,
    Content,
    ExpressionOutput,
    For,
    Fragment,
    Html,
    If,
    Include,
    Node,
    Push,
    RawExpressionOutput,
    Set,
    Slot,
    Stack,
    Switch,
    TemplateKind,
    walk,
)
from .access import ContextResolver, FieldAccessStrategy, NameResolver
from .expressions import ExpressionCompiler, LocalScope, TempNames
from .writer import CodeWriter

logger = logging.getLogger(__name__)

_NON_IDENTIFIER = re.compile(r"\W")


@dataclass(frozen=True)
class _NamedFunction:
    name: str
    function: str
    body: Body


class CodeGenerator:
    """
    Generates the Python module for one template body.

    A generator instance is single-use: it carries scope and temporary
    counters for one compilation.
    """

    def __init__(
        self,
        resolver: Optional[NameResolver] = None,
        kind: TemplateKind = TemplateKind.PAGE,
        layout: Optional[str] = None,
        file_name: str = "<template>",
    ):
        self.resolver: NameResolver = resolver or ContextResolver()
        self.kind = kind
        self.layout = layout
        self.file_name = file_name

        self._temps = TempNames()
        self._scope = LocalScope()
        self._expressions = ExpressionCompiler(self.resolver, self._scope, self._temps)
        # Name of the output sink variable in the code being emitted
        self._out_stack: List[str] = ["_out"]
        self._all_filters: Dict[str, None] = {}

    def generate(self, body: Body) -> str:
        """
        Generate module source for ``body``.

        Raises:
            InternalCompilerError: When the AST contains a node kind the
                generator does not handle
        """
        fragments = self._named_functions(body, Fragment, "render_fragment_")
        blocks = self._named_functions(body, Block, "render_block_")

        functions = CodeWriter()
        self._emit_function(functions, "render_body", body)
        for item in fragments:
            functions.line()
            functions.line()
            self._emit_function(functions, item.function, item.body)
        for item in blocks:
            functions.line()
            functions.line()
            self._emit_function(functions, item.function, item.body)

        w = CodeWriter()
        w.comment(f"Generated by candi {tool_version()} from {self.file_name}. Do not edit.")
        w.line("from candi.runtime import helpers as _rt")
        w.line()
        w.line(f"KIND = {self.kind.value!r}")
        w.line(f"LAYOUT = {self.layout!r}")
        w.line(f"FILTERS = {tuple(self._all_filters)!r}")
        w.line(f"FRAGMENTS = {tuple(f.name for f in fragments)!r}")
        w.line(f"BLOCKS = {tuple(b.name for b in blocks)!r}")
        w.line(f"FIELDS = {self.resolver.declared_fields()!r}")
        w.line(f"FIELD_ACCESS = {self.resolver.access.value!r}")
        w.line()
        w.line()
        w.extend(functions)
        w.line()
        w.line()
        self._emit_table(w, "FRAGMENT_TABLE", fragments)
        self._emit_table(w, "BLOCK_TABLE", blocks)
        w.line()
        w.line()
        self._emit_set_params(w)

        source = w.getvalue()
        logger.debug(
            f"Generated {len(source)} chars for {self.file_name}: "
            f"{len(fragments)} fragments, {len(blocks)} blocks, filters={list(self._all_filters)}"
        )
        return source

    # ------------------------------------------------------------------
    # Module structure
    # ------------------------------------------------------------------

    def _named_functions(self, body: Body, node_type, prefix: str) -> Tuple[_NamedFunction, ...]:
        result = []
        used = set()
        for node in walk(body):
            if isinstance(node, node_type):
                function = prefix + _NON_IDENTIFIER.sub("_", node.name)
                candidate = function
                counter = 2
                while candidate in used:
                    candidate = f"{function}_{counter}"
                    counter += 1
                used.add(candidate)
                result.append(_NamedFunction(node.name, candidate, node.body))
        return tuple(result)

    def _emit_function(self, w: CodeWriter, name: str, body: Body) -> None:
        """
        Emit one render function.

        Each function starts with a fresh scope: standalone fragment and
        block functions see fields and globals, never enclosing locals.
        """
        self._scope = LocalScope()
        self._expressions.scope = self._scope
        self._expressions.reset_filters()

        suite = CodeWriter()
        suite.indent()
        self._emit_body(suite, body)
        filters = self._expressions.reset_filters()
        for filter_name in filters:
            self._all_filters[filter_name] = None

        w.line(f"def {name}(_ctx, _out, _env):")
        w.indent()
        for filter_name in filters:
            w.line(f"_f_{filter_name} = _env.filter({filter_name!r})")
        if not filters and suite.is_empty():
            w.line("pass")
        w.dedent()
        w.extend(suite)

    @staticmethod
    def _emit_table(w: CodeWriter, table: str, items: Tuple[_NamedFunction, ...]) -> None:
        if not items:
            w.line(f"{table} = {{}}")
            return
        w.line(f"{table} = {{")
        w.indent()
        for item in items:
            w.line(f"{item.name!r}: {item.function},")
        w.dedent()
        w.line("}")

    def _emit_set_params(self, w: CodeWriter) -> None:
        access = self.resolver.access
        fields = self.resolver.declared_fields()
        with w.block("def set_params(_ctx, _params):"):
            if fields:
                for field_name in fields:
                    with w.block(f"if {field_name!r} in _params:"):
                        w.line(access.write_field("_ctx", field_name, f"_params[{field_name!r}]"))
            elif access == FieldAccessStrategy.MAPPING:
                w.line("_ctx.update(_params)")
            elif access == FieldAccessStrategy.ATTRIBUTE:
                with w.block("for _k, _v in _params.items():"):
                    w.line("setattr(_ctx, _k, _v)")
            else:
                with w.block("for _k, _v in _params.items():"):
                    w.line("getattr(_ctx, 'set_' + _k)(_v)")

    # ------------------------------------------------------------------
    # Bodies and nodes
    # ------------------------------------------------------------------

    def _emit_body(self, w: CodeWriter, body: Body) -> None:
        self._scope.push()
        try:
            for node in body:
                self._emit_node(w, node)
        finally:
            self._scope.pop()

    def _emit_node(self, w: CodeWriter, node: Node) -> None:
        out = self._out_stack[-1]

        if isinstance(node, Html):
            w.line(f"{out}.write({node.text!r})")
        elif isinstance(node, ExpressionOutput):
            w.line(f"{out}.write_escaped(_rt.to_str({self._expr(node.expr)}))")
        elif isinstance(node, RawExpressionOutput):
            w.line(f"{out}.write(_rt.to_str({self._expr(node.expr)}))")
        elif isinstance(node, If):
            self._emit_if(w, node, "if")
        elif isinstance(node, For):
            self._emit_for(w, node)
        elif isinstance(node, Switch):
            self._emit_switch(w, node)
        elif isinstance(node, Set):
            value = self._expr(node.value)
            local = self._scope.define(node.var_name)
            w.line(f"{local} = {value}")
        elif isinstance(node, Include):
            w.line(
                f"_env.render_include({node.name!r}, _ctx, {self._params(node.params)}, {out})"
            )
        elif isinstance(node, ComponentCall):
            w.line(f"{out}.write(_env.render_component({node.name!r}, {self._params(node.params)}))")
        elif isinstance(node, Fragment):
            w.comment(f"fragment {node.name!r}")
            self._emit_body(w, node.body)
        elif isinstance(node, Content):
            w.line(f"_env.render_content({out})")
        elif isinstance(node, Slot):
            if node.default_body is None:
                w.line(f"_env.render_slot({node.name!r}, {out})")
            else:
                with w.block(f"if not _env.render_slot({node.name!r}, {out}):"):
                    self._emit_body(w, node.default_body)
        elif isinstance(node, Block):
            # With a layout, blocks are rendered through the layout's slots
            if self.layout is None:
                w.comment(f"block {node.name!r}")
                self._emit_body(w, node.body)
        elif isinstance(node, Stack):
            w.line(f"{out}.render_stack({node.name!r})")
        elif isinstance(node, Push):
            buffer = self._temps.new("buf")
            w.line(f"{buffer} = {out}.child()")
            self._out_stack.append(buffer)
            try:
                self._emit_body(w, node.body)
            finally:
                self._out_stack.pop()
            w.line(f"{out}.push_stack({node.name!r}, {buffer}.getvalue())")
        else:
            raise InternalCompilerError(
                f"Unsupported node type {type(node).__name__} at {node.location}"
            )

    def _emit_if(self, w: CodeWriter, node: If, keyword: str) -> None:
        with w.block(f"{keyword} {self._expressions.condition(node.condition)}:"):
            self._emit_body(w, node.then_body)

        else_body = node.else_body
        if else_body is None:
            return
        if len(else_body.children) == 1 and isinstance(else_body.children[0], If):
            self._emit_if(w, else_body.children[0], "elif")
        else:
            with w.block("else:"):
                self._emit_body(w, else_body)

    def _emit_for(self, w: CodeWriter, node: For) -> None:
        items = self._temps.new("items")
        count = self._temps.new("count")
        w.line(f"{items} = _rt.iterate({self._expr(node.collection)})")
        w.line(f"{count} = len({items})")

        self._scope.push()
        try:
            index = self._scope.define(f"{node.var_name}_index")
            first = self._scope.define(f"{node.var_name}_first")
            last = self._scope.define(f"{node.var_name}_last")
            var = self._scope.define(node.var_name)
            with w.block(f"for {index}, {var} in enumerate({items}):"):
                w.line(f"{first} = {index} == 0")
                w.line(f"{last} = {index} == {count} - 1")
                self._emit_body(w, node.body)
        finally:
            self._scope.pop()

    def _emit_switch(self, w: CodeWriter, node: Switch) -> None:
        subject = self._temps.new("sw")
        w.line(f"{subject} = {self._expr(node.subject)}")

        for position, case in enumerate(node.cases):
            keyword = "if" if position == 0 else "elif"
            with w.block(f"{keyword} _rt.eq({subject}, {self._expr(case.value)}):"):
                self._emit_body(w, case.body)

        if node.default_body is not None:
            if node.cases:
                with w.block("else:"):
                    self._emit_body(w, node.default_body)
            else:
                self._emit_body(w, node.default_body)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expr(self, expr: Expression) -> str:
        return self._expressions.compile(expr)

    def _params(self, params: Tuple[Tuple[str, Expression], ...]) -> str:
        items = ", ".join(f"{key!r}: {self._expr(value)}" for key, value in params)
        return f"{{{items}}}"


def generate(
    body: Body,
    resolver: Optional[NameResolver] = None,
    kind: TemplateKind = TemplateKind.PAGE,
    layout: Optional[str] = None,
    file_name: str = "<template>",
) -> str:
    """Generate the Python module source rendering ``body``."""
    return CodeGenerator(resolver, kind, layout, file_name).generate(body)


__all__ = ["CodeGenerator", "generate"]
