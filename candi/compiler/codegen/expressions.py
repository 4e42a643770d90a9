"""
Expression compilation to Python source.

Generated expressions reference a fixed set of names provided by the
generated function: ``_ctx`` (render context), ``_env`` (render session),
``_rt`` (runtime helpers module) and ``_f_<name>`` (bound filters).
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from ...errors import InternalCompilerError
from ..expr.model import (
    BinaryOp,
    BooleanLiteral,
    Expression,
    FilterCall,
    Grouped,
    IndexAccess,
    MethodCall,
    NullCoalesce,
    NullSafeMethodCall,
    NullSafePropertyAccess,
    NumberLiteral,
    PropertyAccess,
    StringLiteral,
    Ternary,
    UnaryMinus,
    UnaryNot,
    Variable,
)
from .access import NameResolver


# Operators whose result is always a bool; other values in conditions get _rt.test()
_BOOLEAN_OPERATORS = frozenset({"||", "&&", "==", "!=", "<", ">", "<=", ">="})

_CHAIN_LINKS = (
    PropertyAccess,
    NullSafePropertyAccess,
    MethodCall,
    NullSafeMethodCall,
    IndexAccess,
)

_DIRECT_OPERATORS = {
    "-": "-",
    "*": "*",
    "<": "<",
    ">": ">",
    "<=": "<=",
    ">=": ">=",
}

_HELPER_OPERATORS = {
    "+": "_rt.add",
    "/": "_rt.div",
    "%": "_rt.mod",
    "~": "_rt.concat",
    "==": "_rt.eq",
}


class LocalScope:
    """
    Compile-time scopes of template-local names.

    Every local gets a unique Python identifier, so a binding never leaks
    into an enclosing scope even though Python locals are function-wide.
    """

    def __init__(self):
        self._frames: List[Dict[str, str]] = [{}]
        self._counter = 0

    def push(self) -> None:
        self._frames.append({})

    def pop(self) -> None:
        self._frames.pop()

    def define(self, name: str) -> str:
        self._counter += 1
        py_name = f"l_{self._counter}_{name}"
        self._frames[-1][name] = py_name
        return py_name

    def lookup(self, name: str) -> Optional[str]:
        for frame in reversed(self._frames):
            if name in frame:
                return frame[name]
        return None


class TempNames:
    """Counter-based generator of temporary identifiers."""

    def __init__(self):
        self._counter = 0

    def new(self, prefix: str) -> str:
        self._counter += 1
        return f"_{prefix}{self._counter}"


class ExpressionCompiler:
    """Translates expression AST nodes into Python expression source."""

    def __init__(self, resolver: NameResolver, scope: LocalScope, temps: TempNames):
        self.resolver = resolver
        self.scope = scope
        self.temps = temps
        # Filters referenced since the last reset, in first-use order
        self.filters: Dict[str, None] = {}

    def reset_filters(self) -> Tuple[str, ...]:
        used = tuple(self.filters)
        self.filters = {}
        return used

    def condition(self, expr: Expression) -> str:
        """
        Compile an expression used as a branch condition.

        Expressions that always yield a bool are used directly; any other
        value is true when it is neither absent nor false.
        """
        if isinstance(expr, (UnaryNot, BooleanLiteral)):
            return self.compile(expr)
        if isinstance(expr, BinaryOp) and expr.operator in _BOOLEAN_OPERATORS:
            return self.compile(expr)
        return f"_rt.test({self.compile(expr)})"

    def compile(self, expr: Expression) -> str:
        if isinstance(expr, Variable):
            return self._compile_name(expr.name)
        elif isinstance(expr, StringLiteral):
            return repr(expr.value)
        elif isinstance(expr, NumberLiteral):
            return self._compile_number(expr.raw)
        elif isinstance(expr, BooleanLiteral):
            return "True" if expr.value else "False"
        elif isinstance(expr, _CHAIN_LINKS):
            return self._compile_chain(expr)
        elif isinstance(expr, BinaryOp):
            return self._compile_binary(expr)
        elif isinstance(expr, UnaryNot):
            return f"(not {self.condition(expr.operand)})"
        elif isinstance(expr, UnaryMinus):
            return f"(-{self.compile(expr.operand)})"
        elif isinstance(expr, Ternary):
            return (
                f"({self.compile(expr.then_expr)} if {self.condition(expr.condition)} "
                f"else {self.compile(expr.else_expr)})"
            )
        elif isinstance(expr, NullCoalesce):
            temp = self.temps.new("v")
            return (
                f"({temp} if ({temp} := {self.compile(expr.left)}) is not None "
                f"else {self.compile(expr.fallback)})"
            )
        elif isinstance(expr, FilterCall):
            self.filters[expr.filter_name] = None
            args = [self.compile(expr.input)] + [self.compile(a) for a in expr.args]
            return f"_f_{expr.filter_name}({', '.join(args)})"
        elif isinstance(expr, Grouped):
            return f"({self.compile(expr.inner)})"

        raise InternalCompilerError(f"Unsupported expression type {type(expr).__name__}")

    def _compile_name(self, name: str) -> str:
        local = self.scope.lookup(name)
        if local is not None:
            return local
        if self.resolver.is_field(name):
            return self.resolver.access.read_field("_ctx", name)
        return f"_env.global_value({name!r})"

    @staticmethod
    def _compile_number(raw: str) -> str:
        if raw.isdigit():
            # Python rejects leading zeros in integer literals
            return str(int(raw))
        return raw

    def _compile_binary(self, expr: BinaryOp) -> str:
        op = expr.operator
        if op == "||":
            return f"({self.condition(expr.left)} or {self.condition(expr.right)})"
        elif op == "&&":
            return f"({self.condition(expr.left)} and {self.condition(expr.right)})"

        left = self.compile(expr.left)
        right = self.compile(expr.right)
        if op == "!=":
            return f"(not _rt.eq({left}, {right}))"
        if op in _HELPER_OPERATORS:
            return f"{_HELPER_OPERATORS[op]}({left}, {right})"
        if op in _DIRECT_OPERATORS:
            return f"({left} {_DIRECT_OPERATORS[op]} {right})"

        raise InternalCompilerError(f"Unsupported operator {op!r}")

    def _compile_chain(self, expr: Expression) -> str:
        """
        Compile a property/method/index chain.

        Each null-safe link stores its base in a temporary and
        short-circuits the rest of the chain to None when the base is None.
        """
        links = []
        node = expr
        while isinstance(node, _CHAIN_LINKS):
            links.append(node)
            node = node.object
        links.reverse()

        code = self.compile(node)
        guards = 0
        prefix = ""
        for link in links:
            if isinstance(link, (NullSafePropertyAccess, NullSafeMethodCall)):
                temp = self.temps.new("v")
                prefix += f"(None if ({temp} := {code}) is None else "
                guards += 1
                code = temp

            if isinstance(link, (PropertyAccess, NullSafePropertyAccess)):
                code = f"_rt.attr({code}, {link.name!r})"
            elif isinstance(link, (MethodCall, NullSafeMethodCall)):
                args = "".join(f", {self.compile(a)}" for a in link.args)
                code = f"_rt.call({code}, {link.name!r}{args})"
            else:
                code = f"_rt.index({code}, {self.compile(link.index)})"

        return prefix + code + ")" * guards


__all__ = ["ExpressionCompiler", "LocalScope", "TempNames"]
