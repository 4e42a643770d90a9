"""
Body AST nodes.

Immutable structural nodes produced by the body parser. Nested bodies are
owned exclusively by their parent node; child sequences are tuples.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple

from ..errors import NO_LOCATION, SourceLocation
from .expr.model import Expression


class TemplateKind(Enum):
    """Role of a template; restricts which directives are valid."""
    PAGE = "page"
    LAYOUT = "layout"
    WIDGET = "widget"


@dataclass(frozen=True)
class Node:
    """Base class for all body nodes."""
    location: SourceLocation = field(default=NO_LOCATION, compare=False, repr=False, kw_only=True)


@dataclass(frozen=True)
class Body:
    """Ordered sequence of nodes."""
    children: Tuple[Node, ...] = ()

    def __iter__(self) -> Iterator[Node]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self.children)


EMPTY_BODY = Body()


@dataclass(frozen=True)
class Html(Node):
    """Literal template text, written as-is."""
    text: str


@dataclass(frozen=True)
class ExpressionOutput(Node):
    """``{{ expr }}``: escaped output."""
    expr: Expression


@dataclass(frozen=True)
class RawExpressionOutput(Node):
    """``{{ raw expr }}``: unescaped output."""
    expr: Expression


@dataclass(frozen=True)
class If(Node):
    """
    Conditional block.

    ``else if`` chains are represented as a nested If that is the only
    child of ``else_body``.
    """
    condition: Expression
    then_body: Body
    else_body: Optional[Body] = None


@dataclass(frozen=True)
class For(Node):
    """
    Loop over a collection.

    The body additionally sees ``<var>_index``, ``<var>_first`` and
    ``<var>_last`` for each iteration.
    """
    var_name: str
    collection: Expression
    body: Body


@dataclass(frozen=True)
class SwitchCase:
    value: Expression
    body: Body


@dataclass(frozen=True)
class Switch(Node):
    """Sequential equality chain; first matching case wins."""
    subject: Expression
    cases: Tuple[SwitchCase, ...]
    default_body: Optional[Body] = None


@dataclass(frozen=True)
class Set(Node):
    """``{{ set name = expr }}``: local binding for following siblings."""
    var_name: str
    value: Expression


@dataclass(frozen=True)
class Include(Node):
    """Render another template inline with the current context."""
    name: str
    params: Tuple[Tuple[str, Expression], ...] = ()


@dataclass(frozen=True)
class ComponentCall(Node):
    """``{{ widget "name" key=value ... }}``"""
    name: str
    params: Tuple[Tuple[str, Expression], ...] = ()


@dataclass(frozen=True)
class Fragment(Node):
    """Named sub-region rendered inline and addressable on its own."""
    name: str
    body: Body


@dataclass(frozen=True)
class Content(Node):
    """Layout placeholder for the page body."""
    pass


@dataclass(frozen=True)
class Slot(Node):
    """Layout extension point with an optional default body."""
    name: str
    default_body: Optional[Body] = None


@dataclass(frozen=True)
class Block(Node):
    """Page-side content for the layout slot of the same name."""
    name: str
    body: Body


@dataclass(frozen=True)
class Stack(Node):
    """Flush point for everything pushed under ``name``."""
    name: str


@dataclass(frozen=True)
class Push(Node):
    """Accumulate ``body`` output onto the stack ``name``."""
    name: str
    body: Body


def walk(body: Body) -> Iterator[Node]:
    """Depth-first iteration over all nodes of a body, parents first."""
    for node in body:
        yield node
        for nested in child_bodies(node):
            yield from walk(nested)


def child_bodies(node: Node) -> Tuple[Body, ...]:
    """Nested bodies owned by ``node``, in source order."""
    if isinstance(node, If):
        return (node.then_body,) if node.else_body is None else (node.then_body, node.else_body)
    elif isinstance(node, (For, Fragment, Block, Push)):
        return (node.body,)
    elif isinstance(node, Switch):
        bodies = tuple(case.body for case in node.cases)
        return bodies if node.default_body is None else bodies + (node.default_body,)
    elif isinstance(node, Slot):
        return () if node.default_body is None else (node.default_body,)
    return ()


def format_ast_tree(body: Body, indent: int = 0) -> str:
    """Format a body as an indented tree for debugging."""
    lines = []
    prefix = "  " * indent

    for node in body:
        if isinstance(node, Html):
            text_preview = repr(node.text[:50] + "..." if len(node.text) > 50 else node.text)
            lines.append(f"{prefix}Html({text_preview})")
        elif isinstance(node, ExpressionOutput):
            lines.append(f"{prefix}ExpressionOutput({node.expr})")
        elif isinstance(node, RawExpressionOutput):
            lines.append(f"{prefix}RawExpressionOutput({node.expr})")
        elif isinstance(node, If):
            lines.append(f"{prefix}If({node.condition})")
            _append_body(lines, prefix, "then", node.then_body, indent)
            if node.else_body is not None:
                _append_body(lines, prefix, "else", node.else_body, indent)
        elif isinstance(node, For):
            lines.append(f"{prefix}For({node.var_name} in {node.collection})")
            _append_body(lines, prefix, "body", node.body, indent)
        elif isinstance(node, Switch):
            lines.append(f"{prefix}Switch({node.subject})")
            for case in node.cases:
                _append_body(lines, prefix, f"case {case.value}", case.body, indent)
            if node.default_body is not None:
                _append_body(lines, prefix, "default", node.default_body, indent)
        elif isinstance(node, Set):
            lines.append(f"{prefix}Set({node.var_name} = {node.value})")
        elif isinstance(node, (Include, ComponentCall)):
            params = ", ".join(f"{key}={value}" for key, value in node.params)
            suffix = f", {params}" if params else ""
            lines.append(f"{prefix}{type(node).__name__}({node.name!r}{suffix})")
        elif isinstance(node, (Fragment, Block, Push)):
            lines.append(f"{prefix}{type(node).__name__}({node.name!r})")
            _append_body(lines, prefix, "body", node.body, indent)
        elif isinstance(node, Slot):
            lines.append(f"{prefix}Slot({node.name!r})")
            if node.default_body is not None:
                _append_body(lines, prefix, "default", node.default_body, indent)
        elif isinstance(node, Stack):
            lines.append(f"{prefix}Stack({node.name!r})")
        else:
            lines.append(f"{prefix}{type(node).__name__}")

    return "\n".join(lines)


def _append_body(lines, prefix: str, label: str, body: Body, indent: int) -> None:
    lines.append(f"{prefix}  {label}:")
    if body.children:
        lines.append(format_ast_tree(body, indent + 2))


__all__ = [
    "TemplateKind",
    "Node",
    "Body",
    "EMPTY_BODY",
    "Html",
    "ExpressionOutput",
    "RawExpressionOutput",
    "If",
    "For",
    "SwitchCase",
    "Switch",
    "Set",
    "Include",
    "ComponentCall",
    "Fragment",
    "Content",
    "Slot",
    "Block",
    "Stack",
    "Push",
    "walk",
    "child_bodies",
    "format_ast_tree",
]
